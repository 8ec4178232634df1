"""
Signature Stamping

Places a signature image and caption on the last page of a PDF.
The stamp sits at a fixed offset from the bottom-right corner; the
client and vendor stamps land on the same page.
"""

import io
import logging

import fitz  # PyMuPDF
from PIL import Image

from .exceptions import UnprocessableInputError

logger = logging.getLogger(__name__)

STAMP_MAX_WIDTH = 120
STAMP_RIGHT_OFFSET = 40
STAMP_BOTTOM_OFFSET = 40
CAPTION_GAP = 14
CAPTION_SIZE = 9
CAPTION_COLOR = (0.4, 0.4, 0.4)


def stamp_rect(page_width: float, page_height: float, image_width: int, image_height: int) -> fitz.Rect:
    """Where the signature image goes, in PyMuPDF's top-left coordinates."""
    width = min(STAMP_MAX_WIDTH, image_width)
    height = image_height / image_width * width
    x0 = page_width - width - STAMP_RIGHT_OFFSET
    y1 = page_height - STAMP_BOTTOM_OFFSET
    return fitz.Rect(x0, y1 - height, x0 + width, y1)


def stamp_signature(pdf_bytes: bytes, signature_png: bytes, label: str = '') -> bytes:
    """
    Return a copy of the PDF with the signature stamped on its last page.

    The input bytes are never modified; on failure nothing is returned
    and the caller keeps its current document.
    """
    try:
        with Image.open(io.BytesIO(signature_png)) as image:
            image_width, image_height = image.size
    except (OSError, ValueError) as e:
        raise UnprocessableInputError(f"Signature image is not readable: {e}", field='signatureImage')
    if not image_width or not image_height:
        raise UnprocessableInputError("Signature image has no pixels", field='signatureImage')

    try:
        doc = fitz.open(stream=pdf_bytes, filetype='pdf')
    except (fitz.FileDataError, RuntimeError, ValueError) as e:
        raise UnprocessableInputError(f"Contract document is not a readable PDF: {e}")

    with doc:
        if doc.page_count == 0:
            logger.warning("Stamping skipped: document has no pages")
            return doc.tobytes()

        page = doc[-1]
        rect = stamp_rect(page.rect.width, page.rect.height, image_width, image_height)
        page.insert_image(rect, stream=signature_png)
        if label:
            page.insert_text(
                (rect.x0, rect.y1 + CAPTION_GAP),
                label,
                fontsize=CAPTION_SIZE,
                fontname='helv',
                color=CAPTION_COLOR,
            )
        logger.debug(f"Stamped signature on page {page.number + 1} at {tuple(round(v, 1) for v in rect)}")
        return doc.tobytes(garbage=3, deflate=True)
