"""
Markup Renderer

Renders template markup to a PDF by laying it out once as a tall
bitmap and cutting that bitmap into page-sized bands.

Pipeline:
    1. Lay out the HTML with a PyMuPDF Story on one tall canvas
    2. Rasterize the canvas at RENDER_SCALE
    3. Scale to the page content width; slice into bands of one
       page's content height
    4. Back each band with white and place it inside the page margins

What the editor previews is exactly what ends up in the PDF.
"""

import io
import logging
import math
from typing import List, Optional, Tuple

import fitz  # PyMuPDF
from PIL import Image

from .exceptions import UnprocessableInputError

logger = logging.getLogger(__name__)

PAGE_WIDTH = 595
PAGE_HEIGHT = 842
MARGIN = 40
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
CONTENT_HEIGHT = PAGE_HEIGHT - 2 * MARGIN

RENDER_SCALE = 2.0
MAX_LAYOUT_HEIGHT = 200_000

DOCUMENT_CSS = """
* { font-family: Georgia, serif; }
body { font-size: 12px; line-height: 1.5; color: #000; }
p { margin: 0 0 6px 0; }
"""


def band_boundaries(total_rows: int, rows_per_band: float) -> List[Tuple[int, int]]:
    """
    Split rows [0, total_rows) into contiguous bands.

    Returns (top, bottom) pairs; each bottom is the next band's top and the
    last bottom is total_rows, so no row is lost or repeated. The number of
    bands is ceil(total_rows / rows_per_band).
    """
    if total_rows <= 0:
        return []
    if rows_per_band <= 0:
        raise ValueError("rows_per_band must be positive")

    count = max(1, math.ceil(total_rows / rows_per_band - 1e-9))
    bands = []
    for i in range(count):
        top = min(total_rows, int(round(i * rows_per_band)))
        bottom = total_rows if i == count - 1 else min(total_rows, int(round((i + 1) * rows_per_band)))
        bands.append((top, bottom))
    return bands


def layout_bitmap(markup: str, scale: float = RENDER_SCALE) -> Optional[Image.Image]:
    """
    Lay out markup at the page content width and rasterize it.

    Returns None when the layout has no content. Raises
    UnprocessableInputError when the content does not fit MAX_LAYOUT_HEIGHT.
    """
    story = fitz.Story(html=markup or '', user_css=DOCUMENT_CSS)
    more, filled = story.place(fitz.Rect(0, 0, CONTENT_WIDTH, MAX_LAYOUT_HEIGHT))
    if more:
        raise UnprocessableInputError(f"Document is taller than {MAX_LAYOUT_HEIGHT}pt and cannot be rendered")

    # place() returns a plain tuple on some PyMuPDF releases
    filled = fitz.Rect(filled)
    content_height = math.ceil(filled.y1) if not filled.is_empty else 0
    if content_height <= 0:
        return None

    buffer = io.BytesIO()
    writer = fitz.DocumentWriter(buffer)
    device = writer.begin_page(fitz.Rect(0, 0, CONTENT_WIDTH, content_height))
    story.draw(device)
    writer.end_page()
    writer.close()

    with fitz.open(stream=buffer.getvalue(), filetype='pdf') as canvas_doc:
        pix = canvas_doc[0].get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        return Image.frombytes('RGB', (pix.width, pix.height), pix.samples)


def _png_bytes(image: Image.Image) -> bytes:
    out = io.BytesIO()
    image.save(out, format='PNG')
    return out.getvalue()


def paginate_bitmap(bitmap: Image.Image) -> bytes:
    """
    Place a bitmap onto as many PDF pages as its height needs.

    The bitmap is scaled to the content width; each page carries one band
    of CONTENT_HEIGHT points.
    """
    ratio = CONTENT_WIDTH / bitmap.width
    rows_per_band = CONTENT_HEIGHT / ratio
    bands = band_boundaries(bitmap.height, rows_per_band)

    doc = fitz.open()
    for top, bottom in bands:
        band = Image.new('RGB', (bitmap.width, bottom - top), (255, 255, 255))
        band.paste(bitmap.crop((0, top, bitmap.width, bottom)), (0, 0))

        page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        band_height = (bottom - top) * ratio
        rect = fitz.Rect(MARGIN, MARGIN, MARGIN + CONTENT_WIDTH, MARGIN + band_height)
        page.insert_image(rect, stream=_png_bytes(band))

    logger.debug(f"Rendered {bitmap.width}x{bitmap.height}px bitmap onto {len(bands)} page(s)")
    return doc.tobytes(garbage=3, deflate=True)


def blank_pdf() -> bytes:
    doc = fitz.open()
    doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
    return doc.tobytes()


def render(markup: str, scale: float = RENDER_SCALE) -> bytes:
    """
    Render template markup to PDF bytes.

    Empty layouts produce a single blank page.
    """
    bitmap = layout_bitmap(markup, scale=scale)
    if bitmap is None:
        logger.info("Markup produced no content, rendering a blank page")
        return blank_pdf()
    return paginate_bitmap(bitmap)
