"""
Text & Optical Extractor

Turns an uploaded PDF into paragraph blocks for the template editor.

Structural text (PyMuPDF spans) is tried first. If the whole document
yields no text, typically a scanned contract, each page is rasterized
and run through Tesseract instead. A document with no recoverable text
still produces a result: one placeholder paragraph.
"""

import logging
import re
from typing import List

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from .exceptions import UnprocessableInputError
from .markup import text_to_paragraphs
from .types import ExtractionResult

logger = logging.getLogger(__name__)

OCR_SCALE = 2.0
OCR_LANGUAGE = 'eng'

NO_TEXT_NOTICE = (
    'No text could be extracted from this PDF. It may be encrypted or corrupted. '
    'Try creating from editor and typing your content, or use a different PDF.'
)

# Two or more whitespace characters mark a paragraph boundary
PARAGRAPH_BREAK_RE = re.compile(r'\s{2,}')
WHITESPACE_RE = re.compile(r'\s+')


def split_paragraphs(text: str) -> List[str]:
    """
    Split page text on whitespace runs of length >= 2.

    Each block has its inner whitespace collapsed. This approximates
    visual paragraph breaks without any layout analysis.
    """
    if not text or not text.strip():
        return []
    blocks = [WHITESPACE_RE.sub(' ', block).strip() for block in PARAGRAPH_BREAK_RE.split(text.strip())]
    return [block for block in blocks if block]


def _open_pdf(pdf_bytes: bytes) -> fitz.Document:
    if not pdf_bytes:
        raise UnprocessableInputError("Empty document", field='fileBytes')
    try:
        doc = fitz.open(stream=pdf_bytes, filetype='pdf')
    except (fitz.FileDataError, RuntimeError, ValueError) as e:
        raise UnprocessableInputError(f"Not a readable PDF: {e}", field='fileBytes')
    if doc.needs_pass:
        doc.close()
        raise UnprocessableInputError("PDF is password protected", field='fileBytes')
    return doc


def page_text(page: fitz.Page) -> str:
    """
    Concatenate a page's text runs in document order.

    Spans within a line are joined directly, lines with a single space,
    and text blocks with a blank line.
    """
    blocks = []
    for block in page.get_text('dict').get('blocks', []):
        if block.get('type') != 0:  # image block
            continue
        lines = []
        for line in block.get('lines', []):
            lines.append(''.join(span.get('text', '') for span in line.get('spans', [])))
        blocks.append(' '.join(lines))
    return '\n\n'.join(blocks)


def extract_structural(doc: fitz.Document) -> List[str]:
    paragraphs = []
    for page in doc:
        paragraphs.extend(split_paragraphs(page_text(page)))
    return paragraphs


def ocr_page(page: fitz.Page, scale: float = OCR_SCALE, language: str = OCR_LANGUAGE) -> str:
    """Rasterize one page and run Tesseract over it."""
    pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
    image = Image.frombytes('RGB', (pix.width, pix.height), pix.samples)
    return pytesseract.image_to_string(image, lang=language)


def extract_ocr(doc: fitz.Document, scale: float = OCR_SCALE, language: str = OCR_LANGUAGE) -> List[str]:
    paragraphs = []
    for page in doc:
        try:
            text = ocr_page(page, scale=scale, language=language)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            logger.warning(f"OCR failed on page {page.number + 1}: {e}")
            continue
        paragraphs.extend(split_paragraphs(text))
    return paragraphs


def extract(pdf_bytes: bytes, scale: float = OCR_SCALE, language: str = OCR_LANGUAGE) -> ExtractionResult:
    """
    Recover the paragraphs of a PDF.

    Returns an ExtractionResult whose method is 'text', 'ocr' or 'none'.
    Raises UnprocessableInputError only when the bytes are not a PDF.
    """
    doc = _open_pdf(pdf_bytes)
    try:
        paragraphs = extract_structural(doc)
        if paragraphs:
            logger.info(f"Extracted {len(paragraphs)} paragraph(s) from {doc.page_count} page(s)")
            return ExtractionResult(paragraphs=paragraphs, method='text')

        logger.info(f"No text layer in {doc.page_count} page(s), falling back to OCR")
        paragraphs = extract_ocr(doc, scale=scale, language=language)
        if paragraphs:
            return ExtractionResult(paragraphs=paragraphs, method='ocr')
    finally:
        doc.close()

    logger.warning("No text recovered from PDF, returning placeholder paragraph")
    return ExtractionResult(paragraphs=[NO_TEXT_NOTICE], method='none')


def extract_html(pdf_bytes: bytes, scale: float = OCR_SCALE, language: str = OCR_LANGUAGE) -> str:
    """Recover a PDF's text as editor-ready <p> blocks, one per line."""
    result = extract(pdf_bytes, scale=scale, language=language)
    return text_to_paragraphs(result.paragraphs)


def page_count(pdf_bytes: bytes) -> int:
    """Open a PDF just to check it is usable; returns its page count."""
    doc = _open_pdf(pdf_bytes)
    try:
        return doc.page_count
    finally:
        doc.close()
