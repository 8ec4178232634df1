"""
Word Export

Turns an uploaded PDF template into an editable .docx: a title, then
each page's text under a "--- Page N ---" heading. The vendor edits it
in Word, exports back to PDF and replaces the template file.

Only the PDF's text layer is used; layout and images are not carried over.
"""

import io
import logging
import re

from docx import Document

from .extractor import _open_pdf, page_text

logger = logging.getLogger(__name__)

DOCX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'

NO_TEXT_NOTICE = 'No text could be extracted from this PDF. It may be image-based or scanned.'

WHITESPACE_RE = re.compile(r'\s+')
UNSAFE_FILENAME_RE = re.compile(r'[^a-zA-Z0-9_-]')


def docx_filename(title: str) -> str:
    """'Smith & Co Agreement' -> 'Smith___Co_Agreement.docx'"""
    return f"{UNSAFE_FILENAME_RE.sub('_', title or 'Document')}.docx"


def pdf_to_docx(pdf_bytes: bytes, title: str = 'Document') -> bytes:
    """Build a .docx with one heading and one paragraph per page that has text."""
    title = title or 'Document'
    document = Document()
    document.core_properties.title = title
    document.add_heading(title, level=0)

    pages_with_text = 0
    with _open_pdf(pdf_bytes) as doc:
        for number, page in enumerate(doc, start=1):
            text = WHITESPACE_RE.sub(' ', page_text(page)).strip()
            if not text:
                continue
            document.add_heading(f'--- Page {number} ---', level=2)
            document.add_paragraph(text)
            pages_with_text += 1

    if not pages_with_text:
        document.add_paragraph(NO_TEXT_NOTICE)

    logger.debug(f"Exported {pages_with_text} page(s) of text to docx")
    out = io.BytesIO()
    document.save(out)
    return out.getvalue()
