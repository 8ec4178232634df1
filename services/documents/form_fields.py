"""
Fillable-Field Editor

Reads and writes the native form fields of an uploaded PDF template,
and stamps ad hoc lines of text onto its first page. Works directly on
the PDF; nothing goes through extraction or rendering.
"""

import logging
from typing import Iterable, List, Sequence

import fitz  # PyMuPDF

from .exceptions import UnprocessableInputError
from .types import FormFieldKind, PdfFormField

logger = logging.getLogger(__name__)

WIDGET_KINDS = {
    fitz.PDF_WIDGET_TYPE_TEXT: FormFieldKind.TEXT,
    fitz.PDF_WIDGET_TYPE_CHECKBOX: FormFieldKind.CHECKBOX,
}

# Appended text starts here (points from the top-left) and steps down
APPEND_TEXT_X = 50
APPEND_TEXT_TOP = 50
APPEND_TEXT_STEP = 20
APPEND_TEXT_SIZE = 12

UNCHECKED_VALUES = (None, '', 'Off', 'off', False)


def _open_pdf(pdf_bytes: bytes) -> fitz.Document:
    try:
        return fitz.open(stream=pdf_bytes, filetype='pdf')
    except (fitz.FileDataError, RuntimeError, ValueError) as e:
        raise UnprocessableInputError(f"Not a readable PDF: {e}", field='fileBytes')


def _widgets(doc: fitz.Document):
    for page in doc:
        for widget in page.widgets() or []:
            yield widget


def read_fields(pdf_bytes: bytes) -> List[PdfFormField]:
    """
    List the text and checkbox fields of a PDF form.

    Fields are deduplicated by name (first widget wins); other widget
    kinds are skipped.
    """
    seen = set()
    fields = []
    with _open_pdf(pdf_bytes) as doc:
        for widget in _widgets(doc):
            name = widget.field_name
            if not name or name in seen:
                continue
            kind = WIDGET_KINDS.get(widget.field_type)
            if kind is None:
                continue
            seen.add(name)
            if kind == FormFieldKind.CHECKBOX:
                value = widget.field_value not in UNCHECKED_VALUES
            else:
                value = widget.field_value or ''
            fields.append(PdfFormField(name=name, kind=kind, value=value))
    return fields


def _writable(widget, field: PdfFormField) -> bool:
    if widget.field_flags & fitz.PDF_FIELD_IS_READ_ONLY:
        logger.debug(f"Skipping read-only field '{widget.field_name}'")
        return False
    if WIDGET_KINDS.get(widget.field_type) != field.kind:
        logger.debug(f"Skipping field '{widget.field_name}': kind mismatch")
        return False
    return True


def _apply(widget, field: PdfFormField) -> None:
    if field.kind == FormFieldKind.CHECKBOX:
        widget.field_value = widget.on_state() if field.value else 'Off'
    else:
        widget.field_value = str(field.value)


def write_fields(pdf_bytes: bytes, fields: Sequence[PdfFormField],
                 append_text: Iterable[str] = ()) -> bytes:
    """
    Write field values into a copy of the PDF.

    Fields that no longer exist, are read-only, or have a different kind
    are skipped. The appearance stream of every widget in the form, written
    or not, is regenerated before saving. Lines in append_text are written
    top-to-bottom on page one.
    """
    by_name = {f.name: f for f in fields}
    applied = set()

    with _open_pdf(pdf_bytes) as doc:
        for widget in _widgets(doc):
            field = by_name.get(widget.field_name)
            if field is not None and _writable(widget, field):
                try:
                    _apply(widget, field)
                    applied.add(field.name)
                except (RuntimeError, ValueError) as e:
                    logger.warning(f"Could not write field '{widget.field_name}': {e}")
            try:
                widget.update()
            except (RuntimeError, ValueError) as e:
                logger.warning(f"Could not refresh appearance of '{widget.field_name}': {e}")

        missing = set(by_name) - applied
        if missing:
            logger.info(f"Skipped {len(missing)} field(s) not writable in this PDF: {sorted(missing)}")

        lines = [line for line in (t.strip() for t in append_text) if line]
        if lines and doc.page_count:
            page = doc[0]
            y = APPEND_TEXT_TOP
            for line in lines:
                page.insert_text((APPEND_TEXT_X, y), line, fontsize=APPEND_TEXT_SIZE, fontname='helv')
                y += APPEND_TEXT_STEP

        return doc.tobytes(garbage=3, deflate=True)
