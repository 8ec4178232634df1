# services/template_service.py
"""
Contract template management.

A template is either editable markup (stored with {{key}} placeholders)
or an uploaded PDF with native form fields. Uploads without any fillable
field are converted to editable markup through text extraction.
"""

import logging
from typing import List, Optional

from flask import current_app

from models import db, ContractTemplate
from services import document_store
from services.documents import (
    TemplateKind, PdfFormField, ConfigurationError, NotFoundError,
    UnprocessableInputError, extract, text_to_paragraphs, to_editable,
    from_editable, page_count, read_fields, write_fields, pdf_to_docx
)

logger = logging.getLogger(__name__)


def _ocr_options() -> dict:
    return {
        'scale': current_app.config.get('OCR_SCALE', 2.0),
        'language': current_app.config.get('OCR_LANGUAGE', 'eng'),
    }


def _clean_name(name) -> str:
    name = (name or '').strip() if isinstance(name, str) else ''
    if not name:
        raise UnprocessableInputError("Template name is required", field='name')
    return name


def get_template(template_id: int) -> ContractTemplate:
    template = ContractTemplate.query.get(template_id)
    if template is None:
        raise NotFoundError(f"Template {template_id} not found")
    return template


def list_templates() -> List[ContractTemplate]:
    return ContractTemplate.query.order_by(ContractTemplate.name).all()


def editable_html(template: ContractTemplate) -> Optional[str]:
    """Editor markup for a markup template, None for an uploaded file."""
    kind = template.template_kind
    if kind is TemplateKind.EDITABLE_MARKUP:
        return to_editable(template.content_html or '')
    elif kind is TemplateKind.UPLOADED_FILE:
        return None
    raise ConfigurationError(f"Unknown template kind: {kind}")


def _set_markup(template: ContractTemplate, markup: str) -> None:
    """Switch a template to the markup kind, dropping any stored file."""
    had_file = template.file_name is not None
    template.kind = TemplateKind.EDITABLE_MARKUP.value
    template.content_html = markup
    template.file_name = None
    if had_file and template.id is not None:
        document_store.delete_template_file(template.id)


def _convert_pdf(template: ContractTemplate, pdf_bytes: bytes) -> str:
    result = extract(pdf_bytes, **_ocr_options())
    if result.degraded:
        logger.warning(f"Template '{template.name}': no text recovered, using placeholder paragraph")
    else:
        logger.info(f"Template '{template.name}': {len(result.paragraphs)} paragraph(s) via {result.method}")
    return text_to_paragraphs(result.paragraphs)


def _apply_upload(template: ContractTemplate, pdf_bytes: bytes) -> None:
    """
    Route an uploaded PDF: keep it as a file when it has fillable fields,
    otherwise extract its text into editable markup.

    The template must already have an id.
    """
    fields = read_fields(pdf_bytes)
    if fields:
        document_store.write_template_file(template.id, pdf_bytes)
        template.kind = TemplateKind.UPLOADED_FILE.value
        template.file_name = document_store.file_name(template.id)
        template.content_html = None
        logger.info(f"Template {template.id}: stored PDF with {len(fields)} fillable field(s)")
    else:
        _set_markup(template, _convert_pdf(template, pdf_bytes))


def _commit_or_remove_file(template: ContractTemplate) -> None:
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        if template.id is not None:
            document_store.delete_template_file(template.id)
        raise


def create_template(name, file_bytes: bytes = None, markup_html: str = None) -> ContractTemplate:
    """
    Create a template from either uploaded PDF bytes or markup.

    Raises:
        UnprocessableInputError: missing name, both or neither source given,
            or bytes that are not a readable PDF
    """
    name = _clean_name(name)
    if (file_bytes is None) == (markup_html is None):
        raise UnprocessableInputError("Provide exactly one of fileBytes, markupHtml", field='fileBytes')

    template = ContractTemplate(name=name, kind=TemplateKind.EDITABLE_MARKUP.value)
    if markup_html is not None:
        template.content_html = markup_html
        db.session.add(template)
        db.session.commit()
        logger.info(f"Created markup template {template.id} '{name}'")
        return template

    # Fail on unreadable input before anything is written
    page_count(file_bytes)
    db.session.add(template)
    db.session.flush()
    _apply_upload(template, file_bytes)
    _commit_or_remove_file(template)
    logger.info(f"Created template {template.id} '{name}' as {template.kind}")
    return template


def update_template(template_id: int, name=None, markup_html: str = None,
                    editable_html: str = None) -> ContractTemplate:
    """Rename a template and/or replace its markup (stored or editor form)."""
    template = get_template(template_id)
    if markup_html is not None and editable_html is not None:
        raise UnprocessableInputError("Provide markupHtml or editableHtml, not both", field='markupHtml')

    if name is not None:
        template.name = _clean_name(name)

    if markup_html is not None or editable_html is not None:
        if template.template_kind is not TemplateKind.EDITABLE_MARKUP:
            raise UnprocessableInputError(
                "Template is an uploaded file; convert it before editing markup", field='markupHtml'
            )
        template.content_html = markup_html if markup_html is not None else from_editable(editable_html)

    db.session.commit()
    return template


def get_template_file(template_id: int) -> bytes:
    template = get_template(template_id)
    data = document_store.read_template_file(template.id) if template.has_file else None
    if data is None:
        raise NotFoundError(f"Template {template_id} has no stored file")
    return data


def export_docx(template_id: int) -> bytes:
    """Text of the template PDF as an editable Word document."""
    template = get_template(template_id)
    return pdf_to_docx(get_template_file(template.id), title=template.name)


def replace_template_file(template_id: int, file_bytes: bytes) -> ContractTemplate:
    """Replace a template's backing PDF, routing it like a new upload."""
    template = get_template(template_id)
    previous = document_store.read_template_file(template.id)
    page_count(file_bytes)
    _apply_upload(template, file_bytes)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        document_store.restore_file(document_store.TEMPLATES_FOLDER, template.id, previous)
        raise
    return template


def delete_template(template_id: int) -> None:
    template = get_template(template_id)
    db.session.delete(template)
    db.session.commit()
    document_store.delete_template_file(template_id)
    logger.info(f"Deleted template {template_id}")


def _require_file(template: ContractTemplate) -> bytes:
    if template.template_kind is not TemplateKind.UPLOADED_FILE:
        raise UnprocessableInputError("Template has no fillable fields", field='fields')
    data = document_store.read_template_file(template.id)
    if data is None:
        raise NotFoundError(f"Template {template.id} has no stored file")
    return data


def get_fields(template_id: int) -> List[PdfFormField]:
    return read_fields(_require_file(get_template(template_id)))


def save_fields(template_id: int, fields: List[PdfFormField], append_text=()) -> ContractTemplate:
    """Write form values (and optional free text) into the stored template PDF."""
    template = get_template(template_id)
    updated = write_fields(_require_file(template), fields, append_text=append_text)
    document_store.write_template_file(template.id, updated)
    template.file_name = document_store.file_name(template.id)
    db.session.commit()
    return template


def convert_to_markup(template_id: int) -> ContractTemplate:
    """Force an uploaded template through text extraction."""
    template = get_template(template_id)
    kind = template.template_kind
    if kind is TemplateKind.EDITABLE_MARKUP:
        return template
    elif kind is TemplateKind.UPLOADED_FILE:
        pdf_bytes = _require_file(template)
        markup = _convert_pdf(template, pdf_bytes)
        template.kind = TemplateKind.EDITABLE_MARKUP.value
        template.content_html = markup
        template.file_name = None
        db.session.commit()
        document_store.delete_template_file(template.id)
        return template
    raise ConfigurationError(f"Unknown template kind: {kind}")
