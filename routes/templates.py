# routes/templates.py
"""
Contract template routes.

Binary documents travel as base64 strings in JSON bodies; GET .../file
returns the raw PDF.
"""

from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required

from services import template_service
from services.documents import PdfFormField, UnprocessableInputError, docx_filename
from .helpers import decode_file_bytes, docx_response, pdf_response, register_error_handlers

templates_bp = Blueprint('templates', __name__, url_prefix='/templates')
register_error_handlers(templates_bp)


def _template_payload(template):
    payload = template.to_dict()
    payload['editableHtml'] = template_service.editable_html(template)
    payload['markupHtml'] = template.content_html
    return payload


@templates_bp.route('', methods=['GET'])
@login_required
def list_templates():
    templates = template_service.list_templates()
    return jsonify({'success': True, 'templates': [t.to_dict() for t in templates]})


@templates_bp.route('', methods=['POST'])
@login_required
def create_template():
    """Create a template from markupHtml or an uploaded PDF (fileBytes)."""
    data = request.get_json(silent=True) or {}
    file_bytes = decode_file_bytes(data, required=False)
    template = template_service.create_template(
        data.get('name'),
        file_bytes=file_bytes,
        markup_html=data.get('markupHtml'),
    )
    current_app.logger.info(f"Template {template.id} created ({template.kind})")
    return jsonify({'success': True, 'id': template.id, 'kind': template.kind}), 201


@templates_bp.route('/<int:template_id>', methods=['GET'])
@login_required
def get_template(template_id):
    template = template_service.get_template(template_id)
    return jsonify({'success': True, 'template': _template_payload(template)})


@templates_bp.route('/<int:template_id>', methods=['PATCH'])
@login_required
def update_template(template_id):
    """Rename and/or replace markup. Accepts stored (markupHtml) or editor (editableHtml) form."""
    data = request.get_json(silent=True) or {}
    template = template_service.update_template(
        template_id,
        name=data.get('name'),
        markup_html=data.get('markupHtml'),
        editable_html=data.get('editableHtml'),
    )
    return jsonify({'success': True, 'template': _template_payload(template)})


@templates_bp.route('/<int:template_id>', methods=['DELETE'])
@login_required
def delete_template(template_id):
    template_service.delete_template(template_id)
    return jsonify({'success': True})


@templates_bp.route('/<int:template_id>/file', methods=['GET'])
@login_required
def get_template_file(template_id):
    data = template_service.get_template_file(template_id)
    return pdf_response(data, f"template-{template_id}.pdf")


@templates_bp.route('/<int:template_id>/docx', methods=['GET'])
@login_required
def export_template_docx(template_id):
    template = template_service.get_template(template_id)
    data = template_service.export_docx(template.id)
    return docx_response(data, docx_filename(template.name))


@templates_bp.route('/<int:template_id>/file', methods=['PUT'])
@login_required
def replace_template_file(template_id):
    data = request.get_json(silent=True) or {}
    template = template_service.replace_template_file(template_id, decode_file_bytes(data))
    return jsonify({'success': True, 'id': template.id, 'kind': template.kind})


@templates_bp.route('/<int:template_id>/fields', methods=['GET'])
@login_required
def get_fields(template_id):
    fields = template_service.get_fields(template_id)
    return jsonify({'success': True, 'fields': [f.to_dict() for f in fields]})


@templates_bp.route('/<int:template_id>/fields', methods=['PUT'])
@login_required
def save_fields(template_id):
    """Write form values and optional free-text lines into the template PDF."""
    data = request.get_json(silent=True) or {}
    raw_fields = data.get('fields') or []
    append_text = data.get('appendText') or []
    if isinstance(append_text, str):
        append_text = append_text.splitlines()
    if not isinstance(raw_fields, list) or not isinstance(append_text, list):
        raise UnprocessableInputError("fields and appendText must be lists", field='fields')

    try:
        fields = [PdfFormField.from_dict(f) for f in raw_fields]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise UnprocessableInputError(f"Invalid field entry: {e}", field='fields')

    template_service.save_fields(template_id, fields, append_text=[str(line) for line in append_text])
    return jsonify({'success': True, 'fields': [f.to_dict() for f in template_service.get_fields(template_id)]})


@templates_bp.route('/<int:template_id>/convert', methods=['POST'])
@login_required
def convert_template(template_id):
    """Turn an uploaded template into editable markup via text extraction."""
    template = template_service.convert_to_markup(template_id)
    return jsonify({'success': True, 'template': _template_payload(template)})
