# routes/helpers.py
"""
Shared helpers for the template and contract routes.
"""

import base64
import binascii
import io
import logging

from flask import jsonify, send_file

from services.documents import DocumentError, AlreadySignedError, UnprocessableInputError
from services.documents.word_export import DOCX_MIMETYPE

logger = logging.getLogger(__name__)


def decode_file_bytes(data: dict, key: str = 'fileBytes', required: bool = True):
    """
    Decode a base64 binary payload field.

    Returns None when the field is absent and not required.
    """
    value = data.get(key)
    if value is None:
        if required:
            raise UnprocessableInputError(f"{key} is required", field=key)
        return None
    if not isinstance(value, str) or not value:
        raise UnprocessableInputError(f"{key} must be a base64 string", field=key)
    if value.startswith('data:') and ',' in value:
        value = value.split(',', 1)[1]
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise UnprocessableInputError(f"{key} is not valid base64", field=key)


def pdf_response(pdf_bytes: bytes, download_name: str):
    """Send raw PDF bytes."""
    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype='application/pdf',
        download_name=download_name,
    )


def docx_response(docx_bytes: bytes, download_name: str):
    return send_file(
        io.BytesIO(docx_bytes),
        mimetype=DOCX_MIMETYPE,
        as_attachment=True,
        download_name=download_name,
    )


def document_error_response(error: DocumentError):
    """Turn a document-system exception into the JSON error shape."""
    body = {'success': False, 'error': str(error)}
    if isinstance(error, AlreadySignedError):
        body['already_signed'] = True
    field = getattr(error, 'field', None) or getattr(error, 'field_key', None)
    if field:
        body['field'] = field
    if error.status_code >= 500:
        logger.error(f"Document error: {error}")
    return jsonify(body), error.status_code


def register_error_handlers(blueprint) -> None:
    blueprint.register_error_handler(DocumentError, document_error_response)
