"""
Contract Document Core

A configuration-driven pipeline for contract templates and signing.
Merge fields are defined in YAML and substituted into template markup,
which is rendered to PDF and stamped with signatures.

Usage:
    from services.documents import MergeFieldLoader, merge_context, render

    # On app startup
    MergeFieldLoader.load_all()

    # When drafting a contract
    markup = merge_context(template.content_html, context)
    pdf_bytes = render(markup)
    signed = stamp_signature(pdf_bytes, capture(payload), 'Jane Doe (Client)')
"""

from .types import (
    TemplateKind,
    ContractStatus,
    FormFieldKind,
    MergeFieldDefinition,
    TextRun,
    RawTag,
    FieldMarker,
    Element,
    StructuredDocument,
    PdfFormField,
    ExtractionResult
)

from .exceptions import (
    DocumentError,
    ConfigurationError,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    AlreadySignedError,
    UnprocessableInputError
)

from .loader import MergeFieldLoader
from .field_resolver import FieldResolver
from .transforms import TRANSFORMS, apply_transform, register_transform
from .markup import parse_markup, to_editable, from_editable, text_to_paragraphs
from .merge import merge, merge_context
from .extractor import extract, extract_html, page_count
from .renderer import render
from .form_fields import read_fields, write_fields
from .signature_capture import capture, from_strokes, from_typed_name, decode_signature_image
from .stamping import stamp_signature
from .word_export import pdf_to_docx, docx_filename

__all__ = [
    # Types
    'TemplateKind',
    'ContractStatus',
    'FormFieldKind',
    'MergeFieldDefinition',
    'TextRun',
    'RawTag',
    'FieldMarker',
    'Element',
    'StructuredDocument',
    'PdfFormField',
    'ExtractionResult',

    # Exceptions
    'DocumentError',
    'ConfigurationError',
    'ValidationError',
    'NotFoundError',
    'UnauthorizedError',
    'AlreadySignedError',
    'UnprocessableInputError',

    # Vocabulary
    'MergeFieldLoader',
    'FieldResolver',
    'TRANSFORMS',
    'apply_transform',
    'register_transform',

    # Markup & merge
    'parse_markup',
    'to_editable',
    'from_editable',
    'text_to_paragraphs',
    'merge',
    'merge_context',

    # PDF
    'extract',
    'extract_html',
    'page_count',
    'render',
    'read_fields',
    'write_fields',
    'capture',
    'from_strokes',
    'from_typed_name',
    'decode_signature_image',
    'stamp_signature',

    # Word
    'pdf_to_docx',
    'docx_filename',
]
