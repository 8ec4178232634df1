"""
Merge Engine

Substitutes {{key}} placeholders in stored template markup with booking
values. Signature slots become a plain signature line; the signature
image itself is stamped onto the rendered PDF during signing.
"""

import html
import logging
from typing import Any, Dict, Optional

from .field_resolver import FieldResolver
from .loader import MergeFieldLoader
from .markup import parse_markup, serialize
from .types import Element, FieldMarker, Node, StructuredDocument, TextRun

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURE_LINE = 'Signature: _________________________'


def _substitute(node: Node, values: Dict[str, str]) -> Node:
    if isinstance(node, FieldMarker):
        definition = MergeFieldLoader.get(node.key)
        if definition is not None and definition.signature:
            text = definition.placeholder or DEFAULT_SIGNATURE_LINE
        else:
            text = values.get(node.key) or ''
        return TextRun(html.escape(text, quote=False))
    if isinstance(node, Element):
        return Element(
            tag=node.tag,
            raw_open=node.raw_open,
            children=tuple(_substitute(child, values) for child in node.children),
            raw_close=node.raw_close,
            attrs=node.attrs,
        )
    return node


def merge(markup: str, values: Dict[str, Any]) -> str:
    """
    Replace every known placeholder in markup with its value.

    Values are plain text and are escaped on the way in. Keys missing
    from values become empty strings; unknown placeholder keys are left
    untouched.
    """
    document = parse_markup(markup)
    text_values = {key: '' if value is None else str(value) for key, value in values.items()}
    merged = StructuredDocument(nodes=tuple(_substitute(n, text_values) for n in document.nodes))
    return serialize(merged)


def merge_context(markup: str, context: Dict[str, Any], overrides: Optional[Dict[str, Any]] = None) -> str:
    """
    Resolve the merge-field vocabulary against a booking context and merge.

    Args:
        markup: Stored template markup
        context: Dict with 'contract', 'project', 'client' entries
        overrides: Explicit values that win over resolved ones
    """
    values = FieldResolver.resolve(context)
    if overrides:
        values.update(overrides)
    logger.debug(f"Merging template with {len([v for v in values.values() if v])} non-empty field(s)")
    return merge(markup, values)
