"""
Field Resolver

Resolves merge-field values from a booking context using source path
expressions.

Source path syntax:
    contract.client_name    -> context['contract'].client_name
    client.email            -> context['client'].email
    project.venue           -> context['project'].venue
    contract.extras[0]      -> context['contract'].extras[0]

Any root may be a model instance, a plain object, or a dict.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from .loader import MergeFieldLoader
from .transforms import apply_transform
from .types import MergeFieldDefinition

logger = logging.getLogger(__name__)


class FieldResolver:
    """
    Turns the merge-field vocabulary into concrete string values.

    The context is a dict containing any of:
        - 'contract': Contract row (or dict)
        - 'project': booking the contract belongs to
        - 'client': client record of that booking
    """

    # Pattern for bracket notation: name[index]
    BRACKET_PATTERN = re.compile(r'^([a-zA-Z_][a-zA-Z0-9_]*)\[(\d+)\]$')

    @classmethod
    def resolve(cls, context: Dict[str, Any],
                definitions: Optional[List[MergeFieldDefinition]] = None) -> Dict[str, str]:
        """
        Resolve every merge field to a string.

        Missing values resolve to "" and never raise. Signature slots
        are not included; the merge engine handles them.
        """
        if definitions is None:
            definitions = MergeFieldLoader.merge_fields()

        values = {}
        for definition in definitions:
            if definition.signature:
                continue
            raw_value = cls.resolve_path(definition.source, context)
            values[definition.key] = apply_transform(raw_value, definition.transform)
            if definition.required and not values[definition.key]:
                logger.warning(f"Required merge field '{definition.key}' resolved empty")
        return values

    @classmethod
    def resolve_path(cls, source_path: Optional[str], context: Dict[str, Any]) -> Any:
        """
        Resolve a source path to a value, or None if any step is missing.
        """
        if not source_path:
            return None

        parts = source_path.split('.')
        root_key = parts[0]
        if root_key not in context:
            logger.debug(f"Root key '{root_key}' not in context")
            return None

        current = context[root_key]
        for part in parts[1:]:
            if current is None:
                return None
            current = cls._get_value(current, part)
        return current

    @classmethod
    def _get_value(cls, obj: Any, part: str) -> Any:
        """Get a value by attribute, dict key, or bracket index."""
        bracket_match = cls.BRACKET_PATTERN.match(part)
        if bracket_match:
            collection = cls._get_attr_or_key(obj, bracket_match.group(1))
            index = int(bracket_match.group(2))
            if isinstance(collection, (list, tuple)) and 0 <= index < len(collection):
                return collection[index]
            return None

        return cls._get_attr_or_key(obj, part)

    @classmethod
    def _get_attr_or_key(cls, obj: Any, key: str) -> Any:
        if isinstance(obj, dict):
            return obj.get(key)
        return getattr(obj, key, None)
