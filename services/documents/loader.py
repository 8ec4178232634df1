"""
Merge Field Loader

Loads, validates, and caches the merge-field vocabulary from YAML.
Validates the vocabulary on startup and fails fast if it is invalid.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import jsonschema
import yaml

from .types import MergeFieldDefinition
from .exceptions import ConfigurationError, ValidationError
from .transforms import TRANSFORMS

logger = logging.getLogger(__name__)

# Paths
DOCUMENTS_DIR = Path(__file__).parent.parent.parent / 'documents'
SCHEMA_DIR = DOCUMENTS_DIR / 'schema'
VOCABULARY_FILE = DOCUMENTS_DIR / 'merge_fields.yml'

# Context roots a source path may start from
CONTEXT_ROOTS = ('contract', 'project', 'client')


class MergeFieldLoader:
    """
    Singleton loader for the merge-field vocabulary.

    Usage:
        # On app startup
        MergeFieldLoader.load_all()

        # During request handling
        definition = MergeFieldLoader.get('client_name')
    """

    _fields: Dict[str, MergeFieldDefinition] = {}
    _schemas: Dict[str, dict] = {}
    _validated: bool = False
    _source: Optional[Path] = None

    @classmethod
    def load_all(cls, path: Optional[Path] = None) -> None:
        """
        Load and validate the vocabulary file.

        Raises ConfigurationError listing every problem found.
        """
        path = Path(path) if path else VOCABULARY_FILE
        cls._fields = {}
        cls._validated = False
        cls._load_schemas()

        if not path.exists():
            raise ConfigurationError(f"Merge field vocabulary not found: {path}")

        try:
            raw = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigurationError(f"{path.name}: YAML syntax error - {e}")

        errors = cls._collect_errors(raw)
        if errors:
            error_msg = "Merge field configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

        for field_data in raw.get('fields', []):
            definition = MergeFieldDefinition.from_dict(field_data)
            cls._fields[definition.key] = definition
        for block_data in raw.get('signature_blocks', []):
            definition = MergeFieldDefinition.from_dict(block_data, signature=True)
            cls._fields[definition.key] = definition

        cls._source = path
        cls._validated = True
        logger.info(f"Loaded {len(cls._fields)} merge field definition(s) from {path.name}")

    @classmethod
    def _load_schemas(cls) -> None:
        """Load JSON schemas for validation."""
        cls._schemas.clear()

        if not SCHEMA_DIR.exists():
            logger.warning(f"Schema directory not found: {SCHEMA_DIR}")
            return

        for schema_file in SCHEMA_DIR.glob('v*.json'):
            version = schema_file.stem  # e.g., "v1.0"
            cls._schemas[version] = json.loads(schema_file.read_text())
            logger.debug(f"Loaded schema: {version}")

    @classmethod
    def _collect_errors(cls, raw) -> List[str]:
        """Run schema and business-rule validation, returning all messages."""
        if not raw:
            return ["Empty merge field vocabulary"]

        errors = []
        schema_version = str(raw.get('schema_version', '1.0'))
        schema = cls._schemas.get(f"v{schema_version}")
        if schema is None:
            errors.append(f"Unknown schema version: {schema_version}")
        else:
            try:
                jsonschema.validate(raw, schema)
            except jsonschema.ValidationError as e:
                errors.append(f"Schema validation failed: {e.message}")
                return errors

        try:
            cls._validate_business_rules(raw)
        except ValidationError as e:
            errors.append(str(e))
        return errors

    @classmethod
    def _validate_business_rules(cls, raw: dict) -> None:
        """Keys are unique across fields and signature blocks; sources and
        transforms reference things that exist."""
        keys = [f['key'] for f in raw.get('fields', [])]
        keys += [b['key'] for b in raw.get('signature_blocks', [])]
        if len(keys) != len(set(keys)):
            duplicates = {k for k in keys if keys.count(k) > 1}
            raise ValidationError(f"Duplicate merge field keys: {sorted(duplicates)}")

        for field_data in raw.get('fields', []):
            key = field_data['key']
            root = field_data['source'].split('.', 1)[0]
            if root not in CONTEXT_ROOTS:
                raise ValidationError(
                    f"Field '{key}' has unknown source root '{root}'. "
                    f"Available roots: {list(CONTEXT_ROOTS)}",
                    field_key=key
                )
            transform = field_data.get('transform')
            if transform and transform not in TRANSFORMS:
                raise ValidationError(f"Field '{key}' uses unknown transform '{transform}'", field_key=key)

    @classmethod
    def ensure_loaded(cls) -> None:
        if not cls._validated:
            cls.load_all()

    @classmethod
    def get(cls, key: str) -> Optional[MergeFieldDefinition]:
        """Get a definition by key. Returns None for unknown keys."""
        cls.ensure_loaded()
        return cls._fields.get(key)

    @classmethod
    def all(cls) -> List[MergeFieldDefinition]:
        """All definitions, merge fields first, in file order."""
        cls.ensure_loaded()
        return list(cls._fields.values())

    @classmethod
    def merge_fields(cls) -> List[MergeFieldDefinition]:
        return [d for d in cls.all() if not d.signature]

    @classmethod
    def signature_blocks(cls) -> List[MergeFieldDefinition]:
        return [d for d in cls.all() if d.signature]

    @classmethod
    def labels(cls) -> Dict[str, str]:
        """Map of key -> label for every known key."""
        return {d.key: d.label for d in cls.all()}

    @classmethod
    def is_loaded(cls) -> bool:
        return cls._validated

    @classmethod
    def clear(cls) -> None:
        """Clear cached definitions. Mainly for testing."""
        cls._fields = {}
        cls._validated = False
        cls._source = None

    @classmethod
    def validate_yaml_content(cls, yaml_content: str) -> List[str]:
        """
        Validate vocabulary YAML without loading it.

        Returns a list of error messages (empty if valid).
        """
        if not cls._schemas:
            cls._load_schemas()
        try:
            raw = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            return [f"YAML syntax error: {e}"]
        return cls._collect_errors(raw)
