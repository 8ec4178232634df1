"""
Merge Field Vocabulary Tests

Validates the merge-field vocabulary file, its transforms and value
resolution on every test run, so a bad config never reaches deployment.

Run with: python -m pytest tests/test_merge_fields.py -v
"""

from datetime import date
from decimal import Decimal

import pytest

from services.documents import (
    MergeFieldLoader,
    FieldResolver,
    ConfigurationError,
    apply_transform,
    register_transform,
    TRANSFORMS
)
from services.documents.transforms import transform_currency_plain, transform_phone


VALID_YAML = """
schema_version: "1.0"
fields:
  - key: client_name
    label: Client name
    source: contract.client_name
signature_blocks:
  - key: signature_client
    label: Client's signature
    placeholder: "Signature: ___"
"""


class MockContract:
    """Mock Contract row for resolution."""
    client_name = "A & B"
    title = "Smith Wedding"
    value = Decimal("5500")
    wedding_date = date(2025, 6, 14)
    venue = "The Grove"
    package_type = None


class TestMergeFieldLoader:
    """Test vocabulary loading and validation."""

    def test_load_all_succeeds(self):
        """The shipped vocabulary should load without errors."""
        MergeFieldLoader.load_all()
        assert MergeFieldLoader.is_loaded()

    def test_vocabulary_keys(self):
        """All eight merge fields and both signature slots are declared."""
        keys = [d.key for d in MergeFieldLoader.merge_fields()]
        assert keys == [
            'client_name', 'client_email', 'client_phone', 'wedding_date',
            'venue', 'package_type', 'performance_fee', 'project_title',
        ]
        slots = [d.key for d in MergeFieldLoader.signature_blocks()]
        assert slots == ['signature_client', 'signature_vendor']

    def test_required_fields(self):
        """Client name and project title are the required fields."""
        required = {d.key for d in MergeFieldLoader.all() if d.required}
        assert required == {'client_name', 'project_title'}

    def test_labels_cover_every_key(self):
        labels = MergeFieldLoader.labels()
        assert labels['performance_fee'] == 'Performance fee'
        assert labels['signature_vendor'] == 'Vendor / Agency signature'

    def test_unknown_key_returns_none(self):
        assert MergeFieldLoader.get('nope') is None

    def test_valid_yaml_content(self):
        assert MergeFieldLoader.validate_yaml_content(VALID_YAML) == []

    def test_duplicate_keys_rejected(self):
        content = VALID_YAML.replace('signature_client', 'client_name')
        errors = MergeFieldLoader.validate_yaml_content(content)
        assert any('Duplicate' in e for e in errors)

    def test_unknown_source_root_rejected(self):
        content = VALID_YAML.replace('contract.client_name', 'invoice.client_name')
        errors = MergeFieldLoader.validate_yaml_content(content)
        assert any("unknown source root 'invoice'" in e for e in errors)

    def test_unknown_transform_rejected(self):
        content = VALID_YAML.replace('source: contract.client_name',
                                     'source: contract.client_name\n    transform: shout')
        errors = MergeFieldLoader.validate_yaml_content(content)
        assert any("unknown transform 'shout'" in e for e in errors)

    def test_schema_rejects_bad_key(self):
        content = VALID_YAML.replace('key: client_name', 'key: Client-Name')
        errors = MergeFieldLoader.validate_yaml_content(content)
        assert errors and errors[0].startswith('Schema validation failed')

    def test_yaml_syntax_error(self):
        errors = MergeFieldLoader.validate_yaml_content("fields: [unclosed")
        assert errors and 'YAML syntax error' in errors[0]

    def test_load_all_fails_fast(self, tmp_path):
        """A broken vocabulary file raises ConfigurationError at load."""
        bad = tmp_path / 'merge_fields.yml'
        bad.write_text(VALID_YAML.replace('contract.client_name', 'nowhere.client_name'))
        with pytest.raises(ConfigurationError):
            MergeFieldLoader.load_all(bad)
        assert not MergeFieldLoader.is_loaded()


class TestTransforms:
    """Test value formatting."""

    def test_currency_plain_whole(self):
        assert transform_currency_plain(5500) == '$5,500'
        assert transform_currency_plain(Decimal('2750.00')) == '$2,750'

    def test_currency_plain_with_cents(self):
        assert transform_currency_plain('5500.5') == '$5,500.50'

    def test_currency_plain_blank(self):
        assert transform_currency_plain(None) == ''
        assert transform_currency_plain('') == ''

    def test_phone(self):
        assert transform_phone('7135551234') == '(713) 555-1234'
        assert transform_phone('+1 713 555 1234') == '(713) 555-1234'
        assert transform_phone('555-12') == '555-12'

    def test_date_without_transform_is_iso(self):
        assert apply_transform(date(2025, 6, 14), None) == '2025-06-14'

    def test_named_date_transform(self):
        assert apply_transform('2025-06-14', 'date') == 'June 14, 2025'

    def test_none_is_empty(self):
        assert apply_transform(None, 'currency') == ''

    def test_register_transform(self):
        register_transform('initials', lambda v: ''.join(w[0] for w in str(v).split()))
        try:
            assert apply_transform('Aurora Sonnet', 'initials') == 'AS'
        finally:
            TRANSFORMS.pop('initials')


class TestFieldResolution:
    """Test resolving the vocabulary against a booking context."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.context = {
            'contract': MockContract(),
            'project': {'title': 'Smith Wedding'},
            'client': {'email': 'ab@example.com', 'phone': '7135551234'},
        }

    def test_resolve_all_fields(self):
        values = FieldResolver.resolve(self.context)
        assert values['client_name'] == 'A & B'
        assert values['client_email'] == 'ab@example.com'
        assert values['client_phone'] == '(713) 555-1234'
        assert values['wedding_date'] == '2025-06-14'
        assert values['performance_fee'] == '$5,500'
        assert values['project_title'] == 'Smith Wedding'

    def test_signature_slots_not_resolved(self):
        values = FieldResolver.resolve(self.context)
        assert 'signature_client' not in values

    def test_missing_optional_is_empty(self):
        """Missing values resolve to empty strings, never raise."""
        values = FieldResolver.resolve(self.context)
        assert values['package_type'] == ''

    def test_missing_client_does_not_raise(self):
        self.context['client'] = None
        values = FieldResolver.resolve(self.context)
        assert values['client_email'] == ''
        assert values['client_phone'] == ''

    def test_bracket_path(self):
        context = {'contract': {'extras': ['first', 'second']}}
        assert FieldResolver.resolve_path('contract.extras[1]', context) == 'second'

    def test_missing_path_returns_none(self):
        assert FieldResolver.resolve_path('contract.nonexistent', self.context) is None
        assert FieldResolver.resolve_path(None, self.context) is None
