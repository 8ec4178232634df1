"""
Template Markup & Merge Tests

Covers the stored <-> editable round trip and placeholder substitution.
"""

import html
import re

from services.documents import (
    FieldMarker,
    Element,
    TextRun,
    parse_markup,
    to_editable,
    from_editable,
    text_to_paragraphs,
    merge,
    merge_context
)
from services.documents.markup import parse_editable, serialize

TAG_RE = re.compile(r'<[^>]+>')


def visible_text(markup: str) -> str:
    return html.unescape(TAG_RE.sub('', markup))


class TestParse:
    """Test the document tree built from stored markup."""

    def test_known_placeholder_becomes_marker(self):
        document = parse_markup('<p>Dear {{client_name}},</p>')
        markers = document.field_markers()
        assert markers == [FieldMarker(key='client_name', label='Client name')]

    def test_unknown_placeholder_stays_text(self):
        document = parse_markup('<p>{{not_a_field}}</p>')
        assert document.field_markers() == []
        paragraph = document.nodes[0]
        assert isinstance(paragraph, Element)
        assert paragraph.children == (TextRun('{{not_a_field}}'),)

    def test_signature_slot_is_marker(self):
        document = parse_markup('<p>{{signature_client}}</p>')
        assert [m.key for m in document.field_markers()] == ['signature_client']

    def test_malformed_markup_serializes_unchanged(self):
        """Stray closers and unclosed elements survive a parse."""
        source = '</div><p>open <b>bold</p> tail <br> {{venue}}'
        assert serialize(parse_markup(source)) == source


class TestRoundTrip:
    """Stored -> editable -> stored must be byte-exact."""

    SAMPLES = [
        '<p>{{client_name}} — {{wedding_date}}</p>',
        '<h2 class="title">{{project_title}}</h2>\n<p>Fee: {{performance_fee}}</p>',
        '<!-- header --><div><p>{{signature_client}}</p><p>{{signature_vendor}}</p></div>',
        '<p>No fields at all &amp; an entity</p>',
        '<ul><li>{{venue}}<li>{{package_type}}</ul>',
        'Plain {{client_email}} text with {{unknown}} token',
        '',
    ]

    def test_round_trip(self):
        for markup in self.SAMPLES:
            assert from_editable(to_editable(markup)) == markup

    def test_editable_span_shape(self):
        editable = to_editable('<p>{{venue}}</p>')
        assert editable == (
            '<p><span data-merge="venue" contenteditable="false" '
            'class="merge-field">Venue</span></p>'
        )

    def test_any_data_merge_element_is_accepted(self):
        """Editor output may re-shape the span; data-merge is what counts."""
        editable = '<p>Hi <em data-merge="client_name">whatever</em>!</p>'
        assert from_editable(editable) == '<p>Hi {{client_name}}!</p>'

    def test_unknown_data_merge_key_uses_inner_text_label(self):
        document = parse_editable('<span data-merge="custom_key">Custom</span>')
        assert document.field_markers() == [FieldMarker(key='custom_key', label='Custom')]


class TestMerge:
    """Test placeholder substitution."""

    def test_scenario_literal_text(self):
        """Ampersands render literally and placeholders are fully gone."""
        merged = merge(
            '<p>{{client_name}} — {{wedding_date}}</p>',
            {'client_name': 'A & B', 'wedding_date': '2025-06-14'},
        )
        assert '{{' not in merged
        assert visible_text(merged) == 'A & B — 2025-06-14'

    def test_values_cannot_inject_markup(self):
        merged = merge('<p>{{venue}}</p>', {'venue': '<script>x</script>'})
        assert '<script>' not in merged
        assert visible_text(merged) == '<script>x</script>'

    def test_missing_values_become_empty(self):
        """merge never raises for omitted optional fields."""
        merged = merge('<p>[{{venue}}][{{package_type}}]</p>', {})
        assert merged == '<p>[][]</p>'

    def test_unknown_placeholder_untouched(self):
        merged = merge('<p>{{mystery}}</p>', {'mystery': 'value'})
        assert merged == '<p>{{mystery}}</p>'

    def test_signature_slots_become_lines(self):
        merged = merge('<p>{{signature_client}}</p>', {})
        assert merged == '<p>Signature: _________________________</p>'

    def test_merge_context_required_fields_present(self):
        """Required fields always appear even when every optional one is absent."""
        context = {
            'contract': {'client_name': 'Jane Doe', 'title': 'Doe Wedding'},
            'project': None,
            'client': None,
        }
        markup = ''.join(f'<p>{{{{{key}}}}}</p>' for key in [
            'client_name', 'client_email', 'client_phone', 'wedding_date',
            'venue', 'package_type', 'performance_fee', 'project_title',
        ])
        merged = merge_context(markup, context)
        assert '{{' not in merged
        assert 'Jane Doe' in merged
        assert 'Doe Wedding' in merged

    def test_merge_context_overrides_win(self):
        context = {'contract': {'client_name': 'Jane Doe', 'title': 'T'}}
        merged = merge_context('<p>{{client_name}}</p>', context, overrides={'client_name': 'Override'})
        assert merged == '<p>Override</p>'


class TestParagraphs:
    def test_text_to_paragraphs_escapes(self):
        assert text_to_paragraphs(['a < b', 'c']) == '<p>a &lt; b</p>\n<p>c</p>'

    def test_empty(self):
        assert text_to_paragraphs([]) == ''
