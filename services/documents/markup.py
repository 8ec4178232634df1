"""
Template Markup

Parses stored template HTML into an immutable StructuredDocument and
serializes it back, in one of two forms:

    stored form    -> merge fields are {{key}} placeholders
    editable form  -> merge fields are non-editable labelled spans

Tags and text are kept exactly as written, so converting stored markup
to the editable form and back reproduces the input byte for byte.
"""

import html
import re
from typing import Dict, List, Optional, Tuple

from .loader import MergeFieldLoader
from .types import Element, FieldMarker, Node, RawTag, StructuredDocument, TextRun

PLACEHOLDER_PREFIX = '{{'
PLACEHOLDER_SUFFIX = '}}'
PLACEHOLDER_RE = re.compile(r'\{\{([A-Za-z0-9_]+)\}\}')

MERGE_ATTR = 'data-merge'
MERGE_FIELD_CLASS = 'merge-field'

TOKEN_RE = re.compile(r'<!--.*?-->|<![^<>]*>|</?[A-Za-z][^<>]*>', re.S)
TAG_NAME_RE = re.compile(r'^</?\s*([A-Za-z][A-Za-z0-9:-]*)')
ATTR_RE = re.compile(r'''([^\s"'=/<>]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+)))?''')

VOID_TAGS = frozenset([
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'source', 'track', 'wbr',
])


def placeholder(key: str) -> str:
    return f"{PLACEHOLDER_PREFIX}{key}{PLACEHOLDER_SUFFIX}"


def _parse_attrs(raw_tag: str) -> Tuple[Tuple[str, Optional[str]], ...]:
    name_match = TAG_NAME_RE.match(raw_tag)
    body = raw_tag[name_match.end():].rstrip('>').rstrip('/')
    attrs = []
    for match in ATTR_RE.finditer(body):
        value = next((g for g in match.groups()[1:] if g is not None), None)
        attrs.append((match.group(1).lower(), html.unescape(value) if value is not None else None))
    return tuple(attrs)


def _split_text(text: str, labels: Dict[str, str]) -> List[Node]:
    """Split character data into TextRuns and FieldMarkers for known keys."""
    nodes: List[Node] = []
    pos = 0
    for match in PLACEHOLDER_RE.finditer(text):
        key = match.group(1)
        if key not in labels:
            continue
        if match.start() > pos:
            nodes.append(TextRun(text[pos:match.start()]))
        nodes.append(FieldMarker(key=key, label=labels[key]))
        pos = match.end()
    if pos < len(text):
        nodes.append(TextRun(text[pos:]))
    return nodes


def _inner_text(nodes) -> str:
    parts = []
    for node in nodes:
        if isinstance(node, TextRun):
            parts.append(html.unescape(node.text))
        elif isinstance(node, Element):
            parts.append(_inner_text(node.children))
        elif isinstance(node, FieldMarker):
            parts.append(node.label)
    return ''.join(parts)


class _OpenElement:
    __slots__ = ('tag', 'raw_open', 'attrs', 'children')

    def __init__(self, tag, raw_open, attrs):
        self.tag = tag
        self.raw_open = raw_open
        self.attrs = attrs
        self.children: List[Node] = []

    @property
    def merge_key(self) -> Optional[str]:
        return dict(self.attrs).get(MERGE_ATTR)


def _build_tree(source: str, labels: Dict[str, str], editable: bool) -> StructuredDocument:
    root = _OpenElement('', '', ())
    stack = [root]

    def close_top(raw_close: str) -> None:
        open_el = stack.pop()
        if editable and open_el.merge_key:
            key = open_el.merge_key
            label = labels.get(key) or _inner_text(open_el.children)
            stack[-1].children.append(FieldMarker(key=key, label=label))
            return
        stack[-1].children.append(Element(
            tag=open_el.tag,
            raw_open=open_el.raw_open,
            children=tuple(open_el.children),
            raw_close=raw_close,
            attrs=open_el.attrs,
        ))

    def add_text(text: str) -> None:
        if not text:
            return
        if editable:
            stack[-1].children.append(TextRun(text))
        else:
            stack[-1].children.extend(_split_text(text, labels))

    pos = 0
    for match in TOKEN_RE.finditer(source):
        add_text(source[pos:match.start()])
        pos = match.end()
        raw = match.group(0)

        if raw.startswith('<!'):
            stack[-1].children.append(RawTag(raw))
            continue

        tag = TAG_NAME_RE.match(raw).group(1).lower()
        if raw.startswith('</'):
            # Close the nearest open element with this name; stray closers stay raw
            depth = next((i for i in range(len(stack) - 1, 0, -1) if stack[i].tag == tag), None)
            if depth is None:
                stack[-1].children.append(RawTag(raw))
                continue
            while len(stack) - 1 > depth:
                close_top('')
            close_top(raw)
        elif tag in VOID_TAGS or raw.endswith('/>'):
            stack[-1].children.append(RawTag(raw))
        else:
            stack.append(_OpenElement(tag, raw, _parse_attrs(raw)))

    add_text(source[pos:])
    while len(stack) > 1:
        close_top('')
    return StructuredDocument(nodes=tuple(root.children))


def parse_markup(markup: str, labels: Optional[Dict[str, str]] = None) -> StructuredDocument:
    """Parse stored markup; {{key}} tokens for known keys become FieldMarkers."""
    if labels is None:
        labels = MergeFieldLoader.labels()
    return _build_tree(markup or '', labels, editable=False)


def parse_editable(editable_html: str, labels: Optional[Dict[str, str]] = None) -> StructuredDocument:
    """Parse editor HTML; any element carrying data-merge becomes a FieldMarker."""
    if labels is None:
        labels = MergeFieldLoader.labels()
    return _build_tree(editable_html or '', labels, editable=True)


def marker_span(marker: FieldMarker) -> str:
    return (
        f'<span {MERGE_ATTR}="{html.escape(marker.key)}" contenteditable="false" '
        f'class="{MERGE_FIELD_CLASS}">{html.escape(marker.label, quote=False)}</span>'
    )


def serialize(document: StructuredDocument, editable: bool = False) -> str:
    """Write a document back out in stored or editable form."""
    out: List[str] = []

    def write(node: Node) -> None:
        if isinstance(node, TextRun):
            out.append(node.text)
        elif isinstance(node, RawTag):
            out.append(node.raw)
        elif isinstance(node, FieldMarker):
            out.append(marker_span(node) if editable else placeholder(node.key))
        elif isinstance(node, Element):
            out.append(node.raw_open)
            for child in node.children:
                write(child)
            out.append(node.raw_close)
        else:
            raise TypeError(f"Unknown node type: {type(node).__name__}")

    for node in document.nodes:
        write(node)
    return ''.join(out)


def to_editable(markup: str) -> str:
    """Stored markup -> editor HTML with FieldMarker spans."""
    return serialize(parse_markup(markup), editable=True)


def from_editable(editable_html: str) -> str:
    """Editor HTML -> stored markup with {{key}} placeholders."""
    return serialize(parse_editable(editable_html), editable=False)


def text_to_paragraphs(blocks: List[str]) -> str:
    """Wrap plain-text blocks as escaped <p> elements, one per line."""
    return '\n'.join(f"<p>{html.escape(block)}</p>" for block in blocks)
