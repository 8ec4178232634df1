"""
Document System Type Definitions

Dataclasses for the merge-field vocabulary, the structured document
tree, and fillable PDF form fields. Tree nodes and definitions are
immutable once built.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Tuple, Union
from enum import Enum


class TemplateKind(Enum):
    """The two kinds of contract template."""
    EDITABLE_MARKUP = "editable_markup"
    UPLOADED_FILE = "uploaded_file"


class ContractStatus(Enum):
    """Contract lifecycle states."""
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"


class FormFieldKind(Enum):
    """Fillable PDF field kinds the editor understands."""
    TEXT = "text"
    CHECKBOX = "checkbox"


@dataclass(frozen=True)
class MergeFieldDefinition:
    """
    A named value that can be substituted into a template.

    Attributes:
        key: Placeholder key as written in markup ({{key}})
        label: Human-readable label shown in the editor
        source: Context path the value is resolved from (e.g. "client.email")
        transform: Optional transform name (e.g. "currency_plain")
        required: Required fields are always expected in merged output
        signature: True for the two signature slots
        placeholder: Literal text used for signature slots at merge time
    """
    key: str
    label: str
    source: Optional[str] = None
    transform: Optional[str] = None
    required: bool = False
    signature: bool = False
    placeholder: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], signature: bool = False) -> 'MergeFieldDefinition':
        return cls(
            key=data['key'],
            label=data['label'],
            source=data.get('source'),
            transform=data.get('transform'),
            required=data.get('required', False),
            signature=signature,
            placeholder=data.get('placeholder'),
        )


# =============================================================================
# STRUCTURED DOCUMENT TREE
# =============================================================================

@dataclass(frozen=True)
class TextRun:
    """A run of character data, kept exactly as it appeared in the markup."""
    text: str


@dataclass(frozen=True)
class RawTag:
    """A tag that does not open a subtree: void/self-closing tags, comments,
    doctype, and stray closing tags."""
    raw: str


@dataclass(frozen=True)
class FieldMarker:
    """
    Atomic stand-in for a merge field or signature slot.

    Serializes to {{key}} in stored markup and to a labelled span in
    the editable form. Never split and never edited as text.
    """
    key: str
    label: str


@dataclass(frozen=True)
class Element:
    """
    An element with children.

    raw_open/raw_close hold the original tag text so serialization is
    byte-exact. raw_close is empty when the source never closed the tag.
    """
    tag: str
    raw_open: str
    children: Tuple['Node', ...] = ()
    raw_close: str = ''
    attrs: Tuple[Tuple[str, Optional[str]], ...] = ()

    def get_attr(self, name: str) -> Optional[str]:
        for key, value in self.attrs:
            if key == name:
                return value
        return None


Node = Union[TextRun, RawTag, FieldMarker, Element]


@dataclass(frozen=True)
class StructuredDocument:
    """Ordered sequence of top-level nodes."""
    nodes: Tuple[Node, ...] = ()

    def field_markers(self) -> List[FieldMarker]:
        """All FieldMarkers in document order."""
        found = []
        stack = list(reversed(self.nodes))
        while stack:
            node = stack.pop()
            if isinstance(node, FieldMarker):
                found.append(node)
            elif isinstance(node, Element):
                stack.extend(reversed(node.children))
        return found


# =============================================================================
# FILLABLE FORM FIELDS
# =============================================================================

@dataclass
class PdfFormField:
    """A fillable field read from (or to be written into) a PDF form."""
    name: str
    kind: FormFieldKind
    value: Union[str, bool]

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'type': self.kind.value, 'value': self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PdfFormField':
        kind = FormFieldKind(data.get('type', 'text'))
        value = data.get('value')
        if kind == FormFieldKind.CHECKBOX:
            value = bool(value)
        else:
            value = '' if value is None else str(value)
        return cls(name=data['name'], kind=kind, value=value)


@dataclass
class ExtractionResult:
    """Paragraphs recovered from a PDF and how they were recovered."""
    paragraphs: List[str] = field(default_factory=list)
    method: str = 'text'  # 'text', 'ocr', or 'none'

    @property
    def degraded(self) -> bool:
        return self.method == 'none'
