from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union
import uuid

from ..colors import LEGACY_COLOR_TO_CATEGORY, legacy_color_to_hex


class AnnotationType(Enum):
    HIGHLIGHT = "highlight"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"


@dataclass(frozen=True)
class CategoryColor:
    """Color comes from the referenced category."""
    category_id: str


@dataclass(frozen=True)
class FlatColor:
    """Color is stored directly on the annotation."""
    color: str


ColorSource = Union[CategoryColor, FlatColor]


def new_annotation_id() -> str:
    """Generate an opaque, never-reused annotation id."""
    return uuid.uuid4().hex


@dataclass
class Annotation:
    """A highlight, underline or strikethrough over a span of page text."""
    page_number: int  # 1-based
    annotation_type: AnnotationType
    color: str  # hex, or a legacy color name before migration
    text: str
    signature: Tuple[str, ...]  # token texts at capture time, never mutated
    id: str = field(default_factory=new_annotation_id)
    category_id: Optional[str] = None
    note: Optional[str] = None

    def __post_init__(self):
        self.signature = tuple(self.signature)

    @property
    def color_source(self) -> ColorSource:
        """Where this annotation's display color is resolved from."""
        if self.category_id:
            return CategoryColor(self.category_id)
        return FlatColor(self.color)

    @property
    def has_note(self) -> bool:
        return bool(self.note)

    def to_dict(self):
        """Convert annotation to dictionary for JSON serialization."""
        data = {
            'id': self.id,
            'pageNumber': self.page_number,
            'type': self.annotation_type.value,
            'color': self.color,
            'text': self.text,
            'signature': list(self.signature),
        }

        if self.category_id is not None:
            data['categoryId'] = self.category_id

        if self.note is not None:
            data['note'] = self.note

        return data

    @staticmethod
    def from_dict(data):
        """Create annotation from dictionary."""
        # Older records stored the signature as "spanTexts"
        signature = data.get('signature')
        if signature is None:
            signature = data.get('spanTexts') or []

        return Annotation(
            id=data['id'],
            page_number=int(data['pageNumber']),
            annotation_type=AnnotationType(data['type']),
            color=data.get('color', 'yellow'),
            text=data.get('text', ''),
            signature=tuple(signature),
            category_id=data.get('categoryId'),
            note=data.get('note')
        )


def migrate_annotation(annotation: Annotation) -> Annotation:
    """
    Attach a category to a legacy annotation that only has a flat color name.

    Annotations that already reference a category, or whose color has no
    legacy mapping, are returned unchanged.
    """
    if annotation.category_id:
        return annotation

    category_id = LEGACY_COLOR_TO_CATEGORY.get(annotation.color)
    if category_id:
        annotation.category_id = category_id
        annotation.color = legacy_color_to_hex(annotation.color)
    return annotation
