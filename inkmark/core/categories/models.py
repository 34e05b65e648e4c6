from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..colors import normalize_color


@dataclass
class Category:
    """A named, colored label that annotations can reference."""
    id: str
    name: str
    color: str  # hex "#RRGGBB"
    order: int
    is_custom: bool
    description: Optional[str] = None

    def to_dict(self):
        """Convert category to dictionary for JSON serialization."""
        data = {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'order': self.order,
            'isCustom': self.is_custom,
        }
        if self.description is not None:
            data['description'] = self.description
        return data

    @staticmethod
    def from_dict(data):
        """Create category from dictionary."""
        return Category(
            id=data['id'],
            name=data['name'],
            color=normalize_color(str(data['color'])),
            order=int(data.get('order', 0)),
            is_custom=bool(data.get('isCustom', True)),
            description=data.get('description')
        )

    def copy(self) -> "Category":
        return replace(self)


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category("important", "Important", "#F87171", 0, False,
             "Key points and critical information"),
    Category("definition", "Definition", "#60A5FA", 1, False,
             "Terms and definitions"),
    Category("example", "Example", "#4ADE80", 2, False,
             "Examples and illustrations"),
    Category("question", "Question", "#C084FC", 3, False,
             "To revisit or research further"),
    Category("reference", "Reference", "#FB923C", 4, False,
             "Citations and references"),
    Category("general", "General", "#FDE047", 5, False,
             "General highlights"),
)


def default_categories():
    """Fresh copies of the system categories."""
    return [category.copy() for category in DEFAULT_CATEGORIES]
