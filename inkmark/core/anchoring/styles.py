"""
Visual styles applied to tagged tokens.
"""
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional

from ..annotations.models import Annotation, AnnotationType, CategoryColor
from ..colors import hex_to_rgba, normalize_color

if TYPE_CHECKING:
    from ..categories.manager import CategoryManager


@dataclass(frozen=True)
class TokenStyle:
    """
    Paint instructions for a token.

    A base style sets exactly one of background/underline/strike. The
    selection overlay adds an outline on top without touching the base.
    """
    background: Optional[str] = None  # rgba fill
    underline: Optional[str] = None  # rule color
    strike: Optional[str] = None  # rule color
    outline: Optional[str] = None
    outline_width: float = 0.0

    @property
    def has_overlay(self) -> bool:
        return self.outline is not None

    def with_overlay(self, color: str, width: float) -> "TokenStyle":
        return replace(self, outline=color, outline_width=width)

    def without_overlay(self) -> "TokenStyle":
        return replace(self, outline=None, outline_width=0.0)


class StyleResolver:
    """Turns an annotation's color source and type into a token style."""

    def __init__(self, categories: Optional["CategoryManager"] = None,
                 highlight_opacity: float = 0.35,
                 overlay_color: str = "#6366F1",
                 overlay_width: float = 2.0):
        self.categories = categories
        self.highlight_opacity = highlight_opacity
        self.overlay_color = overlay_color
        self.overlay_width = overlay_width

    def resolve_color(self, annotation: Annotation) -> str:
        """
        Hex color an annotation is displayed in.

        A live category wins; a deleted or unknown category falls back to the
        color cached on the annotation.
        """
        source = annotation.color_source
        if isinstance(source, CategoryColor) and self.categories is not None:
            category = self.categories.get_category_by_id(source.category_id)
            if category is not None:
                return category.color
        return normalize_color(annotation.color)

    def base_style(self, annotation: Annotation) -> TokenStyle:
        color = self.resolve_color(annotation)
        if annotation.annotation_type == AnnotationType.HIGHLIGHT:
            return TokenStyle(background=hex_to_rgba(color, self.highlight_opacity))
        if annotation.annotation_type == AnnotationType.UNDERLINE:
            return TokenStyle(underline=color)
        return TokenStyle(strike=color)

    def overlay(self, style: TokenStyle) -> TokenStyle:
        return style.with_overlay(self.overlay_color, self.overlay_width)
