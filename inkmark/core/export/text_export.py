"""
Plain-text exports of a document's annotations.
"""
import json
from typing import Dict, List, Optional, TYPE_CHECKING

from ..annotations.models import Annotation

if TYPE_CHECKING:
    from ..categories.manager import CategoryManager


def _label(annotation: Annotation, categories: Optional["CategoryManager"]) -> str:
    if categories is not None:
        category = categories.get_category_by_id(annotation.category_id)
        if category is not None:
            return category.name
    return annotation.annotation_type.value


def to_markdown(annotations: List[Annotation],
                categories: Optional["CategoryManager"] = None) -> str:
    """
    Render annotations as Markdown, grouped by page.

    Each annotation is a block quote labelled with its category name (or its
    type when it has no live category), followed by its note if any.
    """
    output = ["# Document Annotations\n\n"]

    by_page: Dict[int, List[Annotation]] = {}
    for annotation in annotations:
        by_page.setdefault(annotation.page_number, []).append(annotation)

    for page_number in sorted(by_page):
        output.append(f"## Page {page_number}\n\n")

        for annotation in by_page[page_number]:
            text = annotation.text.replace("\n", " ")
            output.append(f"> **[{_label(annotation, categories)}]** \"{text}\"\n")

            if annotation.has_note:
                output.append(f"\n📝 **Note:** {annotation.note}\n")

            output.append("\n---\n\n")

    return "".join(output)


def to_json(annotations: List[Annotation]) -> str:
    """Pretty-printed persisted records."""
    return json.dumps([ann.to_dict() for ann in annotations], indent=2, ensure_ascii=False)
