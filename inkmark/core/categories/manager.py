"""
Category management: CRUD, ordering, recent use and color propagation.
"""
import logging
import uuid
from typing import Dict, Iterable, List, Optional

from PyQt5.QtCore import QObject, pyqtSignal

from ..colors import hex_to_rgba, is_valid_hex
from ..errors import PersistenceError
from .models import Category, default_categories
from .persistence import CategoryPersistence

logger = logging.getLogger(__name__)

MAX_RECENT = 4


class CategoryManager(QObject):
    """
    Manages the user's highlight categories.

    At least one category always exists. System categories can be edited
    but not deleted. Color edits are announced through ``category_recolored``
    so annotations referencing the category can follow.
    """

    # Signals
    categories_changed = pyqtSignal()
    category_recolored = pyqtSignal(str, str)  # category_id, new hex color
    category_deleted = pyqtSignal(str)

    def __init__(self, persistence: Optional[CategoryPersistence] = None, parent=None):
        super().__init__(parent)
        self.persistence = persistence or CategoryPersistence()
        self._categories: List[Category] = []
        self.recent_category_ids: List[str] = []
        self.load()

    @property
    def categories(self) -> List[Category]:
        """Categories sorted by their display order."""
        return sorted(self._categories, key=lambda c: c.order)

    def load(self) -> None:
        """Load saved categories, seeding the system defaults on first use."""
        saved = self.persistence.load_categories()
        if saved is None:
            self._categories = default_categories()
            self._save()
        else:
            self._categories = saved

        known = {c.id for c in self._categories}
        self.recent_category_ids = [cid for cid in self.persistence.load_recent()
                                    if cid in known][:MAX_RECENT]

    def get_category_by_id(self, category_id: Optional[str]) -> Optional[Category]:
        if not category_id:
            return None
        for category in self._categories:
            if category.id == category_id:
                return category
        return None

    def get_category_by_color(self, color: str) -> Optional[Category]:
        """Find the first category with a color (case-insensitive)."""
        normalized = color.upper()
        for category in self.categories:
            if category.color.upper() == normalized:
                return category
        return None

    def category_rgba(self, category_id: str, opacity: float = 0.35) -> str:
        """Translucent fill for a category, default yellow if unknown."""
        category = self.get_category_by_id(category_id)
        if category is None:
            return f"rgba(253, 224, 71, {opacity})"
        return hex_to_rgba(category.color, opacity)

    def add_category(self, name: str, color: str,
                     description: Optional[str] = None) -> Optional[Category]:
        """
        Create a custom category at the end of the list.

        Returns:
            The new category, or None if the color is not a valid hex value
        """
        if not is_valid_hex(color):
            logger.warning("Rejected category %r with invalid color %r", name, color)
            return None

        category = Category(
            id=self._new_id(),
            name=name,
            color=color,
            order=self._next_order(),
            is_custom=True,
            description=description
        )
        self._categories.append(category)
        self._save()
        self.categories_changed.emit()
        return category

    def update_category(self, category_id: str, name: Optional[str] = None,
                        color: Optional[str] = None,
                        description: Optional[str] = None) -> bool:
        """
        Edit a category. A color change is propagated via ``category_recolored``.

        Returns:
            True if the category exists and the edit was valid
        """
        category = self.get_category_by_id(category_id)
        if category is None:
            logger.warning("Cannot update unknown category %s", category_id)
            return False
        if color is not None and not is_valid_hex(color):
            logger.warning("Rejected invalid color %r for category %s", color, category_id)
            return False

        recolored = color is not None and color.upper() != category.color.upper()

        if name is not None:
            category.name = name
        if description is not None:
            category.description = description
        if color is not None:
            category.color = color

        self._save()
        self.categories_changed.emit()
        if recolored:
            self.category_recolored.emit(category_id, color)
        return True

    def delete_category(self, category_id: str) -> bool:
        """
        Delete a custom category.

        Annotations referencing it are left alone and keep their cached color.

        Returns:
            False if the category is unknown, a system category, or the last one
        """
        if len(self._categories) <= 1:
            logger.warning("Refusing to delete the last remaining category")
            return False

        category = self.get_category_by_id(category_id)
        if category is None:
            logger.warning("Cannot delete unknown category %s", category_id)
            return False
        if not category.is_custom:
            logger.warning("Refusing to delete system category %s", category_id)
            return False

        self._categories.remove(category)
        self._save()

        if category_id in self.recent_category_ids:
            self.recent_category_ids.remove(category_id)
            self._save_recent()

        self.categories_changed.emit()
        self.category_deleted.emit(category_id)
        return True

    def reorder_categories(self, ordered_ids: Iterable[str]) -> None:
        """
        Reassign display order.

        Categories missing from ``ordered_ids`` keep their relative order
        after the listed ones; unknown ids are ignored.
        """
        by_id = {c.id: c for c in self._categories}
        ordered = []
        for category_id in ordered_ids:
            category = by_id.pop(category_id, None)
            if category is not None:
                ordered.append(category)
        ordered.extend(sorted(by_id.values(), key=lambda c: c.order))

        for index, category in enumerate(ordered):
            category.order = index
        self._categories = ordered
        self._save()
        self.categories_changed.emit()

    def reset_to_defaults(self) -> None:
        """Restore the system categories and drop custom ones."""
        previous: Dict[str, str] = {c.id: c.color for c in self._categories}
        self._categories = default_categories()
        self.recent_category_ids = []
        self._save()
        self._save_recent()
        self.categories_changed.emit()

        for category in self._categories:
            old_color = previous.get(category.id)
            if old_color is not None and old_color.upper() != category.color.upper():
                self.category_recolored.emit(category.id, category.color)

    def apply_scheme(self, scheme: Iterable[Dict[str, str]]) -> List[Category]:
        """
        Append a batch of custom categories (name, color, description).

        Entries with an invalid color are skipped. Existing categories are kept.
        """
        added = []
        order = self._next_order()
        for entry in scheme:
            color = entry.get("color", "")
            if not is_valid_hex(color):
                logger.warning("Skipping scheme entry with invalid color: %r", entry)
                continue
            category = Category(
                id=self._new_id(),
                name=entry.get("name", "Untitled"),
                color=color,
                order=order,
                is_custom=True,
                description=entry.get("description")
            )
            order += 1
            added.append(category)

        if added:
            self._categories.extend(added)
            self._save()
            self.categories_changed.emit()
        return added

    def mark_category_used(self, category_id: str) -> None:
        """Move a category to the front of the recent list."""
        if self.get_category_by_id(category_id) is None:
            return
        recent = [cid for cid in self.recent_category_ids if cid != category_id]
        self.recent_category_ids = [category_id] + recent[:MAX_RECENT - 1]
        self._save_recent()

    def _next_order(self) -> int:
        return max((c.order for c in self._categories), default=-1) + 1

    @staticmethod
    def _new_id() -> str:
        return f"cat_{uuid.uuid4().hex[:12]}"

    def _save(self) -> None:
        try:
            self.persistence.save_categories(self.categories)
        except PersistenceError as e:
            logger.error("Failed to save categories: %s", e)

    def _save_recent(self) -> None:
        try:
            self.persistence.save_recent(self.recent_category_ids)
        except PersistenceError as e:
            logger.error("Failed to save recent categories: %s", e)
