"""
Handles persistence of highlight categories and recent-use history.
"""
import logging
from pathlib import Path
from typing import List, Optional, Union

from ..storage import JsonFileStore
from ...utils.resource_loader import ResourceManager
from .models import Category

logger = logging.getLogger(__name__)

CATEGORIES_KEY = "highlight_categories"
RECENT_CATEGORIES_KEY = "recent_categories"


class CategoryPersistence:
    """Saves categories to the user's config directory."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        if base_dir is None:
            base_dir = ResourceManager().config_dir
        self.store = JsonFileStore(base_dir)

    def load_categories(self) -> Optional[List[Category]]:
        """
        Load saved categories.

        Returns:
            List of categories, or None if nothing usable is stored
        """
        records = self.store.read(CATEGORIES_KEY)
        if not isinstance(records, list):
            return None

        categories = []
        for record in records:
            try:
                categories.append(Category.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed category record %r: %s", record, e)
        return categories or None

    def save_categories(self, categories: List[Category]) -> None:
        """
        Raises:
            PersistenceError: If the write did not complete
        """
        self.store.write(CATEGORIES_KEY, [c.to_dict() for c in categories])

    def load_recent(self) -> List[str]:
        records = self.store.read(RECENT_CATEGORIES_KEY, default=[])
        if not isinstance(records, list):
            return []
        return [str(r) for r in records]

    def save_recent(self, category_ids: List[str]) -> None:
        self.store.write(RECENT_CATEGORIES_KEY, list(category_ids))
