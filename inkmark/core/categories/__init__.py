"""
Highlight categories.
"""
from .models import Category, DEFAULT_CATEGORIES, default_categories
from .manager import CategoryManager
from .persistence import CategoryPersistence

__all__ = [
    'Category',
    'DEFAULT_CATEGORIES',
    'default_categories',
    'CategoryManager',
    'CategoryPersistence'
]
