"""
Core annotation engine for Inkmark.
"""
from .annotations import Annotation, AnnotationManager, AnnotationType
from .categories import Category, CategoryManager

__all__ = ['Annotation', 'AnnotationManager', 'AnnotationType', 'Category', 'CategoryManager']
