"""
Annotation records and their per-document store.
"""
from .models import (
    Annotation,
    AnnotationType,
    CategoryColor,
    ColorSource,
    FlatColor,
    migrate_annotation,
    new_annotation_id,
)
from .manager import AnnotationManager
from .persistence import AnnotationPersistence, namespace_key

__all__ = [
    'Annotation',
    'AnnotationType',
    'CategoryColor',
    'ColorSource',
    'FlatColor',
    'migrate_annotation',
    'new_annotation_id',
    'AnnotationManager',
    'AnnotationPersistence',
    'namespace_key'
]
