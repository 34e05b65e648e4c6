"""
Controllers for the application.
"""
from .annotation_controller import AnnotationController

__all__ = ['AnnotationController']
