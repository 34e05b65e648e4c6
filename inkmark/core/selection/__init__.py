from .annotation_selection import AnnotationSelection
from .text_selection import SignatureCapture, TextSelection, capture_signature

__all__ = ['AnnotationSelection', 'SignatureCapture', 'TextSelection', 'capture_signature']
