"""
Anchoring of annotations to rendered tokens.
"""
from .matcher import AnchorMatcher, locate
from .reconciler import Reconciler
from .retry import GenerationCounter, RetryTask
from .styles import StyleResolver, TokenStyle
from .tag_table import Anchor, TagTable

__all__ = [
    'Anchor',
    'AnchorMatcher',
    'GenerationCounter',
    'Reconciler',
    'RetryTask',
    'StyleResolver',
    'TagTable',
    'TokenStyle',
    'locate',
]
