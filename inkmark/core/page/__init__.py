"""
Rendered page tokens and the surface that regenerates them.
"""

from .models import TokenHandle, TokenInfo
from .render_surface import RenderSurface
from .token_layer import PageTokenLayer

__all__ = [
    "TokenHandle",
    "TokenInfo",
    "PageTokenLayer",
    "RenderSurface",
]
