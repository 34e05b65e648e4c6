"""
Highlight color palette and legacy color-name compatibility.
"""
import re
from dataclasses import dataclass
from typing import Optional, Tuple

DEFAULT_HIGHLIGHT_HEX = "#FDE047"

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)
_STRICT_HEX_RE = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)


@dataclass(frozen=True)
class ColorDefinition:
    """A named swatch in the highlight palette."""
    id: str
    name: str
    hex: str


HIGHLIGHT_COLORS: Tuple[ColorDefinition, ...] = (
    ColorDefinition("yellow", "Yellow", "#FDE047"),
    ColorDefinition("orange", "Orange", "#FB923C"),
    ColorDefinition("red", "Red", "#F87171"),
    ColorDefinition("pink", "Pink", "#F472B6"),
    ColorDefinition("rose", "Rose", "#FB7185"),
    ColorDefinition("purple", "Purple", "#C084FC"),
    ColorDefinition("violet", "Violet", "#A78BFA"),
    ColorDefinition("indigo", "Indigo", "#818CF8"),
    ColorDefinition("blue", "Blue", "#60A5FA"),
    ColorDefinition("sky", "Sky", "#38BDF8"),
    ColorDefinition("cyan", "Cyan", "#22D3EE"),
    ColorDefinition("teal", "Teal", "#2DD4BF"),
    ColorDefinition("emerald", "Emerald", "#34D399"),
    ColorDefinition("green", "Green", "#4ADE80"),
    ColorDefinition("lime", "Lime", "#A3E635"),
    ColorDefinition("amber", "Amber", "#FBBF24"),
)

# Flat color names written by older versions
LEGACY_COLOR_MAP = {
    "yellow": "#FDE047",
    "green": "#4ADE80",
    "blue": "#60A5FA",
    "purple": "#C084FC",
    "red": "#F87171",
    "orange": "#FB923C",
}

LEGACY_COLOR_TO_CATEGORY = {
    "yellow": "general",
    "green": "example",
    "blue": "definition",
    "purple": "question",
    "red": "important",
    "orange": "reference",
}


def get_color_by_id(color_id: str) -> Optional[ColorDefinition]:
    """Look up a palette entry by id."""
    for color in HIGHLIGHT_COLORS:
        if color.id == color_id:
            return color
    return None


def get_color_by_hex(hex_color: str) -> Optional[ColorDefinition]:
    """Look up a palette entry by hex value (case-insensitive)."""
    normalized = hex_color.upper()
    for color in HIGHLIGHT_COLORS:
        if color.hex.upper() == normalized:
            return color
    return None


def hex_to_rgb(hex_color: str) -> Optional[Tuple[int, int, int]]:
    """
    Parse a hex color.

    Args:
        hex_color: Color such as "#FDE047" or "fde047"

    Returns:
        RGB tuple (0-255), or None if the value is not a hex color
    """
    match = _HEX_RE.match(hex_color or "")
    if not match:
        return None
    return tuple(int(part, 16) for part in match.groups())


def hex_to_rgba(hex_color: str, opacity: float = 0.35) -> str:
    """
    Convert a hex color to a CSS-style rgba() string.

    Falls back to the default yellow when the value is not a hex color.
    """
    rgb = hex_to_rgb(hex_color)
    if rgb is None:
        rgb = hex_to_rgb(DEFAULT_HIGHLIGHT_HEX)
    r, g, b = rgb
    return f"rgba({r}, {g}, {b}, {opacity})"


def is_valid_hex(hex_color: str) -> bool:
    """Check for a full '#RRGGBB' value."""
    return bool(_STRICT_HEX_RE.match(hex_color or ""))


def legacy_color_to_hex(color_name: str) -> str:
    """Map a legacy color name to hex, defaulting to yellow."""
    return LEGACY_COLOR_MAP.get(color_name, DEFAULT_HIGHLIGHT_HEX)


def migrate_legacy_color(color_name: str) -> str:
    """Map a legacy color name to its default category id."""
    return LEGACY_COLOR_TO_CATEGORY.get(color_name, "general")


def normalize_color(color: str) -> str:
    """
    Resolve any stored color value to a hex string.

    Hex values pass through; legacy names are mapped; anything else falls
    back to the default highlight color.
    """
    if hex_to_rgb(color) is not None:
        return color if color.startswith("#") else f"#{color}"
    return legacy_color_to_hex(color)
