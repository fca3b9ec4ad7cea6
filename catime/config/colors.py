"""
Color token parsing for the text color and the quick color palette.

A token is either a plain ``#RRGGBB`` color or a gradient made of two or
more ``#RRGGBB`` stops joined with ``_`` (``#FF5E96_#56C6FF``). Hand-edited
files may also use a basic CSS color name or an ``rgb(r,g,b)`` triple;
both are normalised to ``#RRGGBB``.
"""

import re
from typing import Dict, Iterable, List, Optional

_HEX6 = re.compile(r"^#?([0-9A-Fa-f]{6})$")
_HEX3 = re.compile(r"^#?([0-9A-Fa-f]{3})$")
# Fullwidth comma and semicolon come from CJK keyboard layouts.
_RGB = re.compile(r"^(?:rgb[\s(]*)?(\d{1,3})\s*(?:[,;|，；]\s*|\s+)(\d{1,3})\s*(?:[,;|，；]\s*|\s+)(\d{1,3})\s*\)?$")

GRADIENT_SEPARATOR = "_"

CSS_COLORS: Dict[str, str] = {
    "white": "#FFFFFF", "black": "#000000", "red": "#FF0000",
    "lime": "#00FF00", "blue": "#0000FF", "yellow": "#FFFF00",
    "cyan": "#00FFFF", "magenta": "#FF00FF", "silver": "#C0C0C0",
    "gray": "#808080", "maroon": "#800000", "olive": "#808000",
    "green": "#008000", "purple": "#800080", "teal": "#008080",
    "navy": "#000080", "orange": "#FFA500", "pink": "#FFC0CB",
    "brown": "#A52A2A", "violet": "#EE82EE", "indigo": "#4B0082",
    "gold": "#FFD700", "coral": "#FF7F50", "salmon": "#FA8072",
    "khaki": "#F0E68C", "plum": "#DDA0DD", "azure": "#F0FFFF",
    "ivory": "#FFFFF0", "wheat": "#F5DEB3", "snow": "#FFFAFA",
}


def _parse_rgb(token: str) -> Optional[str]:
    match = _RGB.match(token.lower())
    if not match:
        return None
    channels = [int(part) for part in match.groups()]
    if any(c > 255 for c in channels):
        return None
    return "#" + "".join(f"{c:02X}" for c in channels)


def _normalize_stop(token: str) -> Optional[str]:
    token = token.strip()
    named = CSS_COLORS.get(token.lower())
    if named:
        return named
    match = _HEX6.match(token)
    if match:
        return "#" + match.group(1).upper()
    match = _HEX3.match(token)
    if match:
        return "#" + "".join(ch * 2 for ch in match.group(1)).upper()
    return _parse_rgb(token)


def normalize_color(token: Optional[str]) -> Optional[str]:
    """
    Return the canonical form of a color token, or None if invalid.

    Plain colors accept ``#RRGGBB``, ``RRGGBB``, ``#RGB``, a CSS color
    name and ``rgb(r,g,b)`` or a bare ``r,g,b`` triple; gradient stops
    accept the same forms.
    """
    if not token:
        return None
    token = token.strip()
    if GRADIENT_SEPARATOR in token:
        stops = [_normalize_stop(part) for part in token.split(GRADIENT_SEPARATOR)]
        if len(stops) < 2 or any(stop is None for stop in stops):
            return None
        return GRADIENT_SEPARATOR.join(stops)
    return _normalize_stop(token)


def is_valid_color(token: Optional[str]) -> bool:
    return normalize_color(token) is not None


def is_gradient(token: str) -> bool:
    return GRADIENT_SEPARATOR in token


def parse_color_options(text: Optional[str]) -> List[str]:
    """Parse a comma-separated palette, dropping invalid and duplicate tokens."""
    colors: List[str] = []
    seen = set()
    for raw in (text or "").split(","):
        color = normalize_color(raw)
        if color is None or color.upper() in seen:
            continue
        seen.add(color.upper())
        colors.append(color)
    return colors


def format_color_options(colors: Iterable[str]) -> str:
    """Join a palette with plain colors first, then gradients."""
    colors = list(colors)
    plain = [c for c in colors if not is_gradient(c)]
    gradients = [c for c in colors if is_gradient(c)]
    return ",".join(plain + gradients)
