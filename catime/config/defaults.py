"""
Default configuration file generation.

Writes every metadata item with its default value, followed by a short
help block for the sections users most often edit by hand.
"""

import locale
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from .schema import Language, get_metadata, SECTION_GENERAL
from .store import atomic_write_text, config_lock

logger = logging.getLogger(__name__)

_RULE = ";" + "=" * 56

SECTION_HELP: Dict[str, List[str]] = {
    "Display": [
        "; MOVE_STEP_SMALL / MOVE_STEP_LARGE: arrow and Ctrl+arrow move step",
        ";   in edit mode. Range: 1-500 pixels. Defaults: 10 and 50.",
        "; OPACITY_STEP_NORMAL / OPACITY_STEP_FAST: mouse wheel opacity step.",
        ";   Range: 1-100%. Defaults: 1 and 5.",
        "; SCALE_STEP_NORMAL / SCALE_STEP_FAST: mouse wheel scale step.",
        ";   Range: 1-100%. Defaults: 10 and 15.",
    ],
    "Animation": [
        "; ANIMATION_SPEED_DEFAULT: base speed scale in percent (100 = 1x).",
        ";   ANIMATION_SPEED_MAP_* breakpoints are interpolated linearly.",
        "; PERCENT_ICON_TEXT_COLOR: auto or #RRGGBB.",
        "; PERCENT_ICON_BG_COLOR: transparent or #RRGGBB.",
        "; ANIMATION_FOLDER_INTERVAL_MS: frame interval for folders and images.",
        "; ANIMATION_MIN_INTERVAL_MS: 0 uses the system default.",
    ],
    "Hotkeys": [
        "; Format: KEY=Ctrl+Shift+Alt+Key  or  KEY=None  or  KEY=0xNN (hex VK)",
        ";  - Modifiers: Ctrl, Shift, Alt (combine with '+')",
        ";  - Keys: A-Z, 0-9, F1..F24, Backspace, Tab, Enter, Esc, Space,",
        ";          PageUp, PageDown, End, Home, Left, Up, Right, Down,",
        ";          Insert, Delete, Num0..Num9, Num*, Num+, Num-, Num., Num/",
        ";  - Examples: Ctrl+Shift+K  |  Alt+F12  |  None  |  0x5B",
    ],
    "Colors": [
        "; COLOR_OPTIONS: comma-separated quick color list.",
        ";   Token format: #RRGGBB, or gradient stops joined by '_'",
        ";   (e.g. #FF5E96_#56C6FF). Duplicates are ignored.",
    ],
}

_LOCALE_LANGUAGES = (
    ("zh_tw", Language.CHINESE_TRADITIONAL),
    ("zh_hk", Language.CHINESE_TRADITIONAL),
    ("zh", Language.CHINESE_SIMPLIFIED),
    ("es", Language.SPANISH),
    ("fr", Language.FRENCH),
    ("de", Language.GERMAN),
    ("ru", Language.RUSSIAN),
    ("pt", Language.PORTUGUESE),
    ("ja", Language.JAPANESE),
    ("ko", Language.KOREAN),
    ("it", Language.ITALIAN),
)


def language_for_locale(name: Optional[str]) -> Language:
    """Map a locale name such as ``de_DE`` or ``zh-TW`` to a UI language."""
    if not name:
        return Language.ENGLISH
    normalized = name.replace("-", "_").lower()
    for prefix, language in _LOCALE_LANGUAGES:
        if normalized.startswith(prefix):
            return language
    return Language.ENGLISH


def detect_system_language() -> Language:
    try:
        name = locale.getlocale()[0]
    except ValueError:
        name = None
    return language_for_locale(name)


def render_defaults(language: Optional[Language] = None) -> str:
    """Full default file text."""
    lines: List[str] = []
    items = get_metadata()

    for index, item in enumerate(items):
        if index == 0 or items[index - 1].section != item.section:
            lines.append(f"[{item.section}]")

        value = item.default
        if language is not None and item.section == SECTION_GENERAL and item.key == "LANGUAGE":
            value = language.value
        lines.append(f"{item.key}={value}")

        is_last = index + 1 == len(items) or items[index + 1].section != item.section
        if is_last and item.section in SECTION_HELP:
            lines.append(_RULE)
            lines.append(f"; {item.section} section help (hot reload supported)")
            lines.append(_RULE)
            lines.extend(SECTION_HELP[item.section])
            lines.append(_RULE)

    return "\n".join(lines) + "\n"


def write_defaults(path: Union[str, Path], language: Optional[Language] = None) -> bool:
    """Overwrite the file with defaults; failures are logged, not raised."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with config_lock(path):
            atomic_write_text(path, render_defaults(language))
        logger.info(f"Default configuration written to {path}")
        return True
    except OSError as e:
        logger.error(f"Cannot write default configuration to {path}: {e}")
        return False


def create_default_config(path: Union[str, Path]) -> bool:
    """Write defaults with the language detected from the system locale."""
    language = detect_system_language()
    logger.info(f"Creating default configuration (language: {language.value})")
    return write_defaults(path, language)
