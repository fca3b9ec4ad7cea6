"""
Configuration loader.

Builds a fully-defaulted ConfigSnapshot from the metadata table and the
INI store. Loading never fails: a missing or corrupt file yields the
defaults, and every malformed value falls back individually.
"""

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, Union

from .colors import parse_color_options
from .paths import expand_path, get_fonts_dir
from .schema import (
    FONTS_PATH_PREFIX,
    MAX_POMODORO_TIMES,
    MAX_RECENT_FILES,
    MAX_TIME_OPTIONS,
    SECTION_ANIMATION,
    SECTION_COLORS,
    SECTION_DISPLAY,
    SECTION_POMODORO,
    SECTION_RECENT_FILES,
    SECTION_TIMER,
    SPEED_MAP_PERCENTS,
    find_item,
    recent_file_key,
    speed_map_key,
)
from .snapshot import (
    ConfigSnapshot,
    RecentFile,
    bound_items,
    coerce_value,
    default_snapshot,
    parse_int,
    parse_int_list,
)
from .store import IniDocument

logger = logging.getLogger(__name__)

FontNameReader = Callable[[Path], Optional[str]]


def _stem(file_name: str) -> str:
    return os.path.splitext(os.path.basename(file_name.replace("\\", "/")))[0]


def resolve_font(
    snapshot: ConfigSnapshot,
    config_path: Path,
    font_name_reader: Optional[FontNameReader] = None
) -> None:
    """
    Fill ``font_internal_name`` from ``font_file_name``.

    Fonts stored under the managed-fonts placeholder are looked up in
    ``<config dir>/resources/fonts``; when the file exists the reader
    may supply the family name embedded in it. Otherwise the bare file
    name without extension is used.
    """
    stored = snapshot.font_file_name
    if stored[:len(FONTS_PATH_PREFIX)].lower() == FONTS_PATH_PREFIX.lower():
        relative = stored[len(FONTS_PATH_PREFIX):].replace("\\", "/")
        font_path = get_fonts_dir(config_path) / relative
        if font_path.is_file() and font_name_reader:
            try:
                name = font_name_reader(font_path)
            except (OSError, ValueError) as e:
                logger.debug(f"Font name lookup failed for {font_path}: {e}")
                name = None
            if name:
                snapshot.font_internal_name = name
                return
        snapshot.font_internal_name = _stem(relative)
        return

    snapshot.font_internal_name = _stem(stored)


def load_recent_files(doc: IniDocument) -> List[RecentFile]:
    """Recent files in slot order, keeping only those that still exist."""
    files: List[RecentFile] = []
    for index in range(1, MAX_RECENT_FILES + 1):
        stored = doc.read_string(SECTION_RECENT_FILES, recent_file_key(index), "").strip()
        if not stored:
            continue
        path = expand_path(stored)
        if os.path.exists(path):
            files.append(RecentFile.from_path(path))
        else:
            logger.debug(f"Dropping missing recent file: {path}")
    return files


def _read_custom(doc: IniDocument, section: str, key: str) -> str:
    return doc.read_string(section, key, find_item(section, key).default)


def load_document(
    doc: IniDocument,
    config_path: Path,
    font_name_reader: Optional[FontNameReader] = None
) -> ConfigSnapshot:
    """Build a snapshot from an already parsed document."""
    snapshot = default_snapshot()

    for item in bound_items():
        value = coerce_value(item, doc.get(item.section, item.key))
        item.set(snapshot, value)

    snapshot.font_file_name = _read_custom(doc, SECTION_DISPLAY, "FONT_FILE_NAME")
    resolve_font(snapshot, config_path, font_name_reader)

    snapshot.time_options = parse_int_list(
        _read_custom(doc, SECTION_TIMER, "CLOCK_TIME_OPTIONS"), MAX_TIME_OPTIONS
    )
    snapshot.pomodoro_times = parse_int_list(
        _read_custom(doc, SECTION_POMODORO, "POMODORO_TIME_OPTIONS"), MAX_POMODORO_TIMES
    )

    snapshot.recent_files = load_recent_files(doc)
    snapshot.color_options = parse_color_options(_read_custom(doc, SECTION_COLORS, "COLOR_OPTIONS"))

    speed_map = {}
    for percent in SPEED_MAP_PERCENTS:
        key = speed_map_key(percent)
        default = parse_int(find_item(SECTION_ANIMATION, key).default)
        speed_map[percent] = parse_int(doc.get(SECTION_ANIMATION, key), default)
    snapshot.animation_speed_map = speed_map

    return snapshot


def load(
    path: Union[str, Path],
    font_name_reader: Optional[FontNameReader] = None
) -> ConfigSnapshot:
    """
    Load the configuration file into a snapshot.

    Args:
        path: Configuration file location
        font_name_reader: Optional callable returning the family name
            stored inside a font file

    Returns:
        Fully-defaulted snapshot, never None
    """
    path = Path(path)
    doc = IniDocument.open(path)
    if not doc.exists:
        logger.info(f"Configuration file not found, using defaults: {path}")

    try:
        return load_document(doc, path, font_name_reader)
    except (ValueError, TypeError) as e:
        logger.error(f"Configuration load failed, using defaults: {e}")
        return default_snapshot()
