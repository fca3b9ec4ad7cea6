"""
Configuration writer.

Collects LiveState into a deterministic, schema-ordered list of key/value
pairs and writes them as one transaction under the process-wide named
lock, so an automatic write-back can never interleave with a user save.
Keys the writer does not own (FIRST_RUN, SHORTCUT_CHECK_DONE, the plugin
trust list) are left as they are in the file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from .colors import format_color_options
from .hotkeys import hotkey_to_string
from .schema import (
    CATIME_VERSION,
    MAX_RECENT_FILES,
    ConfigValueType,
    SchemaItem,
    TimeoutAction,
    get_metadata,
    recent_file_key,
    speed_map_key,
    SPEED_MAP_PERCENTS,
)
from .snapshot import ConfigSnapshot
from .store import config_lock, write_many

logger = logging.getLogger(__name__)

FILE_ONLY_KEYS = frozenset({"SHORTCUT_CHECK_DONE", "FIRST_RUN"})


@dataclass(frozen=True)
class ConfigWriteItem:
    section: str
    key: str
    value: str


def format_value(item: SchemaItem, value) -> str:
    """Format a bound item's in-memory value the way the file stores it."""
    if item.type is ConfigValueType.BOOL:
        return "TRUE" if value else "FALSE"
    if item.type is ConfigValueType.INT:
        return str(int(value))
    if item.type is ConfigValueType.FLOAT:
        return f"{value:.2f}"
    if item.type is ConfigValueType.ENUM:
        return value.value
    if item.type is ConfigValueType.HOTKEY:
        return hotkey_to_string(value)
    return str(value)


def _persisted_timeout_action(state: ConfigSnapshot) -> str:
    action = state.timeout_action
    if action.is_one_shot:
        return TimeoutAction.MESSAGE.value
    return action.value


def _custom_values(state: ConfigSnapshot) -> Dict[str, Callable[[], str]]:
    values: Dict[str, Callable[[], str]] = {
        "CONFIG_VERSION": lambda: CATIME_VERSION,
        "FONT_FILE_NAME": lambda: state.font_file_name,
        "CLOCK_TIME_OPTIONS": lambda: ",".join(str(v) for v in state.time_options),
        "CLOCK_TIMEOUT_ACTION": lambda: _persisted_timeout_action(state),
        "POMODORO_TIME_OPTIONS": lambda: ",".join(str(v) for v in state.pomodoro_times),
        "COLOR_OPTIONS": lambda: format_color_options(state.color_options),
    }
    for percent in SPEED_MAP_PERCENTS:
        values[speed_map_key(percent)] = (
            lambda p=percent: str(state.animation_speed_map.get(p, 0))
        )
    for index in range(1, MAX_RECENT_FILES + 1):
        values[recent_file_key(index)] = (
            lambda i=index: state.recent_files[i - 1].path if i <= len(state.recent_files) else ""
        )
    return values


def collect(state: ConfigSnapshot, sections: Optional[Iterable[str]] = None) -> List[ConfigWriteItem]:
    """
    Collect the state into schema-ordered write items.

    Hotkeys always produce their 12 fixed entries and recent files their
    fixed slots, padded with empty values. One-shot timeout actions are
    written as MESSAGE.
    """
    wanted = set(sections) if sections is not None else None
    custom = _custom_values(state)
    items: List[ConfigWriteItem] = []

    for item in get_metadata():
        if wanted is not None and item.section not in wanted:
            continue
        if item.key in FILE_ONLY_KEYS:
            continue
        if item.key in custom:
            value = custom[item.key]()
        elif item.field is not None:
            value = format_value(item, item.get(state))
        else:
            continue
        items.append(ConfigWriteItem(item.section, item.key, value))

    return items


def write_all(path: Union[str, Path], items: Iterable[ConfigWriteItem]) -> bool:
    """Write every item in one transaction under the named lock."""
    entries = [(i.section, i.key, i.value) for i in items]
    with config_lock(path):
        ok = write_many(path, entries)
    if ok:
        logger.debug(f"Wrote {len(entries)} configuration keys to {path}")
    else:
        logger.error(f"Configuration write to {path} failed; the file is unchanged")
    return ok


def write_section(path: Union[str, Path], state: ConfigSnapshot, section: str) -> bool:
    """Commit the keys of one section."""
    return write_all(path, collect(state, [section]))


def write_config(path: Union[str, Path], state: ConfigSnapshot) -> bool:
    """Commit the whole state."""
    return write_all(path, collect(state))
