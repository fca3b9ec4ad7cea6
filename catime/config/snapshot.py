"""
Configuration data models.

- ConfigSnapshot: the whole configuration at one instant, always fully
  defaulted
- LiveState: the process-wide configuration the application reads at
  runtime, plus state that is never persisted
- RecentFile and PluginTrustEntry value models

Field defaults are derived from the metadata table so that literal
defaults live in exactly one place.
"""

import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .colors import parse_color_options
from .hotkeys import string_to_hotkey
from .schema import (
    ConfigValueType,
    SchemaItem,
    find_item,
    get_metadata,
    speed_map_key,
    AnimationSpeedMetric,
    Language,
    NotificationType,
    StartupMode,
    TextEffect,
    TimeFormat,
    TimeoutAction,
    DEFAULT_COLOR_OPTIONS,
    DEFAULT_FONT_NAME,
    DEFAULT_POMODORO_TIMES,
    DEFAULT_TIME_OPTIONS,
    FONTS_PATH_PREFIX,
    MAX_POMODORO_TIMES,
    MAX_TIME_OPTIONS,
    SECTION_ANIMATION,
    SECTION_DISPLAY,
    SECTION_GENERAL,
    SECTION_HOTKEYS,
    SECTION_NOTIFICATION,
    SECTION_POMODORO,
    SECTION_TIMER,
    SPEED_MAP_PERCENTS,
)

TRUE_STRINGS = ("TRUE", "1", "YES")


def parse_bool(text: Optional[str], default: bool = False) -> bool:
    if text is None:
        return default
    return text.strip().upper() in TRUE_STRINGS


def parse_int(text: Optional[str], default: int = 0) -> int:
    """Parse a leading integer the way ``atoi`` would, falling back to default."""
    if text is None:
        return default
    text = text.strip()
    end = 1 if text[:1] in ("-", "+") else 0
    while end < len(text) and text[end].isdigit():
        end += 1
    try:
        return int(text[:end])
    except ValueError:
        return default


def parse_float(text: Optional[str], default: float = 0.0) -> float:
    if text is None:
        return default
    try:
        return float(text.strip())
    except ValueError:
        return default


def parse_int_list(text: Optional[str], limit: int) -> List[int]:
    """
    Parse a comma-separated list of positive integers.

    Malformed tokens are dropped; at most ``limit`` values are kept.
    """
    values: List[int] = []
    for token in (text or "").split(","):
        token = token.strip()
        if not token.isdigit():
            continue
        value = int(token)
        if value <= 0:
            continue
        values.append(value)
        if len(values) >= limit:
            break
    return values


def coerce_value(item: SchemaItem, text: Optional[str]) -> Any:
    """Convert file text to the in-memory value of a bound item."""
    if item.type is ConfigValueType.INT:
        return parse_int(text, parse_int(item.default))
    if item.type is ConfigValueType.BOOL:
        return parse_bool(text, parse_bool(item.default))
    if item.type is ConfigValueType.FLOAT:
        return parse_float(text, parse_float(item.default))
    if item.type is ConfigValueType.ENUM:
        fallback = item.enum.parse(item.default, None)
        return item.enum.parse(text, fallback)
    if item.type is ConfigValueType.HOTKEY:
        return string_to_hotkey(text if text is not None else item.default)
    return item.default if text is None else text


def _d(section: str, key: str) -> Any:
    item = find_item(section, key)
    return coerce_value(item, item.default)


def _font_internal_name(file_name: str) -> str:
    return os.path.splitext(os.path.basename(file_name.replace("\\", "/")))[0]


class RecentFile(BaseModel):
    """A recently opened timeout file."""
    path: str
    name: str = ""

    @classmethod
    def from_path(cls, path: str) -> "RecentFile":
        return cls(path=path, name=os.path.basename(path.replace("\\", "/")))


class PluginTrustEntry(BaseModel):
    """Trusted plugin: stored path plus SHA-256 of the file when trusted."""
    path: str
    sha256: str


class ConfigSnapshot(BaseModel):
    """Flat, fully-defaulted view of the whole configuration."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    # General
    language: Language = Field(default=_d(SECTION_GENERAL, "LANGUAGE"))
    font_license_accepted: bool = Field(default=_d(SECTION_GENERAL, "FONT_LICENSE_ACCEPTED"))
    font_license_version: str = Field(default=_d(SECTION_GENERAL, "FONT_LICENSE_VERSION_ACCEPTED"))

    # Display
    text_color: str = Field(default=_d(SECTION_DISPLAY, "CLOCK_TEXT_COLOR"))
    base_font_size: int = Field(default=_d(SECTION_DISPLAY, "CLOCK_BASE_FONT_SIZE"))
    font_file_name: str = Field(
        default=FONTS_PATH_PREFIX + DEFAULT_FONT_NAME,
        description="Font path as stored, possibly carrying the fonts placeholder"
    )
    font_internal_name: str = Field(default=_font_internal_name(DEFAULT_FONT_NAME))
    window_pos_x: int = Field(default=_d(SECTION_DISPLAY, "CLOCK_WINDOW_POS_X"))
    window_pos_y: int = Field(default=_d(SECTION_DISPLAY, "CLOCK_WINDOW_POS_Y"))
    window_scale: float = Field(default=_d(SECTION_DISPLAY, "WINDOW_SCALE"))
    plugin_scale: float = Field(default=_d(SECTION_DISPLAY, "PLUGIN_SCALE"))
    window_topmost: bool = Field(default=_d(SECTION_DISPLAY, "WINDOW_TOPMOST"))
    window_opacity: int = Field(default=_d(SECTION_DISPLAY, "WINDOW_OPACITY"))
    move_step_small: int = Field(default=_d(SECTION_DISPLAY, "MOVE_STEP_SMALL"))
    move_step_large: int = Field(default=_d(SECTION_DISPLAY, "MOVE_STEP_LARGE"))
    opacity_step_normal: int = Field(default=_d(SECTION_DISPLAY, "OPACITY_STEP_NORMAL"))
    opacity_step_fast: int = Field(default=_d(SECTION_DISPLAY, "OPACITY_STEP_FAST"))
    scale_step_normal: int = Field(default=_d(SECTION_DISPLAY, "SCALE_STEP_NORMAL"))
    scale_step_fast: int = Field(default=_d(SECTION_DISPLAY, "SCALE_STEP_FAST"))
    text_effect: TextEffect = Field(default=_d(SECTION_DISPLAY, "TEXT_EFFECT"))

    # Timer
    default_start_time: int = Field(default=_d(SECTION_TIMER, "CLOCK_DEFAULT_START_TIME"))
    use_24hour: bool = Field(default=_d(SECTION_TIMER, "CLOCK_USE_24HOUR"))
    show_seconds: bool = Field(default=_d(SECTION_TIMER, "CLOCK_SHOW_SECONDS"))
    time_format: TimeFormat = Field(default=_d(SECTION_TIMER, "CLOCK_TIME_FORMAT"))
    show_milliseconds: bool = Field(default=_d(SECTION_TIMER, "CLOCK_SHOW_MILLISECONDS"))
    time_options: List[int] = Field(default_factory=lambda: parse_int_list(DEFAULT_TIME_OPTIONS, MAX_TIME_OPTIONS))
    timeout_text: str = Field(default=_d(SECTION_TIMER, "CLOCK_TIMEOUT_TEXT"))
    timeout_action: TimeoutAction = Field(default=_d(SECTION_TIMER, "CLOCK_TIMEOUT_ACTION"))
    timeout_file: str = Field(default=_d(SECTION_TIMER, "CLOCK_TIMEOUT_FILE"))
    timeout_website: str = Field(default=_d(SECTION_TIMER, "CLOCK_TIMEOUT_WEBSITE"))
    startup_mode: StartupMode = Field(default=_d(SECTION_TIMER, "STARTUP_MODE"))

    # Pomodoro
    pomodoro_times: List[int] = Field(default_factory=lambda: parse_int_list(DEFAULT_POMODORO_TIMES, MAX_POMODORO_TIMES))
    pomodoro_loop_count: int = Field(default=_d(SECTION_POMODORO, "POMODORO_LOOP_COUNT"))

    # Notification
    timeout_message: str = Field(default=_d(SECTION_NOTIFICATION, "CLOCK_TIMEOUT_MESSAGE_TEXT"))
    pomodoro_timeout_message: str = Field(default=_d(SECTION_NOTIFICATION, "POMODORO_TIMEOUT_MESSAGE_TEXT"))
    pomodoro_cycle_complete_message: str = Field(
        default=_d(SECTION_NOTIFICATION, "POMODORO_CYCLE_COMPLETE_TEXT")
    )
    notification_timeout_ms: int = Field(default=_d(SECTION_NOTIFICATION, "NOTIFICATION_TIMEOUT_MS"))
    notification_max_opacity: int = Field(default=_d(SECTION_NOTIFICATION, "NOTIFICATION_MAX_OPACITY"))
    notification_type: NotificationType = Field(default=_d(SECTION_NOTIFICATION, "NOTIFICATION_TYPE"))
    notification_sound_file: str = Field(default=_d(SECTION_NOTIFICATION, "NOTIFICATION_SOUND_FILE"))
    notification_sound_volume: int = Field(default=_d(SECTION_NOTIFICATION, "NOTIFICATION_SOUND_VOLUME"))
    notification_disabled: bool = Field(default=_d(SECTION_NOTIFICATION, "NOTIFICATION_DISABLED"))
    notification_window_x: int = Field(default=_d(SECTION_NOTIFICATION, "NOTIFICATION_WINDOW_X"))
    notification_window_y: int = Field(default=_d(SECTION_NOTIFICATION, "NOTIFICATION_WINDOW_Y"))
    notification_window_width: int = Field(default=_d(SECTION_NOTIFICATION, "NOTIFICATION_WINDOW_WIDTH"))
    notification_window_height: int = Field(default=_d(SECTION_NOTIFICATION, "NOTIFICATION_WINDOW_HEIGHT"))

    # Hotkeys, as 16-bit words
    hotkey_show_time: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_SHOW_TIME"))
    hotkey_count_up: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_COUNT_UP"))
    hotkey_countdown: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_COUNTDOWN"))
    hotkey_quick_countdown1: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_QUICK_COUNTDOWN1"))
    hotkey_quick_countdown2: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_QUICK_COUNTDOWN2"))
    hotkey_quick_countdown3: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_QUICK_COUNTDOWN3"))
    hotkey_pomodoro: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_POMODORO"))
    hotkey_toggle_visibility: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_TOGGLE_VISIBILITY"))
    hotkey_edit_mode: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_EDIT_MODE"))
    hotkey_pause_resume: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_PAUSE_RESUME"))
    hotkey_restart_timer: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_RESTART_TIMER"))
    hotkey_custom_countdown: int = Field(default=_d(SECTION_HOTKEYS, "HOTKEY_CUSTOM_COUNTDOWN"))

    # Recent files, existing on disk only
    recent_files: List[RecentFile] = Field(default_factory=list)

    # Colors
    color_options: List[str] = Field(default_factory=lambda: parse_color_options(DEFAULT_COLOR_OPTIONS))

    # Animation
    animation_path: str = Field(default=_d(SECTION_ANIMATION, "ANIMATION_PATH"))
    animation_speed_metric: AnimationSpeedMetric = Field(default=_d(SECTION_ANIMATION, "ANIMATION_SPEED_METRIC"))
    animation_speed_default: int = Field(default=_d(SECTION_ANIMATION, "ANIMATION_SPEED_DEFAULT"))
    animation_speed_map: Dict[int, int] = Field(
        default_factory=lambda: {
            p: parse_int(find_item(SECTION_ANIMATION, speed_map_key(p)).default) for p in SPEED_MAP_PERCENTS
        }
    )
    percent_icon_text_color: str = Field(default=_d(SECTION_ANIMATION, "PERCENT_ICON_TEXT_COLOR"))
    percent_icon_bg_color: str = Field(default=_d(SECTION_ANIMATION, "PERCENT_ICON_BG_COLOR"))
    animation_folder_interval_ms: int = Field(default=_d(SECTION_ANIMATION, "ANIMATION_FOLDER_INTERVAL_MS"))
    animation_min_interval_ms: int = Field(default=_d(SECTION_ANIMATION, "ANIMATION_MIN_INTERVAL_MS"))


class LiveState(ConfigSnapshot):
    """
    Runtime configuration owned by the configuration service.

    ``timeout_action`` may hold a one-shot action chosen during this
    session; it is never written to disk and survives hot reloads.
    """

    last_config_time: float = 0.0
    full_ui_reset_pending: bool = False


def default_snapshot() -> ConfigSnapshot:
    """Snapshot holding every metadata default, built without any file I/O."""
    return ConfigSnapshot()


def bound_items() -> List[SchemaItem]:
    """Metadata items that map directly onto a Snapshot field."""
    return [item for item in get_metadata() if item.field is not None]
