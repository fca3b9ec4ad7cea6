"""
Configuration schema for Catime.

This module is the single source of truth for every configuration item:
- Section names and the build version stamped into new files
- Enumerations with case-insensitive parsing and a sane fallback
- The metadata table mapping (section, key) to default, type and the
  Snapshot field it is bound to
- Pure lookup helpers used by the loader, writer and default generator
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

CATIME_VERSION = "1.0.3.1"

SECTION_GENERAL = "General"
SECTION_DISPLAY = "Display"
SECTION_TIMER = "Timer"
SECTION_POMODORO = "Pomodoro"
SECTION_NOTIFICATION = "Notification"
SECTION_HOTKEYS = "Hotkeys"
SECTION_RECENT_FILES = "RecentFiles"
SECTION_COLORS = "Colors"
SECTION_ANIMATION = "Animation"
SECTION_PLUGIN_TRUST = "PluginTrust"

MAX_RECENT_FILES = 5
MAX_TIME_OPTIONS = 10
MAX_POMODORO_TIMES = 10
MAX_TRUSTED_PLUGINS = 64

FONTS_PATH_PREFIX = "%LOCALAPPDATA%\\Catime\\resources\\fonts\\"
DEFAULT_FONT_NAME = "Wallpoet Essence.ttf"
DEFAULT_TEXT_COLOR = "#FFB6C1"
DEFAULT_FONT_SIZE = 20
DEFAULT_START_TIME = 1500
DEFAULT_TIMEOUT_MESSAGE = "Time's up!"
DEFAULT_POMODORO_MESSAGE = "Pomodoro time's up! Take a break."
DEFAULT_POMODORO_COMPLETE_MESSAGE = "All Pomodoro cycles completed!"
DEFAULT_TIME_OPTIONS = "1500,600,300"
DEFAULT_POMODORO_TIMES = "1500,300,1500,600"
DEFAULT_NOTIFICATION_TIMEOUT_MS = 3000
DEFAULT_NOTIFICATION_OPACITY = 95
DEFAULT_COLOR_OPTIONS = (
    "#FFFFFF,#F9DB91,#F4CAE0,#FFB6C1,#A8E7DF,#A3CFB3,#92CBFC,#BDA5E7,"
    "#9370DB,#8C92CF,#72A9A5,#EB99A7,#EB96BD,#FFAE8B,#FF7F50,#CA6174"
)
SPEED_MAP_PERCENTS = (10, 20, 30, 40, 50, 60, 70, 80, 90, 100)


class _ParsableEnum(str, Enum):
    """String enum that maps file text back to a member without raising."""

    @classmethod
    def parse(cls, text: Optional[str], fallback: "_ParsableEnum"):
        if text is None:
            return fallback
        wanted = text.strip().upper()
        for member in cls:
            if member.value.upper() == wanted:
                return member
        return fallback


class ConfigValueType(Enum):
    """Storage type of a configuration item."""
    STRING = "string"
    INT = "int"
    BOOL = "bool"
    FLOAT = "float"
    ENUM = "enum"
    HOTKEY = "hotkey"
    CUSTOM = "custom"


class TimeoutAction(_ParsableEnum):
    MESSAGE = "MESSAGE"
    LOCK = "LOCK"
    SHUTDOWN = "SHUTDOWN"
    RESTART = "RESTART"
    OPEN_FILE = "OPEN_FILE"
    SHOW_TIME = "SHOW_TIME"
    COUNT_UP = "COUNT_UP"
    OPEN_WEBSITE = "OPEN_WEBSITE"
    SLEEP = "SLEEP"

    @property
    def is_one_shot(self) -> bool:
        """One-shot actions fire at most once and are never written to disk."""
        return self in ONE_SHOT_ACTIONS


ONE_SHOT_ACTIONS = frozenset({TimeoutAction.SHUTDOWN, TimeoutAction.RESTART, TimeoutAction.SLEEP})


class StartupMode(_ParsableEnum):
    COUNTDOWN = "COUNTDOWN"
    COUNT_UP = "COUNT_UP"
    SHOW_TIME = "SHOW_TIME"
    NO_DISPLAY = "NO_DISPLAY"
    POMODORO = "POMODORO"


class TimeFormat(_ParsableEnum):
    DEFAULT = "DEFAULT"
    ZERO_PADDED = "ZERO_PADDED"
    FULL_PADDED = "FULL_PADDED"


class NotificationType(_ParsableEnum):
    CATIME = "CATIME"
    SYSTEM_MODAL = "SYSTEM_MODAL"
    OS = "OS"


class TextEffect(_ParsableEnum):
    NONE = "NONE"
    GLOW = "GLOW"
    GLASS = "GLASS"
    NEON = "NEON"
    HOLOGRAPHIC = "HOLOGRAPHIC"
    LIQUID = "LIQUID"


class AnimationSpeedMetric(_ParsableEnum):
    MEMORY = "MEMORY"
    CPU = "CPU"
    TIMER = "TIMER"


class Language(_ParsableEnum):
    CHINESE_SIMPLIFIED = "Chinese_Simplified"
    CHINESE_TRADITIONAL = "Chinese_Traditional"
    ENGLISH = "English"
    SPANISH = "Spanish"
    FRENCH = "French"
    GERMAN = "German"
    RUSSIAN = "Russian"
    PORTUGUESE = "Portuguese"
    JAPANESE = "Japanese"
    KOREAN = "Korean"
    ITALIAN = "Italian"


@dataclass(frozen=True)
class SchemaItem:
    """
    One configuration item.

    ``field`` names the Snapshot attribute the item is bound to. Items
    without a field are parsed by hand in the loader (lists, paths) or
    are file-only flags the Snapshot never carries.
    """
    section: str
    key: str
    default: str
    type: ConfigValueType
    description: str = ""
    field: Optional[str] = None
    enum: Optional[type] = None

    def get(self, snapshot: Any) -> Any:
        return getattr(snapshot, self.field)

    def set(self, snapshot: Any, value: Any) -> None:
        setattr(snapshot, self.field, value)


_S = ConfigValueType

HOTKEY_KEYS: Tuple[Tuple[str, str, str], ...] = (
    ("HOTKEY_SHOW_TIME", "hotkey_show_time", "Show current time hotkey"),
    ("HOTKEY_COUNT_UP", "hotkey_count_up", "Count up mode hotkey"),
    ("HOTKEY_COUNTDOWN", "hotkey_countdown", "Countdown mode hotkey"),
    ("HOTKEY_QUICK_COUNTDOWN1", "hotkey_quick_countdown1", "Quick countdown 1 hotkey"),
    ("HOTKEY_QUICK_COUNTDOWN2", "hotkey_quick_countdown2", "Quick countdown 2 hotkey"),
    ("HOTKEY_QUICK_COUNTDOWN3", "hotkey_quick_countdown3", "Quick countdown 3 hotkey"),
    ("HOTKEY_POMODORO", "hotkey_pomodoro", "Pomodoro mode hotkey"),
    ("HOTKEY_TOGGLE_VISIBILITY", "hotkey_toggle_visibility", "Toggle visibility hotkey"),
    ("HOTKEY_EDIT_MODE", "hotkey_edit_mode", "Edit mode hotkey"),
    ("HOTKEY_PAUSE_RESUME", "hotkey_pause_resume", "Pause/resume hotkey"),
    ("HOTKEY_RESTART_TIMER", "hotkey_restart_timer", "Restart timer hotkey"),
    ("HOTKEY_CUSTOM_COUNTDOWN", "hotkey_custom_countdown", "Custom countdown hotkey"),
)


def recent_file_key(index: int) -> str:
    """Key of the 1-based recent file slot."""
    return f"CLOCK_RECENT_FILE_{index}"


def speed_map_key(percent: int) -> str:
    return f"ANIMATION_SPEED_MAP_{percent}"


CONFIG_METADATA: Tuple[SchemaItem, ...] = (
    # General
    SchemaItem(SECTION_GENERAL, "CONFIG_VERSION", CATIME_VERSION, _S.STRING, "Configuration version"),
    SchemaItem(SECTION_GENERAL, "LANGUAGE", Language.ENGLISH.value, _S.ENUM, "Language", "language", Language),
    SchemaItem(SECTION_GENERAL, "SHORTCUT_CHECK_DONE", "FALSE", _S.BOOL, "Desktop shortcut check completed"),
    SchemaItem(SECTION_GENERAL, "FIRST_RUN", "TRUE", _S.BOOL, "First run flag"),
    SchemaItem(SECTION_GENERAL, "FONT_LICENSE_ACCEPTED", "FALSE", _S.BOOL, "Font license accepted",
               "font_license_accepted"),
    SchemaItem(SECTION_GENERAL, "FONT_LICENSE_VERSION_ACCEPTED", "", _S.STRING, "Accepted license version",
               "font_license_version"),

    # Display
    SchemaItem(SECTION_DISPLAY, "CLOCK_TEXT_COLOR", DEFAULT_TEXT_COLOR, _S.STRING, "Text color (hex)", "text_color"),
    SchemaItem(SECTION_DISPLAY, "CLOCK_BASE_FONT_SIZE", str(DEFAULT_FONT_SIZE), _S.INT, "Base font size",
               "base_font_size"),
    SchemaItem(SECTION_DISPLAY, "FONT_FILE_NAME", FONTS_PATH_PREFIX + DEFAULT_FONT_NAME, _S.CUSTOM, "Font file path"),
    SchemaItem(SECTION_DISPLAY, "CLOCK_WINDOW_POS_X", "-2", _S.INT,
               "Window X position (-2 = Auto/Golden Ratio, -1 = Center)", "window_pos_x"),
    SchemaItem(SECTION_DISPLAY, "CLOCK_WINDOW_POS_Y", "-1", _S.INT, "Window Y position", "window_pos_y"),
    SchemaItem(SECTION_DISPLAY, "WINDOW_SCALE", "1.62", _S.FLOAT, "Window scale factor", "window_scale"),
    SchemaItem(SECTION_DISPLAY, "PLUGIN_SCALE", "1.0", _S.FLOAT, "Plugin mode scale factor", "plugin_scale"),
    SchemaItem(SECTION_DISPLAY, "WINDOW_TOPMOST", "TRUE", _S.BOOL, "Always on top", "window_topmost"),
    SchemaItem(SECTION_DISPLAY, "WINDOW_OPACITY", "100", _S.INT, "Window opacity (0-100)", "window_opacity"),
    SchemaItem(SECTION_DISPLAY, "MOVE_STEP_SMALL", "10", _S.INT, "Arrow key move step (1-500 pixels)",
               "move_step_small"),
    SchemaItem(SECTION_DISPLAY, "MOVE_STEP_LARGE", "50", _S.INT, "Ctrl+arrow key move step (1-500 pixels)",
               "move_step_large"),
    SchemaItem(SECTION_DISPLAY, "OPACITY_STEP_NORMAL", "1", _S.INT, "Opacity scroll step (1-100)",
               "opacity_step_normal"),
    SchemaItem(SECTION_DISPLAY, "OPACITY_STEP_FAST", "5", _S.INT, "Opacity Ctrl+scroll step (1-100)",
               "opacity_step_fast"),
    SchemaItem(SECTION_DISPLAY, "SCALE_STEP_NORMAL", "10", _S.INT, "Scale scroll step (1-100)", "scale_step_normal"),
    SchemaItem(SECTION_DISPLAY, "SCALE_STEP_FAST", "15", _S.INT, "Scale Ctrl+scroll step (1-100)", "scale_step_fast"),
    SchemaItem(SECTION_DISPLAY, "TEXT_EFFECT", TextEffect.NONE.value, _S.ENUM,
               "Text effect style (NONE/GLOW/GLASS/NEON/HOLOGRAPHIC/LIQUID)", "text_effect", TextEffect),

    # Timer
    SchemaItem(SECTION_TIMER, "CLOCK_DEFAULT_START_TIME", str(DEFAULT_START_TIME), _S.INT,
               "Default timer duration (seconds)", "default_start_time"),
    SchemaItem(SECTION_TIMER, "CLOCK_USE_24HOUR", "TRUE", _S.BOOL, "Use 24-hour format", "use_24hour"),
    SchemaItem(SECTION_TIMER, "CLOCK_SHOW_SECONDS", "FALSE", _S.BOOL, "Show seconds in clock mode", "show_seconds"),
    SchemaItem(SECTION_TIMER, "CLOCK_TIME_FORMAT", TimeFormat.DEFAULT.value, _S.ENUM, "Time format style",
               "time_format", TimeFormat),
    SchemaItem(SECTION_TIMER, "CLOCK_SHOW_MILLISECONDS", "FALSE", _S.BOOL, "Show centiseconds", "show_milliseconds"),
    SchemaItem(SECTION_TIMER, "CLOCK_TIME_OPTIONS", DEFAULT_TIME_OPTIONS, _S.CUSTOM, "Quick countdown presets"),
    SchemaItem(SECTION_TIMER, "CLOCK_TIMEOUT_TEXT", "0", _S.STRING, "Timeout text", "timeout_text"),
    SchemaItem(SECTION_TIMER, "CLOCK_TIMEOUT_ACTION", TimeoutAction.MESSAGE.value, _S.ENUM, "Timeout action type",
               "timeout_action", TimeoutAction),
    SchemaItem(SECTION_TIMER, "CLOCK_TIMEOUT_FILE", "", _S.STRING, "File to open on timeout", "timeout_file"),
    SchemaItem(SECTION_TIMER, "CLOCK_TIMEOUT_WEBSITE", "", _S.STRING, "Website to open on timeout",
               "timeout_website"),
    SchemaItem(SECTION_TIMER, "STARTUP_MODE", StartupMode.SHOW_TIME.value, _S.ENUM, "Startup mode",
               "startup_mode", StartupMode),

    # Pomodoro
    SchemaItem(SECTION_POMODORO, "POMODORO_TIME_OPTIONS", DEFAULT_POMODORO_TIMES, _S.CUSTOM,
               "Pomodoro time intervals"),
    SchemaItem(SECTION_POMODORO, "POMODORO_LOOP_COUNT", "1", _S.INT, "Cycles before long break",
               "pomodoro_loop_count"),

    # Notification
    SchemaItem(SECTION_NOTIFICATION, "CLOCK_TIMEOUT_MESSAGE_TEXT", DEFAULT_TIMEOUT_MESSAGE, _S.STRING,
               "Timeout message", "timeout_message"),
    SchemaItem(SECTION_NOTIFICATION, "POMODORO_TIMEOUT_MESSAGE_TEXT", DEFAULT_POMODORO_MESSAGE, _S.STRING,
               "Pomodoro phase message", "pomodoro_timeout_message"),
    SchemaItem(SECTION_NOTIFICATION, "POMODORO_CYCLE_COMPLETE_TEXT", DEFAULT_POMODORO_COMPLETE_MESSAGE, _S.STRING,
               "Pomodoro completion message", "pomodoro_cycle_complete_message"),
    SchemaItem(SECTION_NOTIFICATION, "NOTIFICATION_TIMEOUT_MS", str(DEFAULT_NOTIFICATION_TIMEOUT_MS), _S.INT,
               "Notification display duration", "notification_timeout_ms"),
    SchemaItem(SECTION_NOTIFICATION, "NOTIFICATION_MAX_OPACITY", str(DEFAULT_NOTIFICATION_OPACITY), _S.INT,
               "Notification opacity (1-100)", "notification_max_opacity"),
    SchemaItem(SECTION_NOTIFICATION, "NOTIFICATION_TYPE", NotificationType.CATIME.value, _S.ENUM,
               "Notification display type", "notification_type", NotificationType),
    SchemaItem(SECTION_NOTIFICATION, "NOTIFICATION_SOUND_FILE", "", _S.STRING, "Notification sound file",
               "notification_sound_file"),
    SchemaItem(SECTION_NOTIFICATION, "NOTIFICATION_SOUND_VOLUME", "100", _S.INT, "Sound volume (0-100)",
               "notification_sound_volume"),
    SchemaItem(SECTION_NOTIFICATION, "NOTIFICATION_DISABLED", "FALSE", _S.BOOL, "Disable all notifications",
               "notification_disabled"),
    SchemaItem(SECTION_NOTIFICATION, "NOTIFICATION_WINDOW_X", "-1", _S.INT, "Notification window X position",
               "notification_window_x"),
    SchemaItem(SECTION_NOTIFICATION, "NOTIFICATION_WINDOW_Y", "-1", _S.INT, "Notification window Y position",
               "notification_window_y"),
    SchemaItem(SECTION_NOTIFICATION, "NOTIFICATION_WINDOW_WIDTH", "0", _S.INT, "Notification window width",
               "notification_window_width"),
    SchemaItem(SECTION_NOTIFICATION, "NOTIFICATION_WINDOW_HEIGHT", "0", _S.INT, "Notification window height",
               "notification_window_height"),

    # Animation
    SchemaItem(SECTION_ANIMATION, "ANIMATION_PATH", "__logo__", _S.STRING, "Tray icon animation path",
               "animation_path"),
    SchemaItem(SECTION_ANIMATION, "ANIMATION_SPEED_METRIC", AnimationSpeedMetric.MEMORY.value, _S.ENUM,
               "Animation speed metric (MEMORY/CPU/TIMER)", "animation_speed_metric", AnimationSpeedMetric),
    SchemaItem(SECTION_ANIMATION, "ANIMATION_SPEED_DEFAULT", "100", _S.INT, "Default animation speed percentage",
               "animation_speed_default"),
) + tuple(
    SchemaItem(SECTION_ANIMATION, speed_map_key(p), str(100 + 4 * p), _S.CUSTOM, f"Speed at {p}% metric")
    for p in SPEED_MAP_PERCENTS
) + (
    SchemaItem(SECTION_ANIMATION, "PERCENT_ICON_TEXT_COLOR", "auto", _S.STRING,
               "Percent icon text color (auto = theme-based, or hex color)", "percent_icon_text_color"),
    SchemaItem(SECTION_ANIMATION, "PERCENT_ICON_BG_COLOR", "transparent", _S.STRING,
               "Percent icon background color (transparent = no background, or hex color)",
               "percent_icon_bg_color"),
    SchemaItem(SECTION_ANIMATION, "ANIMATION_FOLDER_INTERVAL_MS", "150", _S.INT, "Folder animation interval",
               "animation_folder_interval_ms"),
    SchemaItem(SECTION_ANIMATION, "ANIMATION_MIN_INTERVAL_MS", "0", _S.INT, "Minimum animation interval",
               "animation_min_interval_ms"),
) + tuple(
    SchemaItem(SECTION_HOTKEYS, key, "None", _S.HOTKEY, description, field)
    for key, field, description in HOTKEY_KEYS
) + (
    SchemaItem(SECTION_COLORS, "COLOR_OPTIONS", DEFAULT_COLOR_OPTIONS, _S.CUSTOM, "Color palette"),
) + tuple(
    SchemaItem(SECTION_RECENT_FILES, recent_file_key(i), "", _S.CUSTOM, f"Recent file {i}")
    for i in range(1, MAX_RECENT_FILES + 1)
)

_INDEX: Dict[Tuple[str, str], SchemaItem] = {(item.section, item.key): item for item in CONFIG_METADATA}

if len(_INDEX) != len(CONFIG_METADATA):
    raise RuntimeError("Duplicate (section, key) in configuration metadata")


def get_metadata() -> Tuple[SchemaItem, ...]:
    """Return the immutable metadata table in file order."""
    return CONFIG_METADATA


def find_item(section: str, key: str) -> Optional[SchemaItem]:
    return _INDEX.get((section, key))


def get_default_value(section: str, key: str) -> Optional[str]:
    """
    Look up the default text of one item.

    Returns:
        Default value as written to the file, or None for unknown keys
    """
    item = _INDEX.get((section, key))
    return item.default if item else None


def get_section_items(section: str) -> List[SchemaItem]:
    return [item for item in CONFIG_METADATA if item.section == section]


def get_sections() -> List[str]:
    """Section names in the order they first appear in the table."""
    sections: List[str] = []
    for item in CONFIG_METADATA:
        if item.section not in sections:
            sections.append(item.section)
    return sections
