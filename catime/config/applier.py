"""
Configuration applier.

Pushes a validated snapshot into LiveState. ``apply`` is a pure function
of (state, snapshot): it returns a new LiveState together with the side
effects the caller must execute on the UI thread, in a fixed order:
general, display, timer, Pomodoro, notification, colors, hotkeys, recent
files, language, animation speed, then the reload timestamp.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .schema import HOTKEY_KEYS
from .snapshot import ConfigSnapshot, LiveState

logger = logging.getLogger(__name__)

# A live window this far from the stored position was probably dragged
# after the file was written.
POSITION_TOLERANCE = 10


class ReloadArea(str, Enum):
    """Functional areas that can be applied or reloaded independently."""
    GENERAL = "general"
    DISPLAY = "display"
    TIMER = "timer"
    POMODORO = "pomodoro"
    NOTIFICATION = "notification"
    COLORS = "colors"
    HOTKEYS = "hotkeys"
    RECENT_FILES = "recent_files"
    LANGUAGE = "language"
    ANIMATION_SPEED = "animation_speed"
    ANIMATION_PATH = "animation_path"


class SideEffectKind(Enum):
    MOVE_WINDOW = "move_window"
    SET_ALPHA = "set_alpha"
    SET_TOPMOST = "set_topmost"
    REDRAW = "redraw"
    REGISTER_HOTKEYS = "register_hotkeys"
    RELABEL = "relabel"
    RELOAD_ANIMATION_SPEED = "reload_animation_speed"
    LOAD_ANIMATION = "load_animation"


@dataclass(frozen=True)
class SideEffect:
    kind: SideEffectKind
    args: Tuple = ()


Position = Optional[Tuple[int, int]]

_GENERAL_FIELDS = ("font_license_accepted", "font_license_version")
_DISPLAY_FIELDS = (
    "text_color", "base_font_size", "font_file_name", "font_internal_name",
    "window_scale", "plugin_scale", "window_topmost", "window_opacity",
    "move_step_small", "move_step_large", "opacity_step_normal", "opacity_step_fast",
    "scale_step_normal", "scale_step_fast", "text_effect",
)
_TIMER_FIELDS = (
    "default_start_time", "use_24hour", "show_seconds", "time_format", "show_milliseconds",
    "time_options", "timeout_text", "timeout_file", "timeout_website", "startup_mode",
)
_POMODORO_FIELDS = ("pomodoro_times", "pomodoro_loop_count")
_NOTIFICATION_FIELDS = (
    "timeout_message", "pomodoro_timeout_message", "pomodoro_cycle_complete_message",
    "notification_timeout_ms", "notification_max_opacity", "notification_type",
    "notification_sound_file", "notification_sound_volume", "notification_disabled",
    "notification_window_x", "notification_window_y",
    "notification_window_width", "notification_window_height",
)
_ANIMATION_SPEED_FIELDS = (
    "animation_speed_metric", "animation_speed_default", "animation_speed_map",
    "percent_icon_text_color", "percent_icon_bg_color",
    "animation_folder_interval_ms", "animation_min_interval_ms",
)


def _copy_fields(state: LiveState, snapshot: ConfigSnapshot, fields: Iterable[str]) -> None:
    for name in fields:
        value = getattr(snapshot, name)
        if isinstance(value, (list, dict)):
            value = value.copy()
        setattr(state, name, value)


def _apply_general(state, snapshot, effects, live_position):
    _copy_fields(state, snapshot, _GENERAL_FIELDS)


def _apply_display(state, snapshot, effects, live_position):
    _copy_fields(state, snapshot, _DISPLAY_FIELDS)

    if live_position is None:
        state.window_pos_x = snapshot.window_pos_x
        state.window_pos_y = snapshot.window_pos_y
    else:
        live_x, live_y = live_position
        if (abs(live_x - snapshot.window_pos_x) > POSITION_TOLERANCE
                or abs(live_y - snapshot.window_pos_y) > POSITION_TOLERANCE):
            logger.debug(f"Keeping live window position ({live_x}, {live_y})")
            state.window_pos_x = live_x
            state.window_pos_y = live_y
        else:
            state.window_pos_x = snapshot.window_pos_x
            state.window_pos_y = snapshot.window_pos_y
            effects.append(SideEffect(SideEffectKind.MOVE_WINDOW, (state.window_pos_x, state.window_pos_y)))

        effects.append(SideEffect(SideEffectKind.SET_ALPHA, (state.window_opacity * 255 // 100,)))
        effects.append(SideEffect(SideEffectKind.SET_TOPMOST, (state.window_topmost,)))
        effects.append(SideEffect(SideEffectKind.REDRAW))


def _apply_timer(state, snapshot, effects, live_position):
    _copy_fields(state, snapshot, _TIMER_FIELDS)

    # An in-session one-shot choice outlives hot reloads.
    if state.timeout_action.is_one_shot:
        logger.debug(f"Preserving active one-shot timeout action {state.timeout_action.value}")
    else:
        state.timeout_action = snapshot.timeout_action


def _apply_pomodoro(state, snapshot, effects, live_position):
    _copy_fields(state, snapshot, _POMODORO_FIELDS)


def _apply_notification(state, snapshot, effects, live_position):
    _copy_fields(state, snapshot, _NOTIFICATION_FIELDS)


def _apply_colors(state, snapshot, effects, live_position):
    state.color_options = list(snapshot.color_options)


def hotkey_map(state: ConfigSnapshot) -> Dict[str, int]:
    return {key: getattr(state, field) for key, field, _ in HOTKEY_KEYS}


def _apply_hotkeys(state, snapshot, effects, live_position):
    before = hotkey_map(state)
    for _, field, _ in HOTKEY_KEYS:
        setattr(state, field, getattr(snapshot, field))
    after = hotkey_map(state)
    if after != before:
        effects.append(SideEffect(SideEffectKind.REGISTER_HOTKEYS, (after,)))


def _apply_recent_files(state, snapshot, effects, live_position):
    state.recent_files = [f.model_copy() for f in snapshot.recent_files]


def _apply_language(state, snapshot, effects, live_position):
    if state.language != snapshot.language:
        state.language = snapshot.language
        effects.append(SideEffect(SideEffectKind.RELABEL, (state.language.value,)))


def _apply_animation_speed(state, snapshot, effects, live_position):
    _copy_fields(state, snapshot, _ANIMATION_SPEED_FIELDS)
    effects.append(SideEffect(SideEffectKind.RELOAD_ANIMATION_SPEED))


def _apply_animation_path(state, snapshot, effects, live_position):
    if state.animation_path != snapshot.animation_path:
        state.animation_path = snapshot.animation_path
        effects.append(SideEffect(SideEffectKind.LOAD_ANIMATION, (state.animation_path,)))


AreaApplier = Callable[[LiveState, ConfigSnapshot, List[SideEffect], Position], None]

APPLY_ORDER: Tuple[Tuple[ReloadArea, AreaApplier], ...] = (
    (ReloadArea.GENERAL, _apply_general),
    (ReloadArea.DISPLAY, _apply_display),
    (ReloadArea.TIMER, _apply_timer),
    (ReloadArea.POMODORO, _apply_pomodoro),
    (ReloadArea.NOTIFICATION, _apply_notification),
    (ReloadArea.COLORS, _apply_colors),
    (ReloadArea.HOTKEYS, _apply_hotkeys),
    (ReloadArea.RECENT_FILES, _apply_recent_files),
    (ReloadArea.LANGUAGE, _apply_language),
    (ReloadArea.ANIMATION_SPEED, _apply_animation_speed),
    (ReloadArea.ANIMATION_PATH, _apply_animation_path),
)

FULL_APPLY = frozenset(area for area, _ in APPLY_ORDER)


def apply_areas(
    state: LiveState,
    snapshot: Optional[ConfigSnapshot],
    areas: Iterable[ReloadArea],
    live_position: Position = None,
    now: Optional[float] = None
) -> Tuple[LiveState, List[SideEffect]]:
    """
    Apply selected areas of a snapshot, in the fixed apply order.

    Returns:
        New LiveState and the side effects to execute, in order
    """
    if snapshot is None:
        return state, []

    wanted = set(areas)
    new_state = state.model_copy(deep=True)
    effects: List[SideEffect] = []

    for area, applier in APPLY_ORDER:
        if area in wanted:
            applier(new_state, snapshot, effects, live_position)

    new_state.last_config_time = time.time() if now is None else now
    return new_state, effects


def apply(
    state: LiveState,
    snapshot: Optional[ConfigSnapshot],
    live_position: Position = None,
    now: Optional[float] = None
) -> Tuple[LiveState, List[SideEffect]]:
    """
    Apply a whole snapshot.

    Args:
        state: Current LiveState, left untouched
        snapshot: Validated snapshot; None is a no-op
        live_position: Current on-screen window position, or None when
            no window exists yet
        now: Reload timestamp, defaults to the current time

    Returns:
        New LiveState and the side effects to execute, in order
    """
    return apply_areas(state, snapshot, FULL_APPLY, live_position, now)


def state_from_snapshot(snapshot: ConfigSnapshot) -> LiveState:
    """LiveState holding exactly the snapshot values, without side effects."""
    return LiveState(**snapshot.model_dump())
