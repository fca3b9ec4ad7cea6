"""
Configuration validator and recovery rules.

This module sanitizes a ConfigSnapshot in place with:
- Range clamping for every numeric field with a natural range
- Reset to defaults for unusable values (colors, fonts, enums, lists)
- The one-shot safety rule: SHUTDOWN, RESTART and SLEEP never survive
  validation, so they can never be applied from or written back to disk
- Downgrade of file and website timeout actions without a usable target

Nothing here raises; every correction is logged and reported.
"""

import logging
import os
from typing import List, Tuple

from .colors import normalize_color
from .paths import expand_path
from .schema import (
    DEFAULT_FONT_NAME,
    DEFAULT_FONT_SIZE,
    DEFAULT_NOTIFICATION_TIMEOUT_MS,
    DEFAULT_START_TIME,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TIME_OPTIONS,
    DEFAULT_POMODORO_TIMES,
    FONTS_PATH_PREFIX,
    MAX_POMODORO_TIMES,
    MAX_TIME_OPTIONS,
    StartupMode,
    TimeoutAction,
)
from .snapshot import ConfigSnapshot, parse_int_list

logger = logging.getLogger(__name__)

MIN_FONT_SIZE = 8
MAX_FONT_SIZE = 500
FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")
PURE_BLACK = "#000000"
NEAR_BLACK = "#000001"


def _clamp(value, low, high):
    return max(low, min(high, value))


class RecoveryRule:
    """Base class for recovery rules."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    def apply(self, snapshot: ConfigSnapshot) -> List[str]:
        """
        Correct the snapshot in place.

        Args:
            snapshot: Snapshot to sanitize

        Returns:
            Descriptions of the corrections made (empty if none)
        """
        raise NotImplementedError

    @staticmethod
    def _set(snapshot: ConfigSnapshot, field: str, value, changes: List[str]) -> None:
        old = getattr(snapshot, field)
        if old != value:
            setattr(snapshot, field, value)
            changes.append(f"{field}: {old!r} -> {value!r}")

    def _clamp_field(self, snapshot: ConfigSnapshot, field: str, low, high, changes: List[str]) -> None:
        self._set(snapshot, field, _clamp(getattr(snapshot, field), low, high), changes)


class FontRecoveryRule(RecoveryRule):
    """Font size range and font file extension."""

    def __init__(self):
        super().__init__("font_recovery", "Keeps the font size and font file usable")

    def apply(self, snapshot: ConfigSnapshot) -> List[str]:
        changes: List[str] = []

        size = snapshot.base_font_size
        if size < MIN_FONT_SIZE:
            self._set(snapshot, "base_font_size", DEFAULT_FONT_SIZE, changes)
        elif size > MAX_FONT_SIZE:
            self._set(snapshot, "base_font_size", MAX_FONT_SIZE, changes)

        if not snapshot.font_file_name.lower().endswith(FONT_EXTENSIONS):
            self._set(snapshot, "font_file_name", FONTS_PATH_PREFIX + DEFAULT_FONT_NAME, changes)
            self._set(snapshot, "font_internal_name", os.path.splitext(DEFAULT_FONT_NAME)[0], changes)

        return changes


class ColorRecoveryRule(RecoveryRule):
    """Text color must be a valid token and never pure black."""

    def __init__(self):
        super().__init__("color_recovery", "Resets unusable text colors")

    def apply(self, snapshot: ConfigSnapshot) -> List[str]:
        changes: List[str] = []

        color = normalize_color(snapshot.text_color)
        if color is None:
            color = DEFAULT_TEXT_COLOR
        elif color == PURE_BLACK:
            # Black is the window color key and would erase the text.
            color = NEAR_BLACK
        self._set(snapshot, "text_color", color, changes)

        return changes


class DisplayRecoveryRule(RecoveryRule):
    """Window scale, opacity and step sizes."""

    def __init__(self):
        super().__init__("display_recovery", "Clamps window geometry and step sizes")

    def apply(self, snapshot: ConfigSnapshot) -> List[str]:
        changes: List[str] = []

        self._clamp_field(snapshot, "window_scale", 0.5, 100.0, changes)
        self._clamp_field(snapshot, "plugin_scale", 0.5, 100.0, changes)
        self._clamp_field(snapshot, "window_opacity", 0, 100, changes)
        self._clamp_field(snapshot, "move_step_small", 1, 500, changes)
        self._clamp_field(snapshot, "move_step_large", 1, 500, changes)
        self._clamp_field(snapshot, "opacity_step_normal", 1, 100, changes)
        self._clamp_field(snapshot, "opacity_step_fast", 1, 100, changes)
        self._clamp_field(snapshot, "scale_step_normal", 1, 100, changes)
        self._clamp_field(snapshot, "scale_step_fast", 1, 100, changes)

        return changes


class TimerRecoveryRule(RecoveryRule):
    """Default duration, quick presets and startup mode."""

    def __init__(self):
        super().__init__("timer_recovery", "Keeps timer durations in range")

    def apply(self, snapshot: ConfigSnapshot) -> List[str]:
        changes: List[str] = []

        if not 1 <= snapshot.default_start_time <= 86400:
            self._set(snapshot, "default_start_time", DEFAULT_START_TIME, changes)

        if len(snapshot.time_options) > MAX_TIME_OPTIONS or any(v <= 0 for v in snapshot.time_options):
            self._set(snapshot, "time_options", parse_int_list(DEFAULT_TIME_OPTIONS, MAX_TIME_OPTIONS), changes)

        if not isinstance(snapshot.startup_mode, StartupMode):
            self._set(snapshot, "startup_mode", StartupMode.SHOW_TIME, changes)

        return changes


class TimeoutActionRecoveryRule(RecoveryRule):
    """Never let a one-shot or target-less timeout action through."""

    def __init__(self):
        super().__init__("timeout_action_recovery", "Downgrades unsafe timeout actions")

    def apply(self, snapshot: ConfigSnapshot) -> List[str]:
        changes: List[str] = []
        action = snapshot.timeout_action

        if action.is_one_shot:
            self._set(snapshot, "timeout_action", TimeoutAction.MESSAGE, changes)
        elif action is TimeoutAction.OPEN_FILE:
            target = snapshot.timeout_file.strip()
            if not target or not os.path.exists(expand_path(target)):
                self._set(snapshot, "timeout_action", TimeoutAction.MESSAGE, changes)
        elif action is TimeoutAction.OPEN_WEBSITE:
            if not snapshot.timeout_website.strip():
                self._set(snapshot, "timeout_action", TimeoutAction.MESSAGE, changes)

        return changes


class PomodoroRecoveryRule(RecoveryRule):
    """Interval list size and loop count."""

    def __init__(self):
        super().__init__("pomodoro_recovery", "Keeps Pomodoro intervals usable")

    def apply(self, snapshot: ConfigSnapshot) -> List[str]:
        changes: List[str] = []

        times = snapshot.pomodoro_times
        if len(times) > MAX_POMODORO_TIMES or any(v <= 0 for v in times):
            self._set(
                snapshot, "pomodoro_times",
                parse_int_list(DEFAULT_POMODORO_TIMES, MAX_POMODORO_TIMES), changes
            )

        if snapshot.pomodoro_loop_count < 1:
            self._set(snapshot, "pomodoro_loop_count", 1, changes)

        return changes


class NotificationRecoveryRule(RecoveryRule):
    """Notification timeout, opacity and volume."""

    def __init__(self):
        super().__init__("notification_recovery", "Clamps notification settings")

    def apply(self, snapshot: ConfigSnapshot) -> List[str]:
        changes: List[str] = []

        if not 0 <= snapshot.notification_timeout_ms <= 60000:
            self._set(snapshot, "notification_timeout_ms", DEFAULT_NOTIFICATION_TIMEOUT_MS, changes)
        self._clamp_field(snapshot, "notification_max_opacity", 1, 100, changes)
        self._clamp_field(snapshot, "notification_sound_volume", 0, 100, changes)

        return changes


class AnimationRecoveryRule(RecoveryRule):
    """Animation intervals and speed map."""

    def __init__(self):
        super().__init__("animation_recovery", "Keeps animation timing in range")

    def apply(self, snapshot: ConfigSnapshot) -> List[str]:
        changes: List[str] = []

        self._clamp_field(snapshot, "animation_speed_default", 1, 1000, changes)
        self._set(snapshot, "animation_folder_interval_ms", max(0, snapshot.animation_folder_interval_ms), changes)
        self._set(snapshot, "animation_min_interval_ms", max(0, snapshot.animation_min_interval_ms), changes)

        speed_map = {p: _clamp(v, 1, 1000) for p, v in snapshot.animation_speed_map.items()}
        self._set(snapshot, "animation_speed_map", speed_map, changes)

        return changes


class ConfigurationValidator:
    """
    Runs every recovery rule over a snapshot.

    Validation is idempotent: a snapshot that has been validated once is
    left untouched by a second pass.
    """

    def __init__(self):
        self.rules: List[RecoveryRule] = [
            FontRecoveryRule(),
            ColorRecoveryRule(),
            DisplayRecoveryRule(),
            TimerRecoveryRule(),
            TimeoutActionRecoveryRule(),
            PomodoroRecoveryRule(),
            NotificationRecoveryRule(),
            AnimationRecoveryRule(),
        ]

    def add_rule(self, rule: RecoveryRule) -> None:
        self.rules.append(rule)

    def check(self, snapshot: ConfigSnapshot) -> List[str]:
        """Corrections a validation pass would make, without touching the snapshot."""
        return self.validate_with_report(snapshot.model_copy(deep=True))

    def validate_with_report(self, snapshot: ConfigSnapshot) -> List[str]:
        changes: List[str] = []
        for rule in self.rules:
            rule_changes = rule.apply(snapshot)
            for change in rule_changes:
                logger.warning(f"Configuration corrected by {rule.name}: {change}")
            changes.extend(rule_changes)
        return changes

    def validate(self, snapshot: ConfigSnapshot) -> Tuple[ConfigSnapshot, bool]:
        """
        Sanitize a snapshot in place.

        Returns:
            The same snapshot and whether anything was modified
        """
        changes = self.validate_with_report(snapshot)
        return snapshot, bool(changes)


def validate(snapshot: ConfigSnapshot) -> Tuple[ConfigSnapshot, bool]:
    return ConfigurationValidator().validate(snapshot)
