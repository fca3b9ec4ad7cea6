"""
Configuration service for Catime.

This module owns the process-wide LiveState and ties the pipeline together:
- Startup read: create-if-missing, version check, load, validate, apply,
  side effects, write-back
- Full and per-section writes through the transactional writer
- Hot reload: the watcher posts areas to a queue, the owning thread drains
  it and reloads only those areas
- Single-key setters that update LiveState and persist immediately
"""

import logging
import queue
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from ..core.exceptions import ConfigurationError, ValidationError
from ..core.interfaces import ISettingsManager, IWindowHost
from .applier import ReloadArea, SideEffect, SideEffectKind, apply, apply_areas
from .colors import normalize_color
from .defaults import create_default_config
from .loader import FontNameReader, load
from .migration import ConfigurationMigrator, VersionAction
from .schema import (
    MAX_RECENT_FILES,
    MAX_TIME_OPTIONS,
    SECTION_ANIMATION,
    SECTION_COLORS,
    SECTION_DISPLAY,
    SECTION_GENERAL,
    SECTION_HOTKEYS,
    SECTION_NOTIFICATION,
    SECTION_POMODORO,
    SECTION_RECENT_FILES,
    SECTION_TIMER,
    Language,
    NotificationType,
    TimeoutAction,
    find_item,
)
from .snapshot import ConfigSnapshot, LiveState, RecentFile, default_snapshot
from .store import IniDocument, config_lock, read_bool, update_bool_atomic, update_string_atomic, write_many
from .validator import ColorRecoveryRule, ConfigurationValidator, NotificationRecoveryRule
from .watcher import ConfigWatcher, DEBOUNCE_SECONDS
from .paths import get_config_path
from .writer import collect, format_value, write_config, write_section

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]

SECTION_AREAS: Dict[str, Sequence[ReloadArea]] = {
    SECTION_GENERAL: (ReloadArea.GENERAL, ReloadArea.LANGUAGE),
    SECTION_DISPLAY: (ReloadArea.DISPLAY,),
    SECTION_TIMER: (ReloadArea.TIMER,),
    SECTION_POMODORO: (ReloadArea.POMODORO,),
    SECTION_NOTIFICATION: (ReloadArea.NOTIFICATION,),
    SECTION_HOTKEYS: (ReloadArea.HOTKEYS,),
    SECTION_RECENT_FILES: (ReloadArea.RECENT_FILES,),
    SECTION_COLORS: (ReloadArea.COLORS,),
    SECTION_ANIMATION: (ReloadArea.ANIMATION_SPEED, ReloadArea.ANIMATION_PATH),
}

_RUNTIME_FIELDS = {"last_config_time", "full_ui_reset_pending"}


def snapshot_of(state: LiveState) -> ConfigSnapshot:
    """The persisted part of a LiveState as a standalone snapshot."""
    return ConfigSnapshot(**state.model_dump(exclude=_RUNTIME_FIELDS))


class ConfigurationManager(ISettingsManager):
    """
    Owner of LiveState and the configuration file.

    All methods except the watcher callback are meant to be called from
    the owning (UI) thread. The watcher only feeds ``pending_reloads``.
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        window_host: Optional[IWindowHost] = None,
        font_name_reader: Optional[FontNameReader] = None,
        migrator: Optional[ConfigurationMigrator] = None,
        debounce: float = DEBOUNCE_SECONDS
    ):
        self.config_path = Path(config_path) if config_path else get_config_path()
        self.window_host = window_host
        self.font_name_reader = font_name_reader

        self._state = LiveState()
        self._validator = ConfigurationValidator()
        self._migrator = migrator or ConfigurationMigrator()
        self._watcher = ConfigWatcher(self.config_path, debounce)
        self._lock = threading.RLock()
        self._change_callbacks: Dict[str, List[ChangeCallback]] = {}
        self.pending_reloads: "queue.Queue[ReloadArea]" = queue.Queue()

    @property
    def state(self) -> LiveState:
        """Current LiveState; replaced, never mutated, by reloads and setters."""
        return self._state

    # Pipeline

    def read_config(self) -> LiveState:
        """
        Full startup read.

        Returns:
            The new LiveState
        """
        with self._lock:
            if not self.config_path.exists():
                logger.info(f"Configuration file missing, creating {self.config_path}")
                create_default_config(self.config_path)

            result = self._migrator.check(self.config_path)
            if result.action is VersionAction.RESET:
                # Defaults straight from memory, the regenerated file may not be flushed yet.
                snapshot = default_snapshot()
                modified = False
            else:
                snapshot = load(self.config_path, self.font_name_reader)
                snapshot, modified = self._validator.validate(snapshot)
                modified = modified or result.write_back

            state, effects = apply(self._state, snapshot, self._live_position())
            if result.full_ui_reset:
                state.full_ui_reset_pending = True
            self._state = state

        logger.info(f"Configuration loaded from {self.config_path}")
        self._execute(effects)

        if modified:
            logger.info("Writing back corrected configuration")
            self.write_config()
        return self._state

    def write_config(self) -> bool:
        """Persist the whole LiveState."""
        with self._lock:
            return write_config(self.config_path, self._state)

    def write_section(self, section: str) -> bool:
        if section not in SECTION_AREAS:
            raise ConfigurationError(f"Unknown configuration section: {section}", section=section)
        with self._lock:
            return write_section(self.config_path, self._state, section)

    def consume_full_ui_reset(self) -> bool:
        """Return and clear the flag set by a forced version reset."""
        with self._lock:
            pending = self._state.full_ui_reset_pending
            if pending:
                self._replace(full_ui_reset_pending=False)
            return pending

    # Hot reload

    def start_watching(self) -> bool:
        return self._watcher.start(self.pending_reloads.put)

    def stop_watching(self) -> None:
        self._watcher.stop()

    @property
    def is_watching(self) -> bool:
        return self._watcher.is_running

    def process_pending_reloads(self) -> List[ReloadArea]:
        """
        Drain posted reload notifications and run each area once.

        Returns:
            The areas reloaded, in posting order
        """
        areas: List[ReloadArea] = []
        while True:
            try:
                area = self.pending_reloads.get_nowait()
            except queue.Empty:
                break
            if area not in areas:
                areas.append(area)

        for area in areas:
            self.reload_area(area)
        return areas

    def reload_area(self, area: ReloadArea) -> None:
        """Load a fresh snapshot, validate it and apply one area only."""
        snapshot = load(self.config_path, self.font_name_reader)
        snapshot, _ = self._validator.validate(snapshot)

        with self._lock:
            state, effects = apply_areas(self._state, snapshot, [area], self._live_position())
            self._state = state

        logger.debug(f"Reloaded configuration area {area.value}")
        self._execute(effects)
        self._notify(area)

    def reload_general(self) -> None:
        self.reload_area(ReloadArea.GENERAL)

    def reload_display(self) -> None:
        self.reload_area(ReloadArea.DISPLAY)

    def reload_timer(self) -> None:
        self.reload_area(ReloadArea.TIMER)

    def reload_pomodoro(self) -> None:
        self.reload_area(ReloadArea.POMODORO)

    def reload_notification(self) -> None:
        self.reload_area(ReloadArea.NOTIFICATION)

    def reload_colors(self) -> None:
        self.reload_area(ReloadArea.COLORS)

    def reload_hotkeys(self) -> None:
        self.reload_area(ReloadArea.HOTKEYS)

    def reload_recent_files(self) -> None:
        self.reload_area(ReloadArea.RECENT_FILES)

    def reload_language(self) -> None:
        self.reload_area(ReloadArea.LANGUAGE)

    def reload_animation_speed(self) -> None:
        self.reload_area(ReloadArea.ANIMATION_SPEED)

    def reload_animation_path(self) -> None:
        self.reload_area(ReloadArea.ANIMATION_PATH)

    # Single-key setters

    def set_timeout_action(self, action: TimeoutAction) -> bool:
        """
        Set the timeout action.

        One-shot actions stay in memory only; the file records MESSAGE so
        that a restart can never replay a shutdown.
        """
        with self._lock:
            self._replace(timeout_action=action)
            persisted = TimeoutAction.MESSAGE if action.is_one_shot else action
            return update_string_atomic(SECTION_TIMER, "CLOCK_TIMEOUT_ACTION", persisted.value, self.config_path)

    def set_topmost(self, topmost: bool) -> bool:
        with self._lock:
            self._replace(window_topmost=topmost)
            ok = update_bool_atomic(SECTION_DISPLAY, "WINDOW_TOPMOST", topmost, self.config_path)
        self._execute([SideEffect(SideEffectKind.SET_TOPMOST, (topmost,))])
        return ok

    def set_time_options(self, options: Iterable[int]) -> bool:
        """Quick countdown presets; non-positive values are dropped."""
        values = [int(v) for v in options if int(v) > 0][:MAX_TIME_OPTIONS]
        with self._lock:
            self._replace(time_options=values)
            return update_string_atomic(
                SECTION_TIMER, "CLOCK_TIME_OPTIONS", ",".join(str(v) for v in values), self.config_path
            )

    def set_timeout_file(self, path: str) -> bool:
        """Open ``path`` on timeout."""
        with self._lock:
            self._replace(timeout_file=path, timeout_action=TimeoutAction.OPEN_FILE)
            with config_lock(self.config_path):
                return write_many(self.config_path, [
                    (SECTION_TIMER, "CLOCK_TIMEOUT_FILE", path),
                    (SECTION_TIMER, "CLOCK_TIMEOUT_ACTION", TimeoutAction.OPEN_FILE.value),
                ])

    def set_timeout_website(self, url: str) -> bool:
        """Open ``url`` on timeout."""
        with self._lock:
            self._replace(timeout_website=url, timeout_action=TimeoutAction.OPEN_WEBSITE)
            with config_lock(self.config_path):
                return write_many(self.config_path, [
                    (SECTION_TIMER, "CLOCK_TIMEOUT_WEBSITE", url),
                    (SECTION_TIMER, "CLOCK_TIMEOUT_ACTION", TimeoutAction.OPEN_WEBSITE.value),
                ])

    def set_text_color(self, color: str) -> bool:
        """
        Set the clock text color.

        Returns:
            False if the color is not a valid token or the write failed
        """
        if normalize_color(color) is None:
            logger.warning(f"Ignoring invalid text color '{color}'")
            return False

        with self._lock:
            snapshot = snapshot_of(self._state)
            snapshot.text_color = color
            ColorRecoveryRule().apply(snapshot)
            self._replace(text_color=snapshot.text_color)
            ok = update_string_atomic(SECTION_DISPLAY, "CLOCK_TEXT_COLOR", snapshot.text_color, self.config_path)
        self._execute([SideEffect(SideEffectKind.REDRAW)])
        return ok

    def set_language(self, language: Language) -> bool:
        with self._lock:
            changed = self._state.language != language
            self._replace(language=language)
            ok = update_string_atomic(SECTION_GENERAL, "LANGUAGE", language.value, self.config_path)
        if changed:
            self._execute([SideEffect(SideEffectKind.RELABEL, (language.value,))])
        return ok

    def set_notification_settings(
        self,
        timeout_ms: Optional[int] = None,
        max_opacity: Optional[int] = None,
        notification_type: Optional[NotificationType] = None,
        sound_file: Optional[str] = None,
        sound_volume: Optional[int] = None,
        disabled: Optional[bool] = None
    ) -> bool:
        """Update any subset of the notification settings and commit the section."""
        updates = {
            "notification_timeout_ms": timeout_ms,
            "notification_max_opacity": max_opacity,
            "notification_type": notification_type,
            "notification_sound_file": sound_file,
            "notification_sound_volume": sound_volume,
            "notification_disabled": disabled,
        }
        updates = {name: value for name, value in updates.items() if value is not None}

        with self._lock:
            snapshot = snapshot_of(self._state)
            for name, value in updates.items():
                setattr(snapshot, name, value)
            NotificationRecoveryRule().apply(snapshot)
            self._replace(**{name: getattr(snapshot, name) for name in updates})
            return write_section(self.config_path, self._state, SECTION_NOTIFICATION)

    def add_recent_file(self, path: str) -> bool:
        """Put ``path`` first in the recent list, keeping at most five."""
        with self._lock:
            files = [f for f in self._state.recent_files if f.path != path]
            files.insert(0, RecentFile.from_path(path))
            self._replace(recent_files=files[:MAX_RECENT_FILES])
            return write_section(self.config_path, self._state, SECTION_RECENT_FILES)

    def is_first_run(self) -> bool:
        return read_bool(SECTION_GENERAL, "FIRST_RUN", True, self.config_path)

    def mark_first_run_done(self) -> bool:
        return update_bool_atomic(SECTION_GENERAL, "FIRST_RUN", False, self.config_path)

    # ISettingsManager

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        In-memory value of a key.

        Bound keys return their typed value, list-like keys their file
        text; keys only the file carries are read from disk.
        """
        item = find_item(section, key)
        if item is None:
            return default
        if item.field is not None:
            return item.get(self._state)
        for write_item in collect(self._state, [section]):
            if write_item.key == key:
                return write_item.value
        value = IniDocument.open(self.config_path).get(section, key)
        return default if value is None else value

    def set(self, section: str, key: str, value: Any) -> None:
        """
        Persist one key and reload its area.

        Raises:
            ConfigurationError: If the key is not part of the schema
            ValidationError: If a timeout action value is not recognized
        """
        item = find_item(section, key)
        if item is None:
            raise ConfigurationError(
                f"Unknown configuration key: [{section}] {key}", section=section, config_key=key
            )

        if section == SECTION_TIMER and key == "CLOCK_TIMEOUT_ACTION":
            action = value if isinstance(value, TimeoutAction) else TimeoutAction.parse(str(value), None)
            if action is None:
                raise ValidationError(
                    f"Invalid timeout action: {value}", field_name=key, field_value=value
                )
            self.set_timeout_action(action)
            return

        if isinstance(value, str) or item.field is None:
            text = str(value)
        else:
            text = format_value(item, value)

        with self._lock:
            update_string_atomic(section, key, text, self.config_path)

        for area in SECTION_AREAS.get(section, ()):
            self.reload_area(area)

        # The reload validated the value; store what is actually in use.
        if section in SECTION_AREAS:
            self.write_section(section)

    def validate_config(self) -> List[str]:
        return self._validator.check(snapshot_of(self._state))

    def register_change_callback(self, area: str, callback: ChangeCallback) -> None:
        """Call ``callback(area)`` after every reload of ``area``."""
        area = ReloadArea(area).value
        with self._lock:
            self._change_callbacks.setdefault(area, []).append(callback)

    def unregister_change_callback(self, area: str, callback: ChangeCallback) -> None:
        area = ReloadArea(area).value
        with self._lock:
            callbacks = self._change_callbacks.get(area, [])
            if callback in callbacks:
                callbacks.remove(callback)

    # Internals

    def _replace(self, **fields: Any) -> None:
        state = self._state.model_copy(deep=True)
        for name, value in fields.items():
            setattr(state, name, value)
        self._state = state

    def _live_position(self):
        if self.window_host is None:
            return None
        return self.window_host.get_window_position()

    def _notify(self, area: ReloadArea) -> None:
        for callback in list(self._change_callbacks.get(area.value, [])):
            try:
                callback(area.value)
            except Exception as e:
                logger.error(f"Error in configuration change callback for {area.value}: {e}")

    def _execute(self, effects: Iterable[SideEffect]) -> None:
        """Run applier side effects against the window host, in order."""
        host = self.window_host
        if host is None:
            return

        handlers = {
            SideEffectKind.MOVE_WINDOW: host.move_window,
            SideEffectKind.SET_ALPHA: host.set_alpha,
            SideEffectKind.SET_TOPMOST: host.set_topmost,
            SideEffectKind.REDRAW: host.redraw,
            SideEffectKind.REGISTER_HOTKEYS: host.register_hotkeys,
            SideEffectKind.RELABEL: host.relabel,
            SideEffectKind.RELOAD_ANIMATION_SPEED: host.reload_animation_speed,
            SideEffectKind.LOAD_ANIMATION: host.load_animation,
        }
        for effect in effects:
            try:
                handlers[effect.kind](*effect.args)
            except Exception as e:
                logger.error(f"Side effect {effect.kind.value} failed: {e}")
