"""Tests for the configuration service."""

from __future__ import annotations

import time

import pytest

from catime.config import store
from catime.config.applier import ReloadArea
from catime.config.manager import ConfigurationManager
from catime.config.migration import ConfigurationMigrator
from catime.config.schema import CATIME_VERSION, Language, NotificationType, TimeoutAction
from catime.config.hotkeys import string_to_hotkey
from catime.core.exceptions import ConfigurationError, ValidationError
from tests.conftest import FakeWindowHost


@pytest.fixture(autouse=True)
def english_locale(mocker):
    """Default files are generated in English regardless of the test machine."""
    mocker.patch("catime.config.defaults.detect_system_language", return_value=Language.ENGLISH)


@pytest.fixture
def manager(config_path, window_host):
    mgr = ConfigurationManager(config_path, window_host=window_host, debounce=0.05)
    yield mgr
    mgr.stop_watching()


def _current(body: str) -> str:
    return f"[General]\nCONFIG_VERSION={CATIME_VERSION}\n{body}"


class TestReadConfig:
    """The startup pipeline."""

    def test_missing_file_is_created(self, manager, config_path):
        state = manager.read_config()
        assert config_path.exists()
        assert store.read_string("General", "CONFIG_VERSION", "", config_path) == CATIME_VERSION
        assert state.base_font_size == 20
        assert state.last_config_time > 0

    def test_side_effects_reach_the_window(self, manager, window_host):
        manager.read_config()
        names = window_host.names()
        assert "set_alpha" in names
        assert "redraw" in names
        assert "reload_animation_speed" in names
        # Live window at (100, 200) is far from the default position.
        assert "move_window" not in names

    def test_corrections_are_written_back(self, manager, write_ini):
        path = write_ini(_current("[Timer]\nCLOCK_DEFAULT_START_TIME=-10\n[Display]\nCLOCK_TEXT_COLOR=#000000\n"))
        state = manager.read_config()
        assert state.default_start_time == 1500
        assert state.text_color == "#000001"
        assert store.read_int("Timer", "CLOCK_DEFAULT_START_TIME", 0, path) == 1500
        assert store.read_string("Display", "CLOCK_TEXT_COLOR", "", path) == "#000001"

    def test_stray_line_keeps_user_values(self, manager, write_ini):
        path = write_ini("stray\n" + _current("[Display]\nCLOCK_BASE_FONT_SIZE=64\nCLOCK_TEXT_COLOR=#ABCDEF\n"))
        state = manager.read_config()
        assert state.base_font_size == 64
        assert state.text_color == "#ABCDEF"
        assert store.read_int("Display", "CLOCK_BASE_FONT_SIZE", 0, path) == 64

    def test_one_shot_action_in_file_never_applies(self, manager, write_ini):
        path = write_ini(_current("[Timer]\nCLOCK_TIMEOUT_ACTION=SHUTDOWN\n"))
        state = manager.read_config()
        assert state.timeout_action is TimeoutAction.MESSAGE
        assert store.read_string("Timer", "CLOCK_TIMEOUT_ACTION", "", path) == "MESSAGE"

    def test_valid_file_is_not_rewritten(self, manager, write_ini, mocker):
        manager.read_config()
        spy = mocker.spy(store, "atomic_write_text")
        manager.read_config()
        spy.assert_not_called()

    def test_old_version_is_migrated(self, manager, write_ini):
        path = write_ini("[General]\nCONFIG_VERSION=0.9\nLANGUAGE=Italian\n[Display]\nCLOCK_BASE_FONT_SIZE=44\n")
        state = manager.read_config()
        assert state.language is Language.ITALIAN
        assert state.base_font_size == 44
        assert store.read_string("General", "CONFIG_VERSION", "", path) == CATIME_VERSION
        assert not manager.consume_full_ui_reset()

    def test_forced_reset_applies_defaults(self, config_path, write_ini):
        write_ini("[General]\nCONFIG_VERSION=0.9\n[Display]\nCLOCK_BASE_FONT_SIZE=44\n")
        manager = ConfigurationManager(config_path, migrator=ConfigurationMigrator(force_reset=True))
        state = manager.read_config()
        assert state.base_font_size == 20
        assert manager.consume_full_ui_reset() is True
        assert manager.consume_full_ui_reset() is False

    def test_language_change_relabels(self, manager, write_ini, window_host):
        write_ini(_current("LANGUAGE=Russian\n"))
        manager.read_config()
        assert ("relabel", ("Russian",)) in window_host.calls

    def test_failing_window_host_does_not_break_read(self, config_path, mocker):
        host = FakeWindowHost(position=(0, 0))
        mocker.patch.object(host, "redraw", side_effect=RuntimeError("window destroyed"))
        manager = ConfigurationManager(config_path, window_host=host)
        assert manager.read_config().base_font_size == 20


class TestWriteConfig:
    """Full writes."""

    def test_write_preserves_first_run(self, manager, config_path):
        manager.read_config()
        manager.mark_first_run_done()
        manager.write_config()
        assert manager.is_first_run() is False

    def test_write_section_rejects_unknown_section(self, manager):
        with pytest.raises(ConfigurationError):
            manager.write_section("Nope")


class TestHotReload:
    """Queued per-area reloads."""

    def test_pending_reload_applies_one_area(self, manager, config_path):
        manager.read_config()
        store.write_many(config_path, [
            ("Pomodoro", "POMODORO_LOOP_COUNT", "3"),
            ("Display", "CLOCK_BASE_FONT_SIZE", "99"),
        ])
        manager.pending_reloads.put(ReloadArea.POMODORO)
        manager.pending_reloads.put(ReloadArea.POMODORO)

        assert manager.process_pending_reloads() == [ReloadArea.POMODORO]
        assert manager.state.pomodoro_loop_count == 3
        assert manager.state.base_font_size == 20

    def test_reload_validates(self, manager, config_path):
        manager.read_config()
        store.write_string("Notification", "NOTIFICATION_SOUND_VOLUME", "250", config_path)
        manager.reload_notification()
        assert manager.state.notification_sound_volume == 100

    def test_callbacks_run_after_reload(self, manager, mocker):
        manager.read_config()
        callback = mocker.Mock()
        manager.register_change_callback("colors", callback)
        manager.reload_colors()
        manager.reload_timer()
        callback.assert_called_once_with("colors")

    def test_unregister_callback(self, manager, mocker):
        callback = mocker.Mock()
        manager.register_change_callback("timer", callback)
        manager.unregister_change_callback("timer", callback)
        manager.read_config()
        manager.reload_timer()
        callback.assert_not_called()

    def test_unknown_area_is_rejected(self, manager):
        with pytest.raises(ValueError):
            manager.register_change_callback("weather", lambda area: None)

    def test_reload_keeps_active_one_shot(self, manager):
        manager.read_config()
        manager.set_timeout_action(TimeoutAction.SLEEP)
        manager.reload_timer()
        assert manager.state.timeout_action is TimeoutAction.SLEEP

    def test_watcher_feeds_queue(self, manager, config_path):
        manager.read_config()
        assert manager.start_watching()
        assert manager.is_watching
        time.sleep(0.2)
        store.write_string("Colors", "COLOR_OPTIONS", "#FFFFFF,#123456", config_path)

        deadline = time.monotonic() + 5.0
        while manager.pending_reloads.empty() and time.monotonic() < deadline:
            time.sleep(0.02)
        time.sleep(0.2)

        assert ReloadArea.COLORS in manager.process_pending_reloads()
        assert manager.state.color_options == ["#FFFFFF", "#123456"]
        manager.stop_watching()
        assert not manager.is_watching


class TestSetters:
    """Single-key setters persist immediately."""

    @pytest.fixture(autouse=True)
    def loaded(self, manager):
        manager.read_config()

    def test_one_shot_action_is_never_persisted(self, manager, config_path):
        assert manager.set_timeout_action(TimeoutAction.SHUTDOWN)
        assert manager.state.timeout_action is TimeoutAction.SHUTDOWN
        assert store.read_string("Timer", "CLOCK_TIMEOUT_ACTION", "", config_path) == "MESSAGE"

        manager.write_config()
        assert store.read_string("Timer", "CLOCK_TIMEOUT_ACTION", "", config_path) == "MESSAGE"

    def test_regular_action_is_persisted(self, manager, config_path):
        manager.set_timeout_action(TimeoutAction.LOCK)
        assert store.read_string("Timer", "CLOCK_TIMEOUT_ACTION", "", config_path) == "LOCK"

    def test_topmost(self, manager, config_path, window_host):
        manager.set_topmost(False)
        assert manager.state.window_topmost is False
        assert store.read_bool("Display", "WINDOW_TOPMOST", True, config_path) is False
        assert ("set_topmost", (False,)) in window_host.calls

    def test_time_options(self, manager, config_path):
        manager.set_time_options([60, 0, -5, 300])
        assert manager.state.time_options == [60, 300]
        assert store.read_string("Timer", "CLOCK_TIME_OPTIONS", "", config_path) == "60,300"

    def test_timeout_file_and_website(self, manager, config_path):
        manager.set_timeout_file("/music/alarm.mp3")
        assert manager.state.timeout_action is TimeoutAction.OPEN_FILE
        assert store.read_string("Timer", "CLOCK_TIMEOUT_FILE", "", config_path) == "/music/alarm.mp3"
        assert store.read_string("Timer", "CLOCK_TIMEOUT_ACTION", "", config_path) == "OPEN_FILE"

        manager.set_timeout_website("https://example.com")
        assert manager.state.timeout_action is TimeoutAction.OPEN_WEBSITE
        assert store.read_string("Timer", "CLOCK_TIMEOUT_WEBSITE", "", config_path) == "https://example.com"

    def test_text_color(self, manager, config_path):
        assert manager.set_text_color("#000000")
        assert manager.state.text_color == "#000001"
        assert store.read_string("Display", "CLOCK_TEXT_COLOR", "", config_path) == "#000001"
        assert manager.set_text_color("red")
        assert manager.state.text_color == "#FF0000"
        assert manager.set_text_color("black")
        assert manager.state.text_color == "#000001"
        assert manager.set_text_color("not-a-color") is False
        assert manager.state.text_color == "#000001"

    def test_language(self, manager, config_path, window_host):
        manager.set_language(Language.FRENCH)
        assert store.read_string("General", "LANGUAGE", "", config_path) == "French"
        assert ("relabel", ("French",)) in window_host.calls

    def test_notification_settings_are_clamped(self, manager, config_path):
        manager.set_notification_settings(
            timeout_ms=5000, sound_volume=400, notification_type=NotificationType.OS
        )
        assert manager.state.notification_timeout_ms == 5000
        assert manager.state.notification_sound_volume == 100
        assert store.read_string("Notification", "NOTIFICATION_TYPE", "", config_path) == "OS"
        assert store.read_int("Notification", "NOTIFICATION_SOUND_VOLUME", 0, config_path) == 100

    def test_recent_files_move_to_front(self, manager, config_path):
        for i in range(6):
            manager.add_recent_file(f"/f/{i}.txt")
        manager.add_recent_file("/f/3.txt")

        paths = [f.path for f in manager.state.recent_files]
        assert paths == ["/f/3.txt", "/f/5.txt", "/f/4.txt", "/f/2.txt", "/f/1.txt"]
        assert store.read_string("RecentFiles", "CLOCK_RECENT_FILE_1", "", config_path) == "/f/3.txt"

    def test_first_run(self, manager, config_path):
        manager.read_config()
        assert manager.is_first_run() is True
        manager.mark_first_run_done()
        assert manager.is_first_run() is False


class TestSettingsManagerInterface:
    """Generic get/set access."""

    def test_get_values(self, manager):
        manager.read_config()
        assert manager.get("Display", "CLOCK_BASE_FONT_SIZE") == 20
        assert manager.get("Timer", "CLOCK_TIME_OPTIONS") == "1500,600,300"
        assert manager.get("General", "FIRST_RUN") == "TRUE"
        assert manager.get("Display", "NOPE", "fallback") == "fallback"

    def test_set_unknown_key_raises(self, manager):
        with pytest.raises(ConfigurationError) as excinfo:
            manager.set("Display", "NOPE", 1)
        assert excinfo.value.context["config_key"] == "NOPE"

    def test_set_invalid_timeout_action_raises(self, manager):
        with pytest.raises(ValidationError):
            manager.set("Timer", "CLOCK_TIMEOUT_ACTION", "EXPLODE")

    def test_set_is_validated_and_persisted(self, manager, config_path):
        manager.read_config()
        manager.set("Display", "CLOCK_BASE_FONT_SIZE", 1000)
        assert manager.state.base_font_size == 500
        assert store.read_int("Display", "CLOCK_BASE_FONT_SIZE", 0, config_path) == 500

    def test_set_hotkey_registers(self, manager, window_host):
        manager.read_config()
        manager.set("Hotkeys", "HOTKEY_POMODORO", "Ctrl+P")
        assert manager.state.hotkey_pomodoro == string_to_hotkey("Ctrl+P")
        assert "register_hotkeys" in window_host.names()

    def test_set_list_value(self, manager):
        manager.read_config()
        manager.set("Pomodoro", "POMODORO_TIME_OPTIONS", "1200,300")
        assert manager.state.pomodoro_times == [1200, 300]

    def test_validate_config(self, manager):
        manager.read_config()
        assert manager.validate_config() == []
