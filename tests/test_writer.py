"""Tests for collecting and writing configuration."""

from __future__ import annotations

from catime.config import store
from catime.config.hotkeys import string_to_hotkey
from catime.config.loader import load
from catime.config.schema import CATIME_VERSION, SECTION_HOTKEYS, SECTION_RECENT_FILES, TimeoutAction
from catime.config.snapshot import LiveState, RecentFile, default_snapshot
from catime.config.validator import validate
from catime.config.writer import collect, write_config, write_section
from catime.config.applier import state_from_snapshot


class TestCollect:
    """Deterministic, schema-ordered collection."""

    def test_collect_is_deterministic(self):
        state = LiveState()
        assert collect(state) == collect(state)

    def test_twelve_hotkey_entries(self):
        state = LiveState(hotkey_edit_mode=string_to_hotkey("Ctrl+Alt+E"))
        hotkeys = [item for item in collect(state) if item.section == SECTION_HOTKEYS]
        assert len(hotkeys) == 12
        values = {item.key: item.value for item in hotkeys}
        assert values["HOTKEY_EDIT_MODE"] == "Ctrl+Alt+E"
        assert values["HOTKEY_SHOW_TIME"] == "None"

    def test_recent_files_are_padded(self):
        state = LiveState(recent_files=[RecentFile.from_path("/a/one.txt"), RecentFile.from_path("/b/two.txt")])
        recent = [item.value for item in collect(state) if item.section == SECTION_RECENT_FILES]
        assert recent == ["/a/one.txt", "/b/two.txt", "", "", ""]

    def test_one_shot_action_is_written_as_message(self):
        state = LiveState(timeout_action=TimeoutAction.RESTART)
        values = {item.key: item.value for item in collect(state)}
        assert values["CLOCK_TIMEOUT_ACTION"] == "MESSAGE"

    def test_colors_plain_first(self):
        state = LiveState(color_options=["#FF5E96_#56C6FF", "#FFFFFF"])
        values = {item.key: item.value for item in collect(state)}
        assert values["COLOR_OPTIONS"] == "#FFFFFF,#FF5E96_#56C6FF"

    def test_version_and_formats(self):
        values = {item.key: item.value for item in collect(LiveState())}
        assert values["CONFIG_VERSION"] == CATIME_VERSION
        assert values["WINDOW_TOPMOST"] == "TRUE"
        assert values["WINDOW_SCALE"] == "1.62"
        assert values["CLOCK_TIME_OPTIONS"] == "1500,600,300"

    def test_file_only_keys_are_not_collected(self):
        keys = {item.key for item in collect(LiveState())}
        assert "FIRST_RUN" not in keys
        assert "SHORTCUT_CHECK_DONE" not in keys

    def test_section_filter(self):
        items = collect(LiveState(), ["Pomodoro"])
        assert {item.section for item in items} == {"Pomodoro"}


class TestWrite:
    """Round trips through the file."""

    def test_round_trip_of_defaults(self, config_path):
        snapshot = default_snapshot()
        assert write_config(config_path, state_from_snapshot(snapshot))
        assert load(config_path).model_dump() == snapshot.model_dump()

    def test_round_trip_of_customized_state(self, config_path, tmp_path):
        recent = tmp_path / "alarm.wav"
        recent.write_bytes(b"x")
        state = LiveState(
            text_color="#ABCDEF",
            base_font_size=64,
            window_scale=2.5,
            time_options=[60, 120],
            hotkey_count_up=string_to_hotkey("Shift+F5"),
            recent_files=[RecentFile.from_path(str(recent))],
            timeout_website="https://example.com/?q=a=b",
        )
        write_config(config_path, state)
        loaded = load(config_path)
        assert loaded.text_color == "#ABCDEF"
        assert loaded.base_font_size == 64
        assert loaded.window_scale == 2.5
        assert loaded.time_options == [60, 120]
        assert loaded.hotkey_count_up == string_to_hotkey("Shift+F5")
        assert [r.path for r in loaded.recent_files] == [str(recent)]
        assert loaded.timeout_website == "https://example.com/?q=a=b"

    def test_corrected_value_is_persisted(self, config_path):
        snapshot = default_snapshot()
        snapshot.default_start_time = -10
        snapshot, modified = validate(snapshot)
        assert modified
        assert snapshot.default_start_time == 1500

        write_config(config_path, state_from_snapshot(snapshot))
        assert store.read_string("Timer", "CLOCK_DEFAULT_START_TIME", "", config_path) == "1500"
        assert "-10" not in config_path.read_text(encoding="utf-8")

    def test_first_run_is_preserved(self, write_ini):
        path = write_ini("[General]\nFIRST_RUN=FALSE\nLANGUAGE=English\n")
        write_config(path, LiveState())
        assert store.read_bool("General", "FIRST_RUN", True, path) is False

    def test_write_section_touches_one_section(self, write_ini):
        path = write_ini("[Display]\nCLOCK_BASE_FONT_SIZE=33\n")
        write_section(path, LiveState(pomodoro_loop_count=3), "Pomodoro")
        assert store.read_int("Pomodoro", "POMODORO_LOOP_COUNT", 0, path) == 3
        assert store.read_int("Display", "CLOCK_BASE_FONT_SIZE", 0, path) == 33

    def test_failed_write_reports_false(self, config_path, mocker):
        mocker.patch.object(store, "atomic_write_text", side_effect=PermissionError("read-only"))
        assert write_config(config_path, LiveState()) is False
