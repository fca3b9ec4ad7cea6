"""Tests for validation and recovery."""

from __future__ import annotations

import pytest

from catime.config.schema import StartupMode, TimeoutAction
from catime.config.snapshot import default_snapshot
from catime.config.validator import ConfigurationValidator, RecoveryRule, validate


def _snapshot(**fields):
    snapshot = default_snapshot()
    for name, value in fields.items():
        setattr(snapshot, name, value)
    return snapshot


class TestFontSize:
    """Font size recovery table."""

    @pytest.mark.parametrize(
        "size, expected",
        [(-5, 20), (0, 20), (7, 20), (8, 8), (250, 250), (500, 500), (501, 500), (100000, 500)],
    )
    def test_clamping_table(self, size, expected):
        snapshot, _ = validate(_snapshot(base_font_size=size))
        assert snapshot.base_font_size == expected

    def test_bad_font_extension_resets_font(self):
        snapshot, modified = validate(_snapshot(font_file_name="C:\\Fonts\\readme.txt"))
        assert modified
        assert snapshot.font_file_name.endswith("Wallpoet Essence.ttf")
        assert snapshot.font_internal_name == "Wallpoet Essence"


class TestTextColor:
    """Text color recovery."""

    def test_pure_black_is_rewritten(self):
        snapshot, modified = validate(_snapshot(text_color="#000000"))
        assert snapshot.text_color == "#000001"
        assert modified

    def test_valid_color_unchanged(self):
        snapshot, modified = validate(_snapshot(text_color="#ABCDEF"))
        assert snapshot.text_color == "#ABCDEF"
        assert not modified

    def test_invalid_color_resets_to_default(self):
        snapshot, modified = validate(_snapshot(text_color="notacolor"))
        assert snapshot.text_color == "#FFB6C1"
        assert modified

    def test_color_names_are_normalized(self):
        snapshot, modified = validate(_snapshot(text_color="red"))
        assert snapshot.text_color == "#FF0000"
        assert modified

    def test_black_by_name_is_rewritten(self):
        snapshot, _ = validate(_snapshot(text_color="black"))
        assert snapshot.text_color == "#000001"


class TestTimeoutAction:
    """One-shot and target-less actions are downgraded."""

    @pytest.mark.parametrize("action", [TimeoutAction.SHUTDOWN, TimeoutAction.RESTART, TimeoutAction.SLEEP])
    def test_one_shot_becomes_message(self, action):
        snapshot, modified = validate(_snapshot(timeout_action=action))
        assert snapshot.timeout_action is TimeoutAction.MESSAGE
        assert modified

    def test_open_file_without_file(self):
        snapshot, modified = validate(_snapshot(timeout_action=TimeoutAction.OPEN_FILE, timeout_file=""))
        assert snapshot.timeout_action is TimeoutAction.MESSAGE
        assert modified

    def test_open_file_with_missing_file(self, tmp_path):
        missing = str(tmp_path / "gone.mp3")
        snapshot, _ = validate(_snapshot(timeout_action=TimeoutAction.OPEN_FILE, timeout_file=missing))
        assert snapshot.timeout_action is TimeoutAction.MESSAGE

    def test_open_file_with_existing_file(self, tmp_path):
        target = tmp_path / "alarm.mp3"
        target.write_bytes(b"x")
        snapshot, modified = validate(
            _snapshot(timeout_action=TimeoutAction.OPEN_FILE, timeout_file=str(target))
        )
        assert snapshot.timeout_action is TimeoutAction.OPEN_FILE
        assert not modified

    def test_open_website_without_url(self):
        snapshot, _ = validate(_snapshot(timeout_action=TimeoutAction.OPEN_WEBSITE, timeout_website="  "))
        assert snapshot.timeout_action is TimeoutAction.MESSAGE


class TestRanges:
    """Clamping of the remaining numeric fields."""

    def test_default_start_time(self):
        snapshot, modified = validate(_snapshot(default_start_time=-10))
        assert snapshot.default_start_time == 1500
        assert modified
        snapshot, _ = validate(_snapshot(default_start_time=86401))
        assert snapshot.default_start_time == 1500
        snapshot, _ = validate(_snapshot(default_start_time=86400))
        assert snapshot.default_start_time == 86400

    def test_display_clamps(self):
        snapshot, _ = validate(_snapshot(
            window_scale=0.1, plugin_scale=500.0, window_opacity=150,
            move_step_small=0, move_step_large=900, opacity_step_fast=0, scale_step_normal=1000,
        ))
        assert snapshot.window_scale == 0.5
        assert snapshot.plugin_scale == 100.0
        assert snapshot.window_opacity == 100
        assert snapshot.move_step_small == 1
        assert snapshot.move_step_large == 500
        assert snapshot.opacity_step_fast == 1
        assert snapshot.scale_step_normal == 100

    def test_pomodoro(self):
        snapshot, modified = validate(_snapshot(pomodoro_loop_count=0, pomodoro_times=list(range(1, 13))))
        assert modified
        assert snapshot.pomodoro_loop_count == 1
        assert snapshot.pomodoro_times == [1500, 300, 1500, 600]

    def test_notification(self):
        snapshot, _ = validate(_snapshot(
            notification_timeout_ms=70000, notification_max_opacity=0, notification_sound_volume=-3,
        ))
        assert snapshot.notification_timeout_ms == 3000
        assert snapshot.notification_max_opacity == 1
        assert snapshot.notification_sound_volume == 0

    def test_animation(self):
        speed_map = dict(default_snapshot().animation_speed_map)
        speed_map[10] = 0
        speed_map[20] = 5000
        snapshot, _ = validate(_snapshot(
            animation_speed_default=0, animation_folder_interval_ms=-1, animation_speed_map=speed_map,
        ))
        assert snapshot.animation_speed_default == 1
        assert snapshot.animation_folder_interval_ms == 0
        assert snapshot.animation_speed_map[10] == 1
        assert snapshot.animation_speed_map[20] == 1000


class TestValidatorBehaviour:
    """Whole-validator properties."""

    def test_defaults_are_valid(self):
        _, modified = validate(default_snapshot())
        assert not modified

    def test_idempotent(self):
        snapshot = _snapshot(
            base_font_size=-5, text_color="#000000", timeout_action=TimeoutAction.SLEEP,
            window_opacity=400, pomodoro_loop_count=-2, default_start_time=0,
        )
        once, first_modified = validate(snapshot)
        dumped = once.model_dump()
        twice, second_modified = validate(once)
        assert first_modified
        assert not second_modified
        assert twice.model_dump() == dumped

    def test_validate_mutates_in_place(self):
        snapshot = _snapshot(base_font_size=1)
        result, _ = validate(snapshot)
        assert result is snapshot

    def test_check_leaves_snapshot_untouched(self):
        snapshot = _snapshot(base_font_size=1)
        changes = ConfigurationValidator().check(snapshot)
        assert changes
        assert snapshot.base_font_size == 1

    def test_custom_rule(self):
        class NoCountdownStartup(RecoveryRule):
            def __init__(self):
                super().__init__("no_countdown", "Start in clock mode")

            def apply(self, snapshot):
                changes = []
                self._set(snapshot, "startup_mode", StartupMode.SHOW_TIME, changes)
                return changes

        validator = ConfigurationValidator()
        validator.add_rule(NoCountdownStartup())
        snapshot, modified = validator.validate(_snapshot(startup_mode=StartupMode.COUNTDOWN))
        assert modified
        assert snapshot.startup_mode is StartupMode.SHOW_TIME
