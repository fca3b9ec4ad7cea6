"""Tests for default configuration file generation."""

from __future__ import annotations

import pytest

from catime.config import defaults
from catime.config.defaults import language_for_locale, render_defaults, write_defaults
from catime.config.loader import load
from catime.config.schema import Language, get_metadata
from catime.config.snapshot import default_snapshot
from catime.config.store import IniDocument


class TestLanguageDetection:
    """Locale names map to UI languages."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("zh_CN", Language.CHINESE_SIMPLIFIED),
            ("zh_TW", Language.CHINESE_TRADITIONAL),
            ("zh-HK", Language.CHINESE_TRADITIONAL),
            ("de_DE", Language.GERMAN),
            ("pt_BR", Language.PORTUGUESE),
            ("ja_JP", Language.JAPANESE),
            ("ko_KR", Language.KOREAN),
            ("en_US", Language.ENGLISH),
            ("nl_NL", Language.ENGLISH),
            (None, Language.ENGLISH),
        ],
    )
    def test_language_for_locale(self, name, expected):
        assert language_for_locale(name) is expected

    def test_detection_uses_process_locale(self, mocker):
        mocker.patch.object(defaults.locale, "getlocale", return_value=("fr_FR", "UTF-8"))
        assert defaults.detect_system_language() is Language.FRENCH


class TestDefaultFile:
    """The generated file carries every item and loads as defaults."""

    def test_every_item_is_written(self):
        doc = IniDocument.parse(render_defaults())
        for item in get_metadata():
            assert doc.get(item.section, item.key) == item.default, item.key

    def test_help_comments_are_present(self):
        text = render_defaults()
        assert "; Format: KEY=Ctrl+Shift+Alt+Key" in text
        assert "; COLOR_OPTIONS: comma-separated quick color list." in text

    def test_language_override(self):
        doc = IniDocument.parse(render_defaults(Language.KOREAN))
        assert doc.get("General", "LANGUAGE") == "Korean"

    def test_written_file_loads_as_defaults(self, config_path):
        assert write_defaults(config_path, Language.ENGLISH)
        assert load(config_path).model_dump() == default_snapshot().model_dump()

    def test_unwritable_location_is_reported(self, config_path, mocker):
        mocker.patch.object(defaults, "atomic_write_text", side_effect=PermissionError("denied"))
        assert write_defaults(config_path) is False
