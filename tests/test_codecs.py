"""Tests for the hotkey and color token codecs."""

from __future__ import annotations

import pytest

from catime.config.colors import (
    format_color_options,
    is_valid_color,
    normalize_color,
    parse_color_options,
)
from catime.config.hotkeys import (
    HOTKEYF_ALT,
    HOTKEYF_CONTROL,
    HOTKEYF_SHIFT,
    make_hotkey,
    hotkey_to_string,
    string_to_hotkey,
)


class TestHotkeyStrings:
    """Tests for hotkey formatting and parsing."""

    def test_none_is_zero(self):
        assert string_to_hotkey("None") == 0
        assert string_to_hotkey("") == 0
        assert string_to_hotkey(None) == 0
        assert hotkey_to_string(0) == "None"

    def test_modifiers_and_function_key(self):
        word = string_to_hotkey("Ctrl+Shift+F1")
        assert word == make_hotkey(0x70, HOTKEYF_CONTROL | HOTKEYF_SHIFT)
        assert hotkey_to_string(word) == "Ctrl+Shift+F1"

    def test_modifier_order_is_canonical(self):
        word = string_to_hotkey("alt+shift+ctrl+k")
        assert hotkey_to_string(word) == "Ctrl+Shift+Alt+K"

    @pytest.mark.parametrize("text", ["Alt+F12", "Ctrl+Space", "Shift+Num5", "Ctrl+Alt+Delete", "Ctrl+7", "Ctrl+Num+", "Num+"])
    def test_named_keys_round_trip(self, text):
        assert hotkey_to_string(string_to_hotkey(text)) == text

    def test_numpad_plus_keeps_its_key_code(self):
        word = string_to_hotkey("Ctrl+Num+")
        assert word == make_hotkey(0x6B, HOTKEYF_CONTROL)

    def test_hex_virtual_key(self):
        word = string_to_hotkey("0x5B")
        assert word & 0xFF == 0x5B
        assert hotkey_to_string(word) == "0x5B"

    def test_legacy_decimal_word(self):
        word = make_hotkey(ord("A"), HOTKEYF_ALT)
        assert string_to_hotkey(str(word)) == word

    def test_unknown_key_keeps_no_key_code(self):
        assert string_to_hotkey("Ctrl+Banana") & 0xFF == 0
        assert string_to_hotkey("Banana") == 0


class TestColorTokens:
    """Tests for color normalization and palette parsing."""

    def test_normalize_plain_colors(self):
        assert normalize_color("#abcdef") == "#ABCDEF"
        assert normalize_color("abcdef") == "#ABCDEF"
        assert normalize_color("#fff") == "#FFFFFF"

    def test_invalid_colors(self):
        assert normalize_color("notacolor") is None
        assert normalize_color("#12345") is None
        assert not is_valid_color("")

    def test_css_color_names(self):
        assert normalize_color("red") == "#FF0000"
        assert normalize_color("  Navy ") == "#000080"
        assert normalize_color("WHITE") == "#FFFFFF"
        assert normalize_color("#navy") is None

    def test_rgb_triples(self):
        assert normalize_color("rgb(255, 128, 0)") == "#FF8000"
        assert normalize_color("255,128,0") == "#FF8000"
        assert normalize_color("10 20 30") == "#0A141E"
        assert normalize_color("10;20|30") == "#0A141E"
        assert normalize_color("10，20，30") == "#0A141E"
        assert normalize_color("rgb(256,0,0)") is None
        assert normalize_color("1,2") is None

    def test_three_letter_words_can_be_hex(self):
        assert normalize_color("bad") == "#BBAADD"

    def test_gradient_stops_accept_names(self):
        assert normalize_color("red_blue") == "#FF0000_#0000FF"

    def test_gradient_needs_two_valid_stops(self):
        assert normalize_color("#ff5e96_#56c6ff") == "#FF5E96_#56C6FF"
        assert normalize_color("#FF5E96_") is None
        assert normalize_color("#FF5E96_zzz") is None

    def test_palette_drops_invalid_and_duplicates(self):
        colors = parse_color_options("#FFFFFF, nope ,#ffffff,#F9DB91,#FF5E96_#56C6FF")
        assert colors == ["#FFFFFF", "#F9DB91", "#FF5E96_#56C6FF"]

    def test_palette_writes_plain_colors_first(self):
        text = format_color_options(["#FF5E96_#56C6FF", "#FFFFFF", "#000001"])
        assert text == "#FFFFFF,#000001,#FF5E96_#56C6FF"
