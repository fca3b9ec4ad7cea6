"""
Hotkey string codec.

Hotkeys are stored in the file as human-readable strings such as
``Ctrl+Shift+F1`` and held in memory as a 16-bit word: the low byte is
the virtual-key code, the high byte holds the modifier flags.
"""

import logging
from typing import Dict

logger = logging.getLogger(__name__)

HOTKEYF_SHIFT = 0x01
HOTKEYF_CONTROL = 0x02
HOTKEYF_ALT = 0x04

VK_F1 = 0x70
VK_F24 = 0x87

_VK_NAMES: Dict[int, str] = {
    0x08: "Backspace",
    0x09: "Tab",
    0x0D: "Enter",
    0x1B: "Esc",
    0x20: "Space",
    0x21: "PageUp",
    0x22: "PageDown",
    0x23: "End",
    0x24: "Home",
    0x25: "Left",
    0x26: "Up",
    0x27: "Right",
    0x28: "Down",
    0x2D: "Insert",
    0x2E: "Delete",
    **{0x60 + n: f"Num{n}" for n in range(10)},
    0x6A: "Num*",
    0x6B: "Num+",
    0x6D: "Num-",
    0x6E: "Num.",
    0x6F: "Num/",
    0xBA: ";",
    0xBB: "=",
    0xBC: ",",
    0xBD: "-",
    0xBE: ".",
    0xBF: "/",
    0xC0: "`",
    0xDB: "[",
    0xDC: "\\",
    0xDD: "]",
    0xDE: "'",
}

_NAME_TO_VK: Dict[str, int] = {name.lower(): vk for vk, name in _VK_NAMES.items()}

_MODIFIERS = (
    (HOTKEYF_CONTROL, "Ctrl"),
    (HOTKEYF_SHIFT, "Shift"),
    (HOTKEYF_ALT, "Alt"),
)


def make_hotkey(vk: int, modifiers: int = 0) -> int:
    return ((modifiers & 0xFF) << 8) | (vk & 0xFF)


def _key_name(vk: int) -> str:
    if ord("A") <= vk <= ord("Z") or ord("0") <= vk <= ord("9"):
        return chr(vk)
    if VK_F1 <= vk <= VK_F24:
        return f"F{vk - VK_F1 + 1}"
    return _VK_NAMES.get(vk, f"0x{vk:02X}")


def _parse_key(token: str) -> int:
    if len(token) == 1:
        ch = token.upper()
        if "A" <= ch <= "Z" or "0" <= ch <= "9":
            return ord(ch)
    if token[:1] in ("F", "f") and token[1:].isdigit():
        number = int(token[1:])
        if 1 <= number <= 24:
            return VK_F1 + number - 1
        return 0
    if token.lower().startswith("0x"):
        try:
            return int(token, 16) & 0xFF
        except ValueError:
            return 0
    return _NAME_TO_VK.get(token.lower(), 0)


def hotkey_to_string(hotkey: int) -> str:
    """Format a hotkey word, ``None`` for 0."""
    if not hotkey:
        return "None"

    vk = hotkey & 0xFF
    modifiers = (hotkey >> 8) & 0xFF
    parts = [name for flag, name in _MODIFIERS if modifiers & flag]
    if vk:
        parts.append(_key_name(vk))
    return "+".join(parts)


def string_to_hotkey(text: str) -> int:
    """
    Parse a hotkey string.

    Accepts ``Ctrl+Alt+Shift+<Key>`` in any modifier order and case,
    ``None`` or an empty string, and the legacy decimal word format.
    Unknown key names yield a word without a key code.
    """
    if text is None:
        return 0
    text = text.strip()
    if not text or text.lower() == "none":
        return 0

    if text.lower().startswith("0x"):
        return _parse_key(text)

    if text[0].isdigit():
        digits = ""
        for ch in text:
            if not ch.isdigit():
                break
            digits += ch
        return int(digits) & 0xFFFF

    vk = 0
    modifiers = 0
    key_token = None
    tokens = text.split("+")
    # A key name ending in "+" (Num+) leaves an empty last token.
    if len(tokens) > 1 and not tokens[-1].strip():
        tokens = tokens[:-2] + [tokens[-2] + "+"]
    for token in tokens:
        token = token.strip()
        if not token:
            continue
        lowered = token.lower()
        if lowered == "ctrl":
            modifiers |= HOTKEYF_CONTROL
        elif lowered == "shift":
            modifiers |= HOTKEYF_SHIFT
        elif lowered == "alt":
            modifiers |= HOTKEYF_ALT
        else:
            key_token = token

    if key_token:
        vk = _parse_key(key_token)
        if not vk:
            logger.debug(f"Unknown hotkey key name: {key_token}")

    return make_hotkey(vk, modifiers)
