"""Shared pytest fixtures for the Catime configuration tests.

This module provides reusable fixtures for:
- An isolated data directory and configuration file path
- A recording window host standing in for the clock window
- Writing configuration text in the on-disk format
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from catime.core.interfaces import IWindowHost


# ============================================================================
# Window Host
# ============================================================================


class FakeWindowHost(IWindowHost):
    """Window host that records every call instead of touching a window."""

    def __init__(self, position: Optional[Tuple[int, int]] = None):
        self.position = position
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def get_window_position(self) -> Optional[Tuple[int, int]]:
        return self.position

    def move_window(self, x: int, y: int) -> None:
        self.position = (x, y)
        self.calls.append(("move_window", (x, y)))

    def set_alpha(self, alpha: int) -> None:
        self.calls.append(("set_alpha", (alpha,)))

    def set_topmost(self, topmost: bool) -> None:
        self.calls.append(("set_topmost", (topmost,)))

    def relabel(self, language: str) -> None:
        self.calls.append(("relabel", (language,)))

    def reload_animation_speed(self) -> None:
        self.calls.append(("reload_animation_speed", ()))

    def load_animation(self, path: str) -> None:
        self.calls.append(("load_animation", (path,)))

    def register_hotkeys(self, hotkeys: Dict[str, int]) -> None:
        self.calls.append(("register_hotkeys", (hotkeys,)))

    def redraw(self) -> None:
        self.calls.append(("redraw", ()))


# ============================================================================
# Paths
# ============================================================================


@pytest.fixture
def data_dir(tmp_path, monkeypatch) -> Path:
    """Per-test user data directory behind the %LOCALAPPDATA% placeholder."""
    directory = tmp_path / "appdata"
    directory.mkdir()
    monkeypatch.setenv("LOCALAPPDATA", str(directory))
    monkeypatch.delenv("CATIME_CONFIG_PATH", raising=False)
    return directory


@pytest.fixture
def config_path(data_dir) -> Path:
    """Configuration file location inside the isolated data directory."""
    path = data_dir / "Catime" / "config.ini"
    path.parent.mkdir(parents=True)
    return path


@pytest.fixture
def write_ini(config_path):
    """Write INI text to the configuration file and return its path."""

    def _write(text: str) -> Path:
        config_path.write_text(text.lstrip("\n"), encoding="utf-8")
        return config_path

    return _write


@pytest.fixture
def window_host() -> FakeWindowHost:
    return FakeWindowHost(position=(100, 200))
