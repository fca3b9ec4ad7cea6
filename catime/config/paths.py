"""
Path provider for the configuration file and placeholder-carrying paths.

Path-valued keys (font, sound, animation, trusted plugins) may start with
``%LOCALAPPDATA%``, which expands to the per-user application-data
directory. Expansion and compression are inverse operations.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

LOCALAPPDATA_TOKEN = "%LOCALAPPDATA%"
APP_DIR_NAME = "Catime"
CONFIG_FILE_NAME = "config.ini"
CONFIG_PATH_ENV = "CATIME_CONFIG_PATH"

_TOKEN_RE = re.compile(re.escape(LOCALAPPDATA_TOKEN), re.IGNORECASE)


def get_local_appdata() -> Path:
    """Per-user application-data directory."""
    env = os.environ.get("LOCALAPPDATA")
    if env:
        return Path(env)
    if sys.platform == "win32":
        return Path.home() / "AppData" / "Local"
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".local" / "share"


def expand_path(text: str) -> str:
    """Expand the data-directory placeholder and normalise separators."""
    if not text:
        return text
    expanded = _TOKEN_RE.sub(lambda _: str(get_local_appdata()), text)
    if os.sep == "/":
        expanded = expanded.replace("\\", "/")
    return expanded


def compress_path(path: str) -> str:
    """Replace a leading data-directory prefix with the placeholder."""
    if not path:
        return path
    base = str(get_local_appdata()).rstrip("\\/")
    normalized = os.path.normcase(path)
    prefix = os.path.normcase(base)
    if normalized == prefix or normalized.startswith((prefix + "/", prefix + os.sep)):
        return LOCALAPPDATA_TOKEN + path[len(base):]
    return path


def get_config_path(create_dirs: bool = True) -> Path:
    """
    Location of the configuration file.

    ``CATIME_CONFIG_PATH`` overrides the default
    ``<data dir>/Catime/config.ini``. The parent directory is created
    unless ``create_dirs`` is False.
    """
    override = os.environ.get(CONFIG_PATH_ENV)
    path = Path(override) if override else get_local_appdata() / APP_DIR_NAME / CONFIG_FILE_NAME

    if create_dirs:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cannot create configuration directory {path.parent}: {e}")

    return path


def get_fonts_dir(config_path: Optional[Path] = None) -> Path:
    """Managed fonts directory next to the configuration file."""
    config_path = config_path or get_config_path(create_dirs=False)
    return Path(config_path).parent / "resources" / "fonts"
