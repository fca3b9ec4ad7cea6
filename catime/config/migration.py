"""
Configuration version migration for Catime.

This module compares the CONFIG_VERSION stamped in the file with the
running build and chooses one of two policies, fixed at build time:
- Non-destructive migration: keep every recognized value, regenerate the
  file from defaults so new keys appear, and apply legacy value rewrites
- Forced reset: replace the file with factory defaults and request a
  one-time full UI reset
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from packaging import version

from .defaults import create_default_config, write_defaults
from .schema import (
    CATIME_VERSION,
    SECTION_ANIMATION,
    SECTION_GENERAL,
    SECTION_PLUGIN_TRUST,
    Language,
    find_item,
)
from .store import IniDocument, config_lock, delete_file, write_many

logger = logging.getLogger(__name__)

# Build-time policy: True discards user settings on any version change.
FORCE_RESET_ON_VERSION_CHANGE = False

Entries = Dict[Tuple[str, str], str]


class VersionAction(Enum):
    MATCH = "match"
    MIGRATED = "migrated"
    RESET = "reset"


@dataclass
class MigrationResult:
    action: VersionAction
    stored_version: Optional[str]
    write_back: bool = False
    full_ui_reset: bool = False


class MigrationStep:
    """A value rewrite for files written before ``to_version``."""

    def __init__(
        self,
        to_version: str,
        description: str,
        migration_func: Callable[[Entries], Entries]
    ):
        self.to_version = to_version
        self.description = description
        self.migration_func = migration_func

    def applies_to(self, stored_version: Optional[str]) -> bool:
        if not stored_version:
            return True
        try:
            return version.parse(stored_version) < version.parse(self.to_version)
        except version.InvalidVersion:
            return True

    def apply(self, entries: Entries) -> Entries:
        logger.info(f"Applying configuration migration to {self.to_version}: {self.description}")
        return self.migration_func(entries)


def _migrate_percent_icon_colors(entries: Entries) -> Entries:
    text_key = (SECTION_ANIMATION, "PERCENT_ICON_TEXT_COLOR")
    bg_key = (SECTION_ANIMATION, "PERCENT_ICON_BG_COLOR")
    text = entries.get(text_key, "").strip().upper()
    bg = entries.get(bg_key, "").strip().upper()

    # Old builds wrote fixed black/white pairs instead of the theme-aware tokens.
    if (text, bg) in (("#FFFFFF", "#000000"), ("#000000", "#FFFFFF")):
        entries[text_key] = "auto"
        entries[bg_key] = "transparent"
    return entries


class ConfigurationMigrator:
    """
    Handles configuration version changes.

    The reset policy defaults to the build constant and is not meant to
    be switched at runtime; the constructor argument exists for tests.
    """

    def __init__(
        self,
        current_version: str = CATIME_VERSION,
        force_reset: bool = FORCE_RESET_ON_VERSION_CHANGE
    ):
        self.current_version = current_version
        self.force_reset = force_reset
        self.migration_steps: List[MigrationStep] = []
        self._register_builtin_migrations()

    def _register_builtin_migrations(self) -> None:
        self.register_migration_step(MigrationStep(
            "1.0.3.1",
            "Replace fixed percent icon colors with auto/transparent",
            _migrate_percent_icon_colors
        ))

    def register_migration_step(self, step: MigrationStep) -> None:
        self.migration_steps.append(step)

    def stored_version(self, path: Union[str, Path]) -> Optional[str]:
        value = IniDocument.open(path).get(SECTION_GENERAL, "CONFIG_VERSION")
        return value.strip() if value else None

    def needs_migration(self, stored: Optional[str]) -> bool:
        if not stored:
            return True
        try:
            return version.parse(stored) != version.parse(self.current_version)
        except version.InvalidVersion:
            logger.warning(f"Invalid configuration version '{stored}'")
            return stored != self.current_version

    def check(self, path: Union[str, Path]) -> MigrationResult:
        """
        Compare the file version with the build and migrate or reset.

        Returns:
            What happened and what the caller must do next
        """
        stored = self.stored_version(path)
        if not self.needs_migration(stored):
            return MigrationResult(VersionAction.MATCH, stored)

        logger.info(f"Configuration version {stored} differs from {self.current_version}")
        if self.force_reset:
            self.reset(path)
            return MigrationResult(VersionAction.RESET, stored, full_ui_reset=True)

        migrated = self.migrate(path, stored)
        return MigrationResult(VersionAction.MIGRATED, stored, write_back=migrated)

    def reset(self, path: Union[str, Path]) -> bool:
        """Delete the file and regenerate factory defaults."""
        with config_lock(path):
            delete_file(path)
            ok = create_default_config(path)
        logger.info(f"Configuration reset to defaults: {path}")
        return ok

    def migrate(self, path: Union[str, Path], stored: Optional[str] = None) -> bool:
        """
        Non-destructive migration.

        Every recognized key keeps its value; keys new in this build get
        their defaults; unknown keys and CONFIG_VERSION are dropped.
        """
        doc = IniDocument.open(path)
        entries: Entries = {(section, key): value for section, key, value in doc.entries()}
        if not entries and doc.has_content:
            logger.warning(f"No readable settings in {path}, leaving the file untouched")
            return False

        for step in self.migration_steps:
            if step.applies_to(stored):
                entries = step.apply(entries)

        preserved = [
            (section, key, value)
            for (section, key), value in entries.items()
            if self._is_preserved(section, key)
        ]

        language_text = entries.get((SECTION_GENERAL, "LANGUAGE"))
        language = Language.parse(language_text, Language.ENGLISH) if language_text else None

        with config_lock(path):
            delete_file(path)
            if not write_defaults(path, language):
                return False
            ok = write_many(path, preserved)

        logger.info(f"Configuration migrated to {self.current_version}, kept {len(preserved)} values")
        return ok

    @staticmethod
    def _is_preserved(section: str, key: str) -> bool:
        if section == SECTION_PLUGIN_TRUST:
            return True
        if section == SECTION_GENERAL and key == "CONFIG_VERSION":
            return False
        return find_item(section, key) is not None
