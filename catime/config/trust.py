"""
Plugin trust list.

Trusted plugins are stored in the [PluginTrust] section as
``PLUGIN_<i>=<path>|<sha256>``. A plugin counts as trusted only while the
file still hashes to the recorded digest, so replacing a trusted script
silently revokes its trust.
"""

import hashlib
import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Union

from .paths import compress_path, expand_path
from .schema import MAX_TRUSTED_PLUGINS, SECTION_PLUGIN_TRUST
from .snapshot import PluginTrustEntry
from .store import IniDocument, config_lock, update_string_atomic

logger = logging.getLogger(__name__)

_SHA256_RE = re.compile(r"^[0-9a-fA-F]{64}$")
_CHUNK_SIZE = 64 * 1024


def plugin_key(index: int) -> str:
    return f"PLUGIN_{index}"


def file_sha256(path: Union[str, Path]) -> Optional[str]:
    """Hex digest of a file, or None if it cannot be read."""
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        logger.debug(f"Cannot hash plugin {path}: {e}")
        return None
    return digest.hexdigest()


def parse_entry(text: Optional[str]) -> Optional[PluginTrustEntry]:
    if not text or "|" not in text:
        return None
    path, _, sha = text.rpartition("|")
    path = path.strip()
    sha = sha.strip()
    if not path or not _SHA256_RE.match(sha):
        return None
    return PluginTrustEntry(path=path, sha256=sha.lower())


def _same_path(a: str, b: str) -> bool:
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))


class PluginTrustList:
    """Reads and edits the trust section of one configuration file."""

    def __init__(self, config_path: Union[str, Path]):
        self.config_path = Path(config_path)

    def entries(self) -> List[PluginTrustEntry]:
        """Well-formed entries in index order; malformed ones are skipped."""
        doc = IniDocument.open(self.config_path)
        result: List[PluginTrustEntry] = []
        for index in range(1, MAX_TRUSTED_PLUGINS + 1):
            raw = doc.get(SECTION_PLUGIN_TRUST, plugin_key(index))
            entry = parse_entry(raw)
            if entry is None:
                if raw:
                    logger.warning(f"Ignoring malformed plugin trust entry {plugin_key(index)}")
                continue
            result.append(entry)
        return result

    def _find(self, entries: List[PluginTrustEntry], path: str) -> int:
        for i, entry in enumerate(entries):
            if _same_path(expand_path(entry.path), path):
                return i
        return -1

    def is_trusted(self, path: Union[str, Path]) -> bool:
        path = str(path)
        entries = self.entries()
        index = self._find(entries, path)
        if index < 0:
            return False
        current = file_sha256(path)
        return current is not None and current == entries[index].sha256

    def _used_slots(self) -> int:
        doc = IniDocument.open(self.config_path)
        used = 0
        for index in range(1, MAX_TRUSTED_PLUGINS + 1):
            if doc.get(SECTION_PLUGIN_TRUST, plugin_key(index)):
                used = index
        return used

    def _store(self, entries: List[PluginTrustEntry]) -> bool:
        """Write entries as PLUGIN_1..n and blank any slot left over."""
        used = self._used_slots()
        ok = True
        for index, entry in enumerate(entries, start=1):
            value = f"{entry.path}|{entry.sha256}"
            ok = update_string_atomic(SECTION_PLUGIN_TRUST, plugin_key(index), value, self.config_path) and ok
        for index in range(len(entries) + 1, used + 1):
            ok = update_string_atomic(SECTION_PLUGIN_TRUST, plugin_key(index), "", self.config_path) and ok
        return ok

    def trust(self, path: Union[str, Path]) -> bool:
        """
        Trust a plugin at its current content.

        An existing entry for the same path is refreshed in place.

        Returns:
            False if the file cannot be hashed, the list is full or the
            write fails
        """
        path = str(path)
        sha = file_sha256(path)
        if sha is None:
            return False

        entry = PluginTrustEntry(path=compress_path(path), sha256=sha)
        with config_lock(self.config_path):
            entries = self.entries()
            index = self._find(entries, path)
            if index >= 0:
                entries[index] = entry
            elif len(entries) >= MAX_TRUSTED_PLUGINS:
                logger.warning(f"Plugin trust list is full, not trusting {path}")
                return False
            else:
                entries.append(entry)
            ok = self._store(entries)

        if ok:
            logger.info(f"Trusted plugin {path}")
        return ok

    def untrust(self, path: Union[str, Path]) -> bool:
        """Remove a plugin and renumber the remaining entries from 1."""
        path = str(path)
        with config_lock(self.config_path):
            entries = self.entries()
            index = self._find(entries, path)
            if index < 0:
                return True
            del entries[index]
            ok = self._store(entries)

        logger.info(f"Removed plugin trust for {path}")
        return ok
