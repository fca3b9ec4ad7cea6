"""
INI store primitives for the configuration file.

This module provides typed single-key access to the file with:
- Reads that never fail: a missing file, section or key yields the default
- Writes that rewrite the file in place through a temporary sibling, so
  comments and key order survive and readers never see a partial file
- A process-wide named lock (advisory lock on ``<config>.lock``) guarding
  the atomic update variants and multi-key transactions
"""

import configparser
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

if os.name == "nt":
    import msvcrt
else:
    import fcntl

from ..core.exceptions import FileSystemError, is_recoverable_error

logger = logging.getLogger(__name__)

MAX_VALUE_LENGTH = 1024

PathLike = Union[str, Path]
Entry = Tuple[str, str, str]


class _NamedLock:
    """Re-entrant lock shared by threads and processes for one file."""

    def __init__(self, lock_path: Path):
        self.lock_path = lock_path
        self._rlock = threading.RLock()
        self._depth = 0
        self._handle = None

    def _acquire_file(self) -> None:
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = open(self.lock_path, "a")
            if os.name == "nt":
                self._handle.seek(0)
                msvcrt.locking(self._handle.fileno(), msvcrt.LK_LOCK, 1)
            else:
                fcntl.flock(self._handle.fileno(), fcntl.LOCK_EX)
        except OSError as e:
            # Thread lock still serialises this process.
            logger.warning(f"Cannot acquire configuration file lock {self.lock_path}: {e}")
            if self._handle:
                self._handle.close()
            self._handle = None

    def _release_file(self) -> None:
        if not self._handle:
            return
        try:
            if os.name == "nt":
                self._handle.seek(0)
                msvcrt.locking(self._handle.fileno(), msvcrt.LK_UNLCK, 1)
            else:
                fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            logger.warning(f"Cannot release configuration file lock {self.lock_path}: {e}")
        finally:
            self._handle.close()
            self._handle = None

    @contextmanager
    def hold(self) -> Iterator[None]:
        with self._rlock:
            if self._depth == 0:
                self._acquire_file()
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
                if self._depth == 0:
                    self._release_file()


_locks: Dict[str, _NamedLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: PathLike) -> _NamedLock:
    path = Path(path)
    lock_path = path.with_suffix(path.suffix + ".lock")
    key = os.path.normcase(os.path.abspath(lock_path))
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = _NamedLock(lock_path)
        return lock


@contextmanager
def config_lock(path: PathLike) -> Iterator[None]:
    """Hold the process-wide named lock of a configuration file."""
    with _lock_for(path).hold():
        yield


def _clip(value: str) -> str:
    value = value.replace("\r", " ").replace("\n", " ")
    return value[:MAX_VALUE_LENGTH]


class IniDocument:
    """
    Parsed view of the configuration file at one instant.

    Loading never raises: unreadable files behave as empty and malformed
    lines are skipped.
    """

    def __init__(self, parser: configparser.ConfigParser, exists: bool, has_content: bool = False):
        self._parser = parser
        self.exists = exists
        # True when the text held anything besides blanks and comments.
        self.has_content = has_content

    @staticmethod
    def _new_parser() -> configparser.ConfigParser:
        parser = configparser.ConfigParser(
            interpolation=None,
            strict=False,
            delimiters=("=",),
            comment_prefixes=(";", "#"),
            inline_comment_prefixes=None,
            empty_lines_in_values=False,
            default_section="__defaults__",
        )
        parser.optionxform = str
        return parser

    @classmethod
    def parse(cls, text: str) -> "IniDocument":
        lines = text.splitlines()
        has_content = any(line.strip() and line.lstrip()[0] not in ";#" for line in lines)
        parser = cls._new_parser()
        try:
            parser.read_string("\n".join(first_occurrences(lines)))
        except configparser.ParsingError as e:
            # Lines parsed before and after the bad ones are kept.
            logger.warning(f"Skipped malformed configuration lines: {e}")
        except configparser.Error as e:
            logger.warning(f"Configuration text could not be parsed: {e}")
            parser = cls._new_parser()
        return cls(parser, exists=True, has_content=has_content)

    @classmethod
    def open(cls, path: PathLike) -> "IniDocument":
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8-sig", errors="replace")
        except FileNotFoundError:
            return cls(cls._new_parser(), exists=False)
        except OSError as e:
            logger.warning(f"Cannot read configuration file {path}: {e}")
            return cls(cls._new_parser(), exists=False)
        return cls.parse(text)

    def sections(self) -> List[str]:
        return self._parser.sections()

    def entries(self) -> List[Entry]:
        """Every (section, key, value) in file order."""
        result: List[Entry] = []
        for section in self._parser.sections():
            for key, value in self._parser.items(section, raw=True):
                result.append((section, key, value))
        return result

    def get(self, section: str, key: str) -> Optional[str]:
        if not self._parser.has_section(section):
            return None
        value = self._parser.get(section, key, raw=True, fallback=None)
        if value is None:
            return None
        return value[:MAX_VALUE_LENGTH]

    def read_string(self, section: str, key: str, default: str) -> str:
        value = self.get(section, key)
        return default if value is None else value

    def read_int(self, section: str, key: str, default: int) -> int:
        value = self.get(section, key)
        if value is None:
            return default
        try:
            return int(value.strip())
        except ValueError:
            return default

    def read_bool(self, section: str, key: str, default: bool) -> bool:
        value = self.get(section, key)
        if value is None:
            return default
        return value.strip().upper() in ("TRUE", "1", "YES")


def read_string(section: str, key: str, default: str, path: PathLike) -> str:
    return IniDocument.open(path).read_string(section, key, default)


def read_int(section: str, key: str, default: int, path: PathLike) -> int:
    return IniDocument.open(path).read_int(section, key, default)


def read_bool(section: str, key: str, default: bool, path: PathLike) -> bool:
    return IniDocument.open(path).read_bool(section, key, default)


def _section_name(line: str) -> Optional[str]:
    stripped = line.strip()
    if stripped.startswith("[") and stripped.endswith("]"):
        return stripped[1:-1].strip()
    return None


def _key_name(line: str) -> Optional[str]:
    stripped = line.strip()
    if not stripped or stripped[0] in ";#" or "=" not in stripped:
        return None
    return stripped.split("=", 1)[0].strip()


def first_occurrences(lines: List[str]) -> List[str]:
    """
    Lines as the reader sees them.

    Lines above the first section header are dropped. A key repeated
    within a section keeps its first value, the one set_line rewrites.
    """
    result: List[str] = []
    section: Optional[str] = None
    seen: Dict[str, set] = {}
    skipping = False
    for line in lines:
        name = _section_name(line)
        if name is not None:
            section = name
            seen.setdefault(section, set())
            skipping = False
            result.append(line)
            continue
        if section is None:
            if line.strip() and line.lstrip()[0] not in ";#":
                logger.warning(f"Ignoring configuration line outside any section: {line.strip()[:40]}")
            continue
        key = _key_name(line)
        if key is not None:
            skipping = key in seen[section]
            if skipping:
                logger.debug(f"Ignoring repeated key [{section}] {key}")
                continue
            seen[section].add(key)
        elif skipping and line[:1].isspace() and line.strip():
            # Continuation of a skipped value.
            continue
        else:
            skipping = False
        result.append(line)
    return result


def set_line(lines: List[str], section: str, key: str, value: str) -> None:
    """Set one key in a list of INI lines, adding the key or section if missing."""
    new_line = f"{key}={_clip(value)}"
    start = None
    end = len(lines)
    for index, line in enumerate(lines):
        name = _section_name(line)
        if name is None:
            continue
        if start is not None:
            end = index
            break
        if name == section:
            start = index

    if start is None:
        if lines and lines[-1].strip():
            lines.append("")
        lines.extend([f"[{section}]", new_line])
        return

    insert_at = start + 1
    for index in range(start + 1, end):
        if _key_name(lines[index]) == key:
            lines[index] = new_line
            return
        if lines[index].strip() and not lines[index].lstrip().startswith((";", "#")):
            insert_at = index + 1
    lines.insert(insert_at, new_line)


def atomic_write_text(path: Path, text: str) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8", newline="\n") as fh:
        fh.write(text)
    os.replace(tmp, path)


def _rewrite(path: PathLike, updates: Iterable[Entry]) -> None:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig", errors="replace")
    except FileNotFoundError:
        text = ""
    lines = text.splitlines()
    for section, key, value in updates:
        set_line(lines, section, key, value)
    path.parent.mkdir(parents=True, exist_ok=True)
    atomic_write_text(path, "\n".join(lines) + "\n")


def write_many(path: PathLike, items: Iterable[Entry], strict: bool = False) -> bool:
    """
    Write several keys in one file rewrite.

    Failures are logged and reported through the return value; with
    ``strict`` they raise FileSystemError instead.
    """
    items = list(items)
    with _lock_for(path)._rlock:
        try:
            _rewrite(path, items)
            return True
        except OSError as e:
            logger.warning(
                f"Configuration write failed for {path} "
                f"(recoverable={is_recoverable_error(e)}): {e}"
            )
            if strict:
                raise FileSystemError(
                    f"Cannot write configuration: {e}",
                    file_path=str(path),
                    operation="write",
                    cause=e
                )
            return False


def write_string(section: str, key: str, value: str, path: PathLike, strict: bool = False) -> bool:
    return write_many(path, [(section, key, value)], strict=strict)


def write_int(section: str, key: str, value: int, path: PathLike) -> bool:
    return write_string(section, key, str(int(value)), path)


def write_bool(section: str, key: str, value: bool, path: PathLike) -> bool:
    return write_string(section, key, "TRUE" if value else "FALSE", path)


def update_string_atomic(section: str, key: str, value: str, path: PathLike) -> bool:
    """Write one key while holding the process-wide named lock."""
    with config_lock(path):
        return write_string(section, key, value, path)


def update_int_atomic(section: str, key: str, value: int, path: PathLike) -> bool:
    with config_lock(path):
        return write_int(section, key, value, path)


def update_bool_atomic(section: str, key: str, value: bool, path: PathLike) -> bool:
    with config_lock(path):
        return write_bool(section, key, value, path)


def flush(path: PathLike) -> bool:
    """Force the file contents to stable storage."""
    try:
        with open(path, "rb+") as fh:
            os.fsync(fh.fileno())
        return True
    except OSError as e:
        logger.warning(f"Cannot flush configuration file {path}: {e}")
        return False


def delete_file(path: PathLike) -> bool:
    try:
        Path(path).unlink()
        return True
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning(f"Cannot delete configuration file {path}: {e}")
        return False
