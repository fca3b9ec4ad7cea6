"""
Configuration file watcher.

Watches the configuration file's directory with watchdog and, when the
file itself changes, waits a short debounce window and posts one reload
notification per functional area to the owning consumer. The watcher
never touches LiveState: the consumer performs the reloads on its own
thread.

State machine: Stopped --start(target)--> Watching --stop()--> Stopped.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..core.exceptions import WatcherError
from .applier import ReloadArea

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.2

# Posted for every genuine change, in this order.
RELOAD_AREAS: Tuple[ReloadArea, ...] = (
    ReloadArea.ANIMATION_SPEED,
    ReloadArea.ANIMATION_PATH,
    ReloadArea.DISPLAY,
    ReloadArea.TIMER,
    ReloadArea.POMODORO,
    ReloadArea.NOTIFICATION,
    ReloadArea.HOTKEYS,
    ReloadArea.RECENT_FILES,
    ReloadArea.COLORS,
)

_CHANGE_EVENTS = frozenset({"created", "modified", "moved"})

ReloadTarget = Callable[[ReloadArea], None]


class ConfigFileEventHandler(FileSystemEventHandler):
    """Forwards changes of one file name, ignoring siblings in the same directory."""

    def __init__(self, file_name: str, on_change: Callable[[], None]):
        super().__init__()
        self.file_name = file_name.lower()
        self.on_change = on_change

    def matches(self, event: FileSystemEvent) -> bool:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return False
        paths = [event.src_path, getattr(event, "dest_path", "")]
        for path in paths:
            if isinstance(path, bytes):
                path = os.fsdecode(path)
            if path and os.path.basename(path).lower() == self.file_name:
                return True
        return False

    def on_any_event(self, event: FileSystemEvent) -> None:
        if self.matches(event):
            self.on_change()


class ConfigWatcher:
    """
    Background watcher for the configuration file.

    ``start`` is a no-op while already watching; ``stop`` blocks until the
    dispatch thread and the observer have exited.
    """

    def __init__(self, config_path: Union[str, Path], debounce: float = DEBOUNCE_SECONDS):
        self.config_path = Path(config_path)
        self.debounce = debounce
        self._lock = threading.Lock()
        self._changed = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._observer: Optional[Observer] = None
        self._target: Optional[ReloadTarget] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, target: ReloadTarget, strict: bool = False) -> bool:
        """
        Start watching.

        Args:
            target: Called from the watcher thread with each ReloadArea;
                typically a thread-safe queue's ``put``
            strict: Raise WatcherError instead of returning False

        Returns:
            True if watching (already or newly), False if the directory
            could not be watched
        """
        with self._lock:
            if self.is_running:
                return True

            self._target = target
            self._stop.clear()
            self._changed.clear()

            directory = self.config_path.parent
            handler = ConfigFileEventHandler(self.config_path.name, self._changed.set)
            observer = Observer()
            try:
                observer.schedule(handler, str(directory), recursive=False)
                observer.start()
            except OSError as e:
                logger.error(f"Cannot watch configuration directory {directory}: {e}")
                if strict:
                    raise WatcherError(
                        f"Cannot watch configuration directory: {e}",
                        directory=str(directory),
                        cause=e
                    )
                return False

            self._observer = observer
            self._thread = threading.Thread(
                target=self._run, name="catime-config-watcher", daemon=True
            )
            self._thread.start()
            logger.info(f"Watching configuration file {self.config_path}")
            return True

    def stop(self) -> None:
        with self._lock:
            if self._thread is None:
                return

            self._stop.set()
            self._changed.set()

            observer = self._observer
            if observer is not None:
                observer.stop()
                observer.join()
            self._thread.join()

            self._observer = None
            self._thread = None
            self._target = None
            logger.info("Configuration watcher stopped")

    def _run(self) -> None:
        while not self._stop.is_set():
            self._changed.wait()
            if self._stop.is_set():
                break

            # Coalesce the burst of events a single save produces.
            if self._stop.wait(self.debounce):
                break
            self._changed.clear()

            logger.debug("Configuration file changed, posting reload notifications")
            self._post_all()

    def _post_all(self) -> None:
        for area in RELOAD_AREAS:
            try:
                self._target(area)
            except Exception as e:
                logger.error(f"Failed to post reload notification {area.value}: {e}")
