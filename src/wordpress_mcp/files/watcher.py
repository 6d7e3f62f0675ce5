"""
Change watcher for the WordPress tree.

Wraps a watchdog observer scheduled on the root directory, filters raw
events through the configured glob patterns, and turns them into
``FileChange`` records handed to a delivery callback.
"""

import fnmatch
import logging
from pathlib import Path, PurePosixPath
from threading import RLock, current_thread
from typing import Any, Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from wordpress_mcp.files.exceptions import FileOperationError
from wordpress_mcp.files.models import ChangeType, FileChange

logger = logging.getLogger(__name__)


def is_hidden(relative_path: str) -> bool:
    """True if any component of the path starts with a dot."""
    return any(part.startswith(".") for part in PurePosixPath(relative_path).parts)


def matches_patterns(relative_path: str, patterns: list[str]) -> bool:
    """
    Check a root-relative POSIX path against glob patterns.

    A leading ``**/`` also matches files directly under the root, so
    ``**/*.php`` matches both ``index.php`` and ``wp-content/a.php``.
    """
    for pattern in patterns:
        if fnmatch.fnmatchcase(relative_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatchcase(relative_path, pattern[3:]):
            return True
    return False


def _decode(path: Any) -> str:
    if isinstance(path, bytes):
        return path.decode("utf-8", errors="replace")
    return str(path)


class ChangeEventHandler(FileSystemEventHandler):
    """Maps watchdog events onto (relative path, change type) pairs."""

    def __init__(
        self,
        root: Path,
        patterns: list[str],
        on_event: Callable[[str, ChangeType], None],
    ) -> None:
        super().__init__()
        self.root = root
        self.patterns = patterns
        self.on_event = on_event

    def _relative(self, raw_path: Any) -> Optional[str]:
        """Root-relative POSIX path, or None if outside the root or filtered out."""
        try:
            relative = Path(_decode(raw_path)).relative_to(self.root)
        except ValueError:
            return None

        relative_path = relative.as_posix()
        if is_hidden(relative_path):
            return None
        if not matches_patterns(relative_path, self.patterns):
            return None
        return relative_path

    def _emit(self, raw_path: Any, change_type: ChangeType) -> None:
        relative_path = self._relative(raw_path)
        if relative_path is None:
            return

        logger.debug(f"File event detected: {change_type.value} - {relative_path}")
        self.on_event(relative_path, change_type)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, ChangeType.CREATED)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, ChangeType.MODIFIED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, ChangeType.DELETED)

    def on_moved(self, event: FileSystemEvent) -> None:
        # A rename is reported as the old name going away and the new one appearing
        if event.is_directory:
            return
        self._emit(event.src_path, ChangeType.DELETED)
        self._emit(event.dest_path, ChangeType.CREATED)


class ChangeWatcher:
    """
    One watch session over a root directory.

    The watcher is either idle or watching. ``start()`` while watching
    replaces the running observer; ``stop()`` is a no-op when idle. Both may
    be called from a delivery callback, which runs on the observer thread.

    Content is read when the event arrives, without waiting for writes to
    settle. A file written in several chunks may be delivered as ``created``
    with partial content, followed by ``modified`` once more data lands.

    Usage:
        watcher = ChangeWatcher(
            root=Path("/var/www/html"),
            read_content=lambda rel: (root / rel).read_text(),
            deliver=print,
        )
        watcher.start(["**/*.php"])
        ...
        watcher.stop()
    """

    def __init__(
        self,
        root: Path,
        read_content: Callable[[str], str],
        deliver: Callable[[FileChange], None],
    ) -> None:
        self.root = root
        self._read_content = read_content
        self._deliver = deliver
        self._observer: Optional[Any] = None
        self._patterns: list[str] = []
        self._lock = RLock()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._observer is not None and self._observer.is_alive()

    @property
    def patterns(self) -> list[str]:
        with self._lock:
            return list(self._patterns)

    def start(self, patterns: list[str]) -> None:
        """
        Start watching the root for the given patterns.

        Raises:
            FileOperationError: If the root is not an existing directory or
                the observer cannot be started
        """
        self.stop()

        if not self.root.is_dir():
            raise FileOperationError(
                "watch", str(self.root), NotADirectoryError("root directory not found")
            )

        handler = ChangeEventHandler(self.root, list(patterns), self.handle_event)
        observer: Any = Observer()
        observer.schedule(handler, str(self.root), recursive=True)
        try:
            observer.start()
        except OSError as e:
            raise FileOperationError("watch", str(self.root), e) from e

        with self._lock:
            # A concurrent start() may have installed its own observer meanwhile
            previous = self._observer
            self._observer = observer
            self._patterns = list(patterns)
        if previous is not None:
            self._release(previous)
        logger.info(f"Started watching {self.root} for {', '.join(patterns)}")

    def stop(self) -> None:
        """Release the observer. Safe to call when not watching."""
        with self._lock:
            observer = self._observer
            if observer is None:
                return
            self._observer = None
            self._patterns = []

        self._release(observer)
        logger.info(f"Stopped watching {self.root}")

    @staticmethod
    def _release(observer: Any) -> None:
        observer.stop()
        # Subscribers run on the observer thread and may stop the watcher themselves
        if observer is not current_thread():
            observer.join(timeout=5.0)

    def handle_event(self, relative_path: str, change_type: ChangeType) -> FileChange:
        """
        Build the change record for one event and deliver it.

        For created/modified files the current content is attached when it
        can be read; a file removed in the meantime simply has no content.
        """
        content = None
        if change_type != ChangeType.DELETED:
            try:
                content = self._read_content(relative_path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not read content of changed file {relative_path}: {e}")

        change = FileChange(path=relative_path, type=change_type, content=content)
        self._deliver(change)
        return change

