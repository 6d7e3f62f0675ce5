"""
File manager for a WordPress tree.

Owns the root directory, the backup directory, the change watcher and the
list of change subscribers. Every path handed to it is interpreted relative
to the root.
"""

import asyncio
import errno
import fnmatch
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Optional, Sequence, Union

from pydantic import ValidationError

from wordpress_mcp.files.config import FileManagerConfig
from wordpress_mcp.files.exceptions import (
    FileManagerError,
    FileOperationError,
    InvalidPathError,
)
from wordpress_mcp.files.models import (
    EditType,
    FileChange,
    FileEdit,
    FileStats,
    SearchMatch,
)
from wordpress_mcp.files.watcher import ChangeWatcher

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[FileChange], Any]


def apply_edits(content: str, edits: Sequence[FileEdit]) -> str:
    """
    Apply line edits in order and return the new content.

    Each edit sees the lines produced by the previous one. Out-of-range
    edits are skipped: ``replace`` accepts lines ``1..n`` and ``insert``
    accepts ``1..n+1`` (``n+1`` inserts after the last line). ``append``
    always adds a final line.
    """
    for edit in edits:
        lines = content.split("\n")

        if edit.type == EditType.APPEND:
            lines.append(edit.content)
        elif edit.type == EditType.REPLACE:
            if edit.line is None or not 1 <= edit.line <= len(lines):
                logger.debug(f"Skipping replace at line {edit.line} ({len(lines)} lines)")
                continue
            lines[edit.line - 1] = edit.content
        elif edit.type == EditType.INSERT:
            if edit.line is None or not 1 <= edit.line <= len(lines) + 1:
                logger.debug(f"Skipping insert at line {edit.line} ({len(lines)} lines)")
                continue
            lines.insert(edit.line - 1, edit.content)

        content = "\n".join(lines)

    return content


def compile_name_pattern(pattern: Optional[str]) -> Callable[[str], bool]:
    """
    Build a file name predicate.

    A name matches when it matches ``pattern`` as a glob, or when ``pattern``
    is a valid regular expression found anywhere in the name. No pattern
    matches everything.
    """
    if not pattern:
        return lambda name: True

    try:
        regex = re.compile(pattern)
    except re.error:
        regex = None

    def matches(name: str) -> bool:
        if fnmatch.fnmatchcase(name, pattern):
            return True
        return regex is not None and regex.search(name) is not None

    return matches


def backup_timestamp(now: Optional[datetime] = None) -> str:
    """Filesystem-safe UTC timestamp, e.g. ``2024-05-01T10-20-30-123Z``."""
    now = now or datetime.now(timezone.utc)
    return f"{now:%Y-%m-%dT%H-%M-%S}-{now.microsecond // 1000:03d}Z"


class Subscription:
    """Handle for one change callback registration."""

    def __init__(self, manager: "FileManager", callback: ChangeCallback):
        self._manager = manager
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        """Stop delivering changes to this callback. Idempotent."""
        if self.active:
            self.active = False
            self._manager._remove_subscription(self)

    def __repr__(self) -> str:
        return f"Subscription(callback={self.callback!r}, active={self.active})"


class FileManager:
    """
    Structural operations, backups, search and change watching for one tree.

    All storage operations are coroutines; the blocking filesystem calls run
    in worker threads. The watcher delivers changes on its own thread, and
    there is no locking between watcher callbacks and mutations: a file
    deleted right after a change is reported yields a change without content.

    Usage:
        manager = FileManager(FileManagerConfig(root_directory="/var/www/html"))

        content = await manager.read_file("wp-config.php")
        await manager.edit_file("index.php", [
            {"line": 2, "content": "// patched", "type": "insert"},
        ])

        subscription = manager.on_change(lambda change: print(change))
        manager.start_watching()
        ...
        subscription.cancel()
        manager.close()
    """

    def __init__(self, config: Optional[FileManagerConfig] = None):
        """
        Initialize the manager and make sure the backup directory exists.

        Args:
            config: File manager configuration (defaults if not provided)

        Raises:
            FileOperationError: If the backup directory cannot be created
        """
        self.config = config or FileManagerConfig()
        self.root = self.config.root_directory
        self.backup_dir = self.config.backup_directory
        self._subscriptions: list[Subscription] = []
        self._subscriptions_lock = Lock()
        self._watcher = ChangeWatcher(
            root=self.root,
            read_content=self._read_sync,
            deliver=self._notify,
        )
        self._ensure_backup_dir()

    def _ensure_backup_dir(self) -> None:
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError("create backup directory", str(self.backup_dir), e) from e

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def resolve_path(self, path: Optional[str]) -> Path:
        """
        Resolve a caller path against the root.

        Raises:
            InvalidPathError: If the path is absolute or leaves the root
        """
        if not path or path == ".":
            return self.root

        if Path(path).is_absolute():
            raise InvalidPathError(path, "Absolute paths are not allowed")

        resolved = Path(os.path.normpath(self.root / path))
        try:
            resolved.relative_to(self.root)
        except ValueError:
            raise InvalidPathError(path, "Path escapes the root directory")
        return resolved

    def relative_path(self, path: Path) -> str:
        """POSIX path of ``path`` relative to the root."""
        return path.relative_to(self.root).as_posix()

    # ------------------------------------------------------------------
    # Mutation and query operations
    # ------------------------------------------------------------------

    def _read_text(self, full_path: Path) -> str:
        # newline="" keeps CRLF line endings intact
        with open(full_path, encoding=self.config.encoding, newline="") as f:
            return f.read()

    def _read_sync(self, path: str) -> str:
        return self._read_text(self.resolve_path(path))

    async def read_file(self, path: str) -> str:
        """
        Read a file under the root.

        Raises:
            FileOperationError: If the file is missing, unreadable or not text
            InvalidPathError: If the path is absolute or leaves the root
        """
        full_path = self.resolve_path(path)
        try:
            content = await asyncio.to_thread(self._read_text, full_path)
        except (OSError, UnicodeDecodeError) as e:
            raise FileOperationError("read file", path, e) from e

        logger.debug(f"Read {path} ({len(content)} chars)")
        return content

    def _write_sync(self, full_path: Path, content: str) -> None:
        full_path.parent.mkdir(parents=True, exist_ok=True)
        with open(full_path, "w", encoding=self.config.encoding, newline="") as f:
            f.write(content)

    async def write_file(self, path: str, content: str) -> None:
        """
        Write a file, creating parent directories as needed.

        Existing content is overwritten unconditionally.
        """
        full_path = self.resolve_path(path)
        try:
            await asyncio.to_thread(self._write_sync, full_path, content)
        except (OSError, UnicodeEncodeError) as e:
            raise FileOperationError("write file", path, e) from e

        logger.info(f"Wrote {path} ({len(content)} chars)")

    async def edit_file(
        self, path: str, edits: Sequence[Union[FileEdit, dict[str, Any]]]
    ) -> str:
        """
        Apply a batch of line edits with a single read and a single write.

        Args:
            path: File path relative to the root
            edits: Edits applied in order (``FileEdit`` or equivalent dicts)

        Returns:
            The new file content

        Raises:
            FileOperationError: If an edit is malformed or the file cannot be
                read or written; the file is left untouched on a bad edit
        """
        try:
            parsed = [
                edit if isinstance(edit, FileEdit) else FileEdit.model_validate(edit)
                for edit in edits
            ]
        except ValidationError as e:
            raise FileOperationError("edit file", path, e) from e

        try:
            current = await self.read_file(path)
            updated = apply_edits(current, parsed)
            await self.write_file(path, updated)
        except FileOperationError as e:
            raise FileOperationError("edit file", path, e.cause) from e

        logger.info(f"Applied {len(parsed)} edit(s) to {path}")
        return updated

    def _delete_sync(self, full_path: Path) -> None:
        if full_path.is_dir() and not full_path.is_symlink():
            raise IsADirectoryError(errno.EISDIR, "Is a directory", str(full_path))
        full_path.unlink()

    async def delete_file(self, path: str) -> None:
        """
        Delete a file. Directories are rejected, never removed recursively.

        Raises:
            FileOperationError: If the file is missing, is a directory, or
                cannot be removed
        """
        full_path = self.resolve_path(path)
        if full_path == self.root:
            raise InvalidPathError(path or ".", "Cannot delete the root directory")

        try:
            await asyncio.to_thread(self._delete_sync, full_path)
        except OSError as e:
            raise FileOperationError("delete file", path, e) from e

        logger.info(f"Deleted {path}")

    def _write_backup(self, name: str, content: str) -> Path:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        candidate = self.backup_dir / name
        counter = 0
        while True:
            try:
                with open(candidate, "x", encoding=self.config.encoding, newline="") as f:
                    f.write(content)
                return candidate
            except FileExistsError:
                counter += 1
                candidate = self.backup_dir / f"{name}-{counter}"

    async def backup_file(self, path: str) -> Path:
        """
        Copy the current content of a file into the backup directory.

        The backup is named ``<basename>.backup.<timestamp>`` and is never
        overwritten. The original file is left untouched.

        Returns:
            Path of the backup file
        """
        full_path = self.resolve_path(path)
        name = f"{full_path.name}.backup.{backup_timestamp()}"

        try:
            content = await self.read_file(path)
            backup_path = await asyncio.to_thread(self._write_backup, name, content)
        except FileOperationError as e:
            raise FileOperationError("backup file", path, e.cause) from e
        except OSError as e:
            raise FileOperationError("backup file", path, e) from e

        logger.info(f"Backed up {path} to {backup_path}")
        return backup_path

    def _walk(self, directory: Path, matches: Callable[[str], bool]) -> list[str]:
        files = []
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            # Symlinked directories are not followed; only regular files are listed
            if entry.is_symlink() and not entry.is_file():
                continue
            if entry.is_dir():
                files.extend(self._walk(entry, matches))
            elif entry.is_file() and matches(entry.name):
                files.append(self.relative_path(entry))
        return files

    async def list_files(
        self, directory: str = "", pattern: Optional[str] = None
    ) -> list[str]:
        """
        Recursively list files below a directory.

        Args:
            directory: Directory relative to the root (default: the root)
            pattern: Optional glob or regular expression matched against
                file names (not full paths)

        Returns:
            Root-relative POSIX paths, in sorted walk order
        """
        full_path = self.resolve_path(directory)
        matches = compile_name_pattern(pattern)

        try:
            files = await asyncio.to_thread(self._walk, full_path, matches)
        except OSError as e:
            raise FileOperationError("list files in", directory or "root", e) from e

        logger.debug(f"Listed {len(files)} files in {directory or 'root'}")
        return files

    async def search_in_files(
        self, term: str, file_pattern: Optional[str] = None
    ) -> list[SearchMatch]:
        """
        Case-insensitive substring search over files matching a pattern.

        Files that cannot be read are skipped with a warning.

        Args:
            term: Text to look for
            file_pattern: File name pattern (default: ``*.php``)

        Returns:
            One SearchMatch per matching line
        """
        pattern = file_pattern or self.config.default_search_pattern
        files = await self.list_files("", pattern)
        needle = term.lower()

        results = []
        for file in files:
            try:
                content = await self.read_file(file)
            except FileManagerError as e:
                logger.warning(f"Could not search in file {file}: {e}")
                continue

            for line_number, line in enumerate(content.split("\n"), start=1):
                if needle in line.lower():
                    results.append(
                        SearchMatch(file=file, line=line_number, content=line.strip())
                    )

        logger.info(f"Search for {term!r} in {pattern} found {len(results)} matches")
        return results

    async def get_file_stats(self, path: str) -> FileStats:
        """Filesystem metadata for a path under the root."""
        full_path = self.resolve_path(path)
        try:
            st = await asyncio.to_thread(full_path.stat)
        except OSError as e:
            raise FileOperationError("get file stats for", path, e) from e

        return FileStats.from_stat(path, st)

    # ------------------------------------------------------------------
    # Watching
    # ------------------------------------------------------------------

    @property
    def is_watching(self) -> bool:
        return self._watcher.is_running

    @property
    def watch_patterns(self) -> list[str]:
        """Patterns of the running watch session (empty when idle)."""
        return self._watcher.patterns

    def start_watching(self, patterns: Optional[Sequence[str]] = None) -> list[str]:
        """
        Start watching the tree, replacing any running watch session.

        Args:
            patterns: Glob patterns relative to the root (default: PHP, JS
                and CSS files)

        Returns:
            The patterns being watched
        """
        effective = [p for p in patterns or [] if p] or list(self.config.watch_patterns)
        self._watcher.start(effective)
        return effective

    def stop_watching(self) -> None:
        """Stop watching. No-op when not watching."""
        self._watcher.stop()

    def on_change(self, callback: ChangeCallback) -> Subscription:
        """
        Register a callback for every observed change.

        Callbacks run on the watcher thread in registration order.
        Registering the same callback twice delivers each change twice.

        Returns:
            A Subscription whose ``cancel()`` removes this registration
        """
        subscription = Subscription(self, callback)
        with self._subscriptions_lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove_subscription(self, subscription: Subscription) -> None:
        with self._subscriptions_lock:
            self._subscriptions = [s for s in self._subscriptions if s is not subscription]

    @property
    def subscriber_count(self) -> int:
        with self._subscriptions_lock:
            return len(self._subscriptions)

    def _notify(self, change: FileChange) -> None:
        with self._subscriptions_lock:
            subscriptions = list(self._subscriptions)

        for subscription in subscriptions:
            if not subscription.active:
                continue
            try:
                subscription.callback(change)
            except Exception:
                logger.exception(f"Change subscriber {subscription.callback!r} failed on {change}")

    def close(self) -> None:
        """Stop the watcher."""
        self.stop_watching()

    def __enter__(self) -> "FileManager":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    async def __aenter__(self) -> "FileManager":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await asyncio.to_thread(self.close)

    def __repr__(self) -> str:
        return f"FileManager(root={str(self.root)!r}, watching={self.is_watching})"
