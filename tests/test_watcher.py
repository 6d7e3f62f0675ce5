"""
Tests for change watching and subscriber notification.
"""

import logging
import os
import tempfile
import threading
import time
from pathlib import Path

import pytest
from pydantic import ValidationError
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from wordpress_mcp.files import (
    ChangeType,
    FileChange,
    FileManager,
    FileManagerConfig,
    FileOperationError,
)
from wordpress_mcp.files.watcher import ChangeEventHandler, is_hidden, matches_patterns


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def root(temp_dir):
    root = temp_dir / "wordpress"
    (root / "wp-content").mkdir(parents=True)
    (root / "index.php").write_text("<?php echo 'hi';")
    return root


@pytest.fixture
def manager(temp_dir, root):
    manager = FileManager(
        FileManagerConfig(root_directory=root, backup_directory=temp_dir / "backups")
    )
    yield manager
    manager.close()


@pytest.fixture
def events():
    return []


@pytest.fixture
def handler(root, events):
    """Handler for PHP files that records (path, type) pairs."""
    return ChangeEventHandler(
        root, ["**/*.php"], lambda path, change_type: events.append((path, change_type))
    )


class TestPatternMatching:
    """Test watch pattern helpers."""

    def test_double_star_matches_top_level(self):
        assert matches_patterns("index.php", ["**/*.php"])

    def test_double_star_matches_nested(self):
        assert matches_patterns("wp-content/plugins/shop/shop.php", ["**/*.php"])

    def test_no_match(self):
        assert not matches_patterns("readme.txt", ["**/*.php", "**/*.css"])

    def test_directory_scoped_pattern(self):
        patterns = ["wp-content/themes/**/*.css"]
        assert matches_patterns("wp-content/themes/site/css/main.css", patterns)
        assert not matches_patterns("style.css", patterns)

    def test_hidden_components(self):
        assert is_hidden(".git/config.php")
        assert is_hidden("wp-content/.cache/x.php")
        assert is_hidden(".htaccess")
        assert not is_hidden("wp-content/themes/site/functions.php")


class TestChangeEventHandler:
    """Test mapping raw watchdog events to changes."""

    def test_created(self, handler, root, events):
        handler.dispatch(FileCreatedEvent(str(root / "wp-content" / "a.php")))
        assert events == [("wp-content/a.php", ChangeType.CREATED)]

    def test_modified(self, handler, root, events):
        handler.dispatch(FileModifiedEvent(str(root / "index.php")))
        assert events == [("index.php", ChangeType.MODIFIED)]

    def test_deleted(self, handler, root, events):
        handler.dispatch(FileDeletedEvent(str(root / "index.php")))
        assert events == [("index.php", ChangeType.DELETED)]

    def test_moved(self, handler, root, events):
        """A rename is a delete of the old name and a create of the new one."""
        handler.dispatch(FileMovedEvent(str(root / "old.php"), str(root / "new.php")))
        assert events == [
            ("old.php", ChangeType.DELETED),
            ("new.php", ChangeType.CREATED),
        ]

    def test_moved_from_unwatched_name(self, handler, root, events):
        handler.dispatch(FileMovedEvent(str(root / ".upload.tmp"), str(root / "new.php")))
        assert events == [("new.php", ChangeType.CREATED)]

    def test_unmatched_file_ignored(self, handler, root, events):
        handler.dispatch(FileCreatedEvent(str(root / "readme.txt")))
        assert events == []

    def test_hidden_file_ignored(self, handler, root, events):
        handler.dispatch(FileCreatedEvent(str(root / ".git" / "hooks.php")))
        assert events == []

    def test_directory_events_ignored(self, handler, root, events):
        handler.dispatch(DirCreatedEvent(str(root / "wp-content" / "new.php")))
        assert events == []

    def test_outside_root_ignored(self, handler, temp_dir, events):
        handler.dispatch(FileCreatedEvent(str(temp_dir / "other" / "a.php")))
        assert events == []


class TestChangeDelivery:
    """Test building and delivering change records."""

    def test_change_includes_content(self, manager, root):
        received = []
        manager.on_change(received.append)

        change = manager._watcher.handle_event("index.php", ChangeType.MODIFIED)

        assert received == [change]
        assert change.path == "index.php"
        assert change.type == ChangeType.MODIFIED
        assert change.content == "<?php echo 'hi';"

    def test_deleted_change_has_no_content(self, manager):
        received = []
        manager.on_change(received.append)

        manager._watcher.handle_event("index.php", ChangeType.DELETED)

        assert received[0].type == ChangeType.DELETED
        assert received[0].content is None

    def test_unreadable_file_delivered_without_content(self, manager, root, caplog):
        """A file deleted before the follow-up read still yields a change."""
        received = []
        manager.on_change(received.append)
        (root / "index.php").unlink()

        with caplog.at_level(logging.WARNING):
            manager._watcher.handle_event("index.php", ChangeType.MODIFIED)

        assert len(received) == 1
        assert received[0].type == ChangeType.MODIFIED
        assert received[0].content is None
        assert "Could not read content" in caplog.text

    def test_change_is_immutable(self):
        change = FileChange(path="index.php", type=ChangeType.CREATED)
        with pytest.raises(ValidationError):
            change.path = "other.php"

    def test_change_str(self):
        change = FileChange(path="index.php", type=ChangeType.DELETED)
        assert str(change) == "deleted: index.php"


class TestSubscriptions:
    """Test subscriber registration and fan-out."""

    def test_delivery_in_registration_order(self, manager):
        order = []
        manager.on_change(lambda change: order.append("first"))
        manager.on_change(lambda change: order.append("second"))

        manager._watcher.handle_event("index.php", ChangeType.MODIFIED)

        assert order == ["first", "second"]

    def test_same_callback_registered_twice(self, manager):
        received = []
        manager.on_change(received.append)
        manager.on_change(received.append)

        manager._watcher.handle_event("index.php", ChangeType.DELETED)

        assert len(received) == 2

    def test_failing_subscriber_isolated(self, manager, caplog):
        """A subscriber that raises does not stop delivery to the others."""
        received = []

        def broken(change):
            raise RuntimeError("subscriber bug")

        manager.on_change(broken)
        manager.on_change(received.append)

        with caplog.at_level(logging.ERROR):
            manager._watcher.handle_event("index.php", ChangeType.DELETED)

        assert len(received) == 1
        assert "subscriber bug" in caplog.text

    def test_cancel(self, manager):
        received = []
        subscription = manager.on_change(received.append)
        assert manager.subscriber_count == 1

        subscription.cancel()
        subscription.cancel()

        assert not subscription.active
        assert manager.subscriber_count == 0
        manager._watcher.handle_event("index.php", ChangeType.DELETED)
        assert received == []

    def test_cancel_removes_only_own_registration(self, manager):
        received = []
        first = manager.on_change(received.append)
        manager.on_change(received.append)

        first.cancel()
        manager._watcher.handle_event("index.php", ChangeType.DELETED)

        assert manager.subscriber_count == 1
        assert len(received) == 1

    def test_cancel_during_delivery(self, manager):
        """A subscription cancelled by an earlier subscriber is skipped."""
        received = []
        later = None

        def cancel_later(change):
            later.cancel()

        manager.on_change(cancel_later)
        later = manager.on_change(received.append)

        manager._watcher.handle_event("index.php", ChangeType.DELETED)

        assert received == []


class TestWatchLifecycle:
    """Test starting and stopping the watcher."""

    def test_start_and_stop(self, manager):
        patterns = manager.start_watching()

        assert manager.is_watching
        assert patterns == ["**/*.php", "**/*.js", "**/*.css"]
        assert manager.watch_patterns == patterns

        manager.stop_watching()
        assert not manager.is_watching
        assert manager.watch_patterns == []

    def test_stop_when_idle(self, manager):
        manager.stop_watching()
        manager.stop_watching()
        assert not manager.is_watching

    def test_restart_replaces_patterns(self, manager):
        manager.start_watching(["**/*.php"])
        manager.start_watching(["**/*.css"])

        assert manager.is_watching
        assert manager.watch_patterns == ["**/*.css"]

    def test_empty_patterns_use_defaults(self, manager):
        assert manager.start_watching([]) == ["**/*.php", "**/*.js", "**/*.css"]

    def test_missing_root(self, manager, root):
        (root / "index.php").unlink()
        (root / "wp-content").rmdir()
        root.rmdir()

        with pytest.raises(FileOperationError) as exc_info:
            manager.start_watching()

        assert exc_info.value.operation == "watch"
        assert not manager.is_watching


class TestLiveWatching:
    """Test the watcher against real filesystem events."""

    def test_created_file_reported(self, manager, root):
        """A file moved into place is reported once as created, with content."""
        received = []
        other = []
        seen = threading.Event()

        def on_change(change):
            received.append(change)
            if change.path == "new.php":
                seen.set()

        manager.on_change(on_change)
        manager.on_change(other.append)
        manager.start_watching(["**/*.php"])

        staging = root / ".new.php.tmp"
        staging.write_text("<?php echo 'new';")
        os.replace(staging, root / "new.php")

        assert seen.wait(timeout=10.0)
        # Let any trailing events arrive
        time.sleep(0.5)

        for subscriber_changes in (received, other):
            created = [
                c for c in subscriber_changes
                if c.path == "new.php" and c.type == ChangeType.CREATED
            ]
            assert len(created) == 1
            assert created[0].content == "<?php echo 'new';"
        assert all(not c.path.startswith(".") for c in received)

    def test_written_file_reported(self, manager, root):
        """A file created by an ordinary write is reported as created."""
        changes = []
        complete = threading.Event()

        def on_change(change):
            changes.append(change)
            if change.path == "plugin.php" and change.content == "<?php echo 'plugin';":
                complete.set()

        manager.on_change(on_change)
        manager.start_watching(["**/*.php"])

        (root / "plugin.php").write_text("<?php echo 'plugin';")

        assert complete.wait(timeout=10.0)
        assert [c.type for c in changes if c.path == "plugin.php"][0] == ChangeType.CREATED

    def test_stop_from_callback(self, manager, root, caplog):
        """A subscriber may stop the watcher from inside its own delivery."""
        errors = []
        done = threading.Event()

        def stop_on_first_change(change):
            try:
                manager.stop_watching()
            except RuntimeError as e:
                errors.append(e)
            finally:
                done.set()

        manager.on_change(stop_on_first_change)
        manager.start_watching(["**/*.php"])

        with caplog.at_level(logging.ERROR):
            (root / "stop.php").write_text("<?php")
            assert done.wait(timeout=10.0)
            time.sleep(0.2)

        assert errors == []
        assert not manager.is_watching
        assert "failed" not in caplog.text

    def test_restart_from_callback(self, manager, root):
        """A subscriber may switch patterns, and the new session delivers changes."""
        restarted = threading.Event()
        css_seen = threading.Event()

        def on_change(change):
            if change.path == "first.php" and not restarted.is_set():
                manager.start_watching(["**/*.css"])
                restarted.set()
            elif change.path == "late.css":
                css_seen.set()

        manager.on_change(on_change)
        manager.start_watching(["**/*.php"])

        (root / "first.php").write_text("<?php")
        assert restarted.wait(timeout=10.0)
        assert manager.is_watching
        assert manager.watch_patterns == ["**/*.css"]

        (root / "late.css").write_text("body {}")
        assert css_seen.wait(timeout=10.0)
