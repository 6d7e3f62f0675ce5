"""
File management for a WordPress tree.

Example:
    ```python
    from wordpress_mcp.files import FileManager, FileManagerConfig

    manager = FileManager(FileManagerConfig(root_directory="/var/www/html"))
    content = await manager.read_file("wp-config.php")

    matches = await manager.search_in_files("add_action", "*.php")
    for match in matches:
        print(f"{match.file}:{match.line}: {match.content}")
    ```
"""

from wordpress_mcp.files.config import DEFAULT_WATCH_PATTERNS, FileManagerConfig
from wordpress_mcp.files.exceptions import (
    FileManagerError,
    FileOperationError,
    InvalidPathError,
)
from wordpress_mcp.files.manager import FileManager, Subscription, apply_edits
from wordpress_mcp.files.models import (
    ChangeType,
    EditType,
    FileChange,
    FileEdit,
    FileStats,
    SearchMatch,
)
from wordpress_mcp.files.tools import FileTools
from wordpress_mcp.files.watcher import ChangeWatcher

__all__ = [
    # Config
    "FileManagerConfig",
    "DEFAULT_WATCH_PATTERNS",
    # Manager
    "FileManager",
    "Subscription",
    "ChangeWatcher",
    "FileTools",
    "apply_edits",
    # Models
    "ChangeType",
    "EditType",
    "FileChange",
    "FileEdit",
    "FileStats",
    "SearchMatch",
    # Exceptions
    "FileManagerError",
    "FileOperationError",
    "InvalidPathError",
]
