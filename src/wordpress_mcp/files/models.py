"""
File manager data models.

Pydantic models for change records, line edits, search matches and file
metadata.
"""

import os
import stat
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChangeType(str, Enum):
    """Kind of change observed by the watcher."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


class FileChange(BaseModel):
    """A single change observed under the WordPress root."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="File path relative to the root (POSIX separators)")
    type: ChangeType = Field(description="Kind of change")
    content: Optional[str] = Field(
        default=None,
        description="File content after the change (created/modified only, when readable)",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the change was observed",
    )

    def __str__(self) -> str:
        return f"{self.type.value}: {self.path}"


class EditType(str, Enum):
    """Line edit kinds."""

    REPLACE = "replace"
    INSERT = "insert"
    APPEND = "append"


class FileEdit(BaseModel):
    """One line-indexed edit within a batch."""

    line: Optional[int] = Field(
        default=None,
        ge=1,
        description="1-based line number (ignored for append)",
    )
    content: str = Field(description="Text to place; may span several lines")
    type: EditType = Field(description="replace, insert or append")


class SearchMatch(BaseModel):
    """A line matching a search term."""

    file: str = Field(description="File path relative to the root")
    line: int = Field(description="1-based line number")
    content: str = Field(description="Matching line, surrounding whitespace stripped")


class FileStats(BaseModel):
    """Filesystem metadata for a path under the root."""

    path: str
    size: int
    modified_at: datetime
    created_at: datetime
    accessed_at: datetime
    mode: int
    is_file: bool
    is_directory: bool

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result) -> "FileStats":
        """Build from an ``os.stat_result``."""
        return cls(
            path=path,
            size=st.st_size,
            modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            created_at=datetime.fromtimestamp(st.st_ctime, tz=timezone.utc),
            accessed_at=datetime.fromtimestamp(st.st_atime, tz=timezone.utc),
            mode=st.st_mode,
            is_file=stat.S_ISREG(st.st_mode),
            is_directory=stat.S_ISDIR(st.st_mode),
        )
