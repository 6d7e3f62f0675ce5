"""
Configuration for the WordPress file manager.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_WATCH_PATTERNS = ["**/*.php", "**/*.js", "**/*.css"]


class FileManagerConfig(BaseModel):
    """
    Where the managed tree lives and how it is watched.

    Both directories are resolved to absolute paths on validation, so the
    manager never depends on the process working directory after startup.

    Usage:
        config = FileManagerConfig(
            root_directory=Path("/var/www/html"),
            backup_directory=Path("/var/backups/wordpress"),
        )
        manager = FileManager(config)
    """

    model_config = {"validate_default": True}

    root_directory: Path = Field(
        default=Path("./wordpress"),
        description="WordPress root; every tool path is relative to it",
    )

    backup_directory: Path = Field(
        default=Path("./backups"),
        description="Directory receiving timestamped backup copies",
    )

    watch_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WATCH_PATTERNS),
        description="Glob patterns (relative to the root) watched for changes",
    )

    default_search_pattern: str = Field(
        default="*.php",
        description="File name pattern used by search when none is given",
    )

    encoding: str = Field(
        default="utf-8",
        description="Text encoding for reads and writes",
    )

    @field_validator("root_directory", "backup_directory", mode="before")
    @classmethod
    def resolve_directory(cls, v):
        """Resolve directories to absolute paths."""
        return Path(v).expanduser().resolve()

    @field_validator("watch_patterns")
    @classmethod
    def require_patterns(cls, v: list[str]) -> list[str]:
        """Drop blank patterns; fall back to the defaults when none remain."""
        patterns = [p.strip() for p in v if p and p.strip()]
        return patterns or list(DEFAULT_WATCH_PATTERNS)

    def __repr__(self) -> str:
        return (
            f"FileManagerConfig(root={str(self.root_directory)!r}, "
            f"backups={str(self.backup_directory)!r})"
        )
