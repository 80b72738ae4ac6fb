"""Database locator port interface and location DTO."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DatabaseNotFoundError(FileNotFoundError):
    """Raised when the configured cscope database cannot be resolved."""

    def __init__(self, configured_path: str) -> None:
        self.configured_path = configured_path
        super().__init__(f"cscope database not found: {configured_path}")


class DatabaseLocation(BaseModel):
    """Resolved location of a cscope database."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute path to the database file")
    directory: Path = Field(..., description="Directory the indexer runs in")

    @field_validator("path", "directory")
    def _validate_absolute(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError("DatabaseLocation paths must be absolute")
        return value

    @classmethod
    def for_file(cls, path: Path) -> DatabaseLocation:
        """Build a location whose working directory is the file's parent."""
        resolved = path.absolute()
        return cls(path=resolved, directory=resolved.parent)


class ProjectRootPort(Protocol):
    """Port interface for discovering the root of the current project."""

    def find_root(self, start: Path) -> Path | None:
        """Return the project root containing ``start``, or None."""
        ...


class DatabaseFinderPort(Protocol):
    """Port interface for resolving the database used by an interaction.

    Adapter: PriorityDatabaseFinder (absolute, start dir, project root).

    Side effects: filesystem existence checks only.
    """

    def resolve(self, configured_path: str, start_dir: Path) -> DatabaseLocation:
        """Resolve ``configured_path`` to an existing database.

        Args:
            configured_path: Path from configuration, absolute or relative
            start_dir: Directory the interaction was started from

        Returns:
            DatabaseLocation of an existing file

        Raises:
            DatabaseNotFoundError: If no candidate location exists
        """
        ...
