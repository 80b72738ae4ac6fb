"""Default database finder: absolute path, start directory, project root."""

from __future__ import annotations

import logging
from pathlib import Path

from narrowscope.app.ports.database import (
    DatabaseFinderPort,
    DatabaseLocation,
    DatabaseNotFoundError,
    ProjectRootPort,
)

logger = logging.getLogger(__name__)


class PriorityDatabaseFinder(DatabaseFinderPort):
    """Resolve the database in strict priority order.

    1. ``configured_path`` if it is absolute and exists
    2. ``start_dir / configured_path`` if it exists
    3. ``project_root / configured_path`` if a project root is found and it exists

    The existence check is not a guarantee: the file may disappear before the
    indexer is launched, which then surfaces as a LaunchError.
    """

    def __init__(self, project_root: ProjectRootPort | None = None) -> None:
        self.project_root = project_root

    def resolve(self, configured_path: str, start_dir: Path) -> DatabaseLocation:
        path = Path(configured_path).expanduser()

        if path.is_absolute():
            if path.is_file():
                return DatabaseLocation.for_file(path)
        else:
            candidate = start_dir.expanduser().absolute() / path
            if candidate.is_file():
                return DatabaseLocation.for_file(candidate)

            if self.project_root is not None:
                root = self.project_root.find_root(start_dir)
                if root is not None:
                    candidate = root / path
                    if candidate.is_file():
                        logger.debug("Using database from project root %s", root)
                        return DatabaseLocation.for_file(candidate)

        raise DatabaseNotFoundError(configured_path)
