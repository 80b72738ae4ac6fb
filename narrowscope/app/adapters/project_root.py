"""Project root discovery by walking up to a marker file or directory."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from narrowscope.app.ports.database import ProjectRootPort
from narrowscope.config import DEFAULT_PROJECT_MARKERS


class MarkerProjectRoot(ProjectRootPort):
    """Finds the nearest ancestor containing a version-control or project marker."""

    def __init__(self, markers: Iterable[str] = DEFAULT_PROJECT_MARKERS) -> None:
        self.markers = tuple(markers)

    def find_root(self, start: Path) -> Path | None:
        current = start.expanduser().absolute()
        if current.is_file():
            current = current.parent

        for directory in (current, *current.parents):
            if any((directory / marker).exists() for marker in self.markers):
                return directory
        return None
