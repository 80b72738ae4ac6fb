"""Map candidates to locations and manage temporarily opened preview buffers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from narrowscope.app.ports.buffer import Buffer, BufferPort
from narrowscope.query.results import Candidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PositionMarker:
    """A jump target.

    cscope strips leading indentation from the lines it reports, so the
    column cannot be recovered and is always 0.
    """

    file: Path
    line: int
    column: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


class PositionResolver:
    """Resolve candidates to positions for preview and for the final jump.

    Previewing opens files through a temporary path: the buffer is tracked
    and closed once another file is previewed or the interaction ends.
    Buffers that were already open are used as is and never closed. A
    committed buffer is promoted out of tracking.
    """

    def __init__(self, buffers: BufferPort, directory: Path) -> None:
        self._buffers = buffers
        self._directory = directory
        self._temporary: Buffer | None = None

    @property
    def temporary_buffer(self) -> Buffer | None:
        return self._temporary

    def path_for(self, candidate: Candidate) -> Path:
        """Return the absolute path of ``candidate``'s file."""
        path = Path(candidate.file)
        if not path.is_absolute():
            path = self._directory / path
        return path

    def resolve(self, candidate: Candidate, *, previewing: bool) -> PositionMarker:
        path = self.path_for(candidate)
        if previewing:
            self._open_temporary(path)
        else:
            self._open_permanent(path)
        return PositionMarker(file=path, line=candidate.line)

    def close_preview(self) -> None:
        """Close the buffer opened for preview, if it is still tracked."""
        buffer = self._temporary
        if buffer is None:
            return
        self._temporary = None
        logger.debug("Closing preview buffer %s", buffer.path)
        self._buffers.close(buffer)

    def _is_temporary(self, path: Path) -> bool:
        return self._temporary is not None and self._temporary.path == path.absolute()

    def _open_temporary(self, path: Path) -> Buffer:
        if self._is_temporary(path):
            assert self._temporary is not None
            return self._temporary

        self.close_preview()
        existing = self._buffers.find(path)
        if existing is not None:
            return existing

        self._temporary = self._buffers.open(path)
        return self._temporary

    def _open_permanent(self, path: Path) -> Buffer:
        if self._is_temporary(path):
            buffer = self._temporary
            assert buffer is not None
            self._temporary = None
            return buffer

        self.close_preview()
        return self._buffers.open(path)
