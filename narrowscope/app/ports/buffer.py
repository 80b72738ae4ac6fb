"""Buffer port interface for opening files to preview or jump to."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass(eq=False)
class Buffer:
    """An open file as seen by the host."""

    path: Path
    lines: list[str] = field(default_factory=list)

    def excerpt(self, line: int, context: int = 2) -> list[tuple[int, str]]:
        """Return ``(number, text)`` pairs around 1-based ``line``."""
        if not self.lines:
            return []
        start = max(1, line - context)
        end = min(len(self.lines), line + context)
        return [(number, self.lines[number - 1]) for number in range(start, end + 1)]


class BufferPort(Protocol):
    """Port interface for the host's file buffers.

    Adapter: FileBufferAdapter (in-memory registry of text files).
    """

    def find(self, path: Path) -> Buffer | None:
        """Return the already open buffer visiting ``path``, if any."""
        ...

    def open(self, path: Path) -> Buffer:
        """Open ``path``, returning the existing buffer when already open."""
        ...

    def close(self, buffer: Buffer) -> None:
        """Close ``buffer``."""
        ...
