"""In-memory buffer registry backed by text files."""

from __future__ import annotations

import logging
from pathlib import Path

from narrowscope.app.ports.buffer import Buffer, BufferPort

logger = logging.getLogger(__name__)


class FileBufferAdapter(BufferPort):
    """Keeps one buffer per file path, loaded on first open."""

    def __init__(self) -> None:
        self._buffers: dict[Path, Buffer] = {}

    def _key(self, path: Path) -> Path:
        return path.expanduser().absolute()

    def find(self, path: Path) -> Buffer | None:
        return self._buffers.get(self._key(path))

    def open(self, path: Path) -> Buffer:
        key = self._key(path)
        buffer = self._buffers.get(key)
        if buffer is not None:
            return buffer

        try:
            lines = key.read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError as exc:
            # Still hand out a buffer so the location can be reported.
            logger.warning("Cannot read %s: %s", key, exc)
            lines = []

        buffer = Buffer(path=key, lines=lines)
        self._buffers[key] = buffer
        return buffer

    def close(self, buffer: Buffer) -> None:
        self._buffers.pop(self._key(buffer.path), None)
