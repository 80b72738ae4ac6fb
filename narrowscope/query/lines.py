"""Incremental splitting of subprocess output into lines."""

from __future__ import annotations

import codecs


class LineAccumulator:
    """Collects output chunks and releases complete lines.

    Chunks may end in the middle of a line or of a multi-byte character;
    the incomplete tail is kept until more data arrives or :meth:`flush`.

    Example:
        >>> acc = LineAccumulator()
        >>> acc.feed(b"a.c main 1 x\\nb.c ma")
        ['a.c main 1 x']
        >>> acc.feed(b"in 2 y\\n")
        ['b.c main 2 y']
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        # Pieces of the unterminated last line, joined once it completes.
        self._pending: list[str] = []

    def feed(self, chunk: bytes) -> list[str]:
        """Add ``chunk`` and return the lines it completed."""
        text = self._decoder.decode(chunk)
        if "\n" not in text:
            if text:
                self._pending.append(text)
            return []

        head, *complete, tail = text.split("\n")
        first = "".join(self._pending) + head
        self._pending = [tail] if tail else []
        return [line.removesuffix("\r") for line in (first, *complete)]

    def flush(self) -> list[str]:
        """Return the unterminated last line, if any, at end of stream."""
        tail = "".join(self._pending) + self._decoder.decode(b"", final=True)
        self._pending = []
        tail = tail.removesuffix("\r")
        return [tail] if tail else []

    def discard(self) -> None:
        """Drop buffered data without emitting it."""
        self._decoder.reset()
        self._pending = []
