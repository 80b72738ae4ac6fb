"""Parse cscope line-mode output into candidates, and group them."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, computed_field

from narrowscope.app.ports.pattern import Highlighter, HighlightSpan

logger = logging.getLogger(__name__)


class Candidate(BaseModel):
    """A single cscope match."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(..., description="File path as reported by cscope")
    line: int = Field(..., ge=1, description="1-based line number")
    function: str = Field(..., description="Enclosing function or <global>")
    content: str = Field("", description="Matched source line, possibly truncated")
    highlight_spans: tuple[HighlightSpan, ...] = Field(
        default=(), description="Emphasis ranges within content"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display(self) -> str:
        """Single-line rendering; starts with the group key and a colon."""
        return f"{self.file}:{self.line}:{self.function}: {self.content}"


def _highlight(content: str, highlighter: Highlighter | None) -> tuple[HighlightSpan, ...]:
    if highlighter is None or not content:
        return ()
    try:
        spans = highlighter(content)
        return tuple(
            (start, end) for start, end in spans if 0 <= start < end <= len(content)
        )
    except Exception as exc:  # noqa: BLE001
        logger.debug("Highlighting failed for %r: %s", content, exc)
        return ()


def parse_line(
    raw_line: str,
    *,
    max_columns: int = 300,
    highlighter: Highlighter | None = None,
) -> Candidate | None:
    """Parse one output line of the form ``FILE FUNCTION LINE CONTENT``.

    Args:
        raw_line: Line without its terminator
        max_columns: Content is cut to this many characters
        highlighter: Optional span producer applied to the shown content

    Returns:
        Candidate, or None for lines that are not search results

    Examples:
        >>> parse_line("src/main.c main 42   int x = foo();").content
        'int x = foo();'
        >>> parse_line("cscope: no source files found") is None
        True
    """
    fields = raw_line.split(None, 3)
    if len(fields) < 3:
        logger.debug("Skipping unparseable line: %r", raw_line)
        return None

    file, function, number = fields[:3]
    if not (number.isascii() and number.isdigit()) or int(number) < 1:
        logger.debug("Skipping line without line number: %r", raw_line)
        return None

    content = fields[3].rstrip() if len(fields) == 4 else ""
    if len(content) > max_columns:
        content = content[:max_columns]

    return Candidate(
        file=file,
        line=int(number),
        function=function,
        content=content,
        highlight_spans=_highlight(content, highlighter),
    )


def group_key(candidate: Candidate) -> str:
    """Return the display group of ``candidate``: its file."""
    return candidate.file


def group_title(candidate: Candidate, transform: bool = False) -> str:
    """Group callback for completion UIs.

    With ``transform`` False returns the group key; otherwise returns the
    display string with exactly the ``"<group key>:"`` prefix removed.
    """
    key = group_key(candidate)
    if not transform:
        return key
    return candidate.display[len(key) + 1 :]
