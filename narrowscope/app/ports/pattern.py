"""Pattern compiler port interface."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, Protocol

CompileMode = Literal["basic", "extended"]

HighlightSpan = tuple[int, int]
"""Half-open ``(start, end)`` character range to emphasise."""

Highlighter = Callable[[str], list[HighlightSpan]]


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """Matcher passed to the indexer plus a highlighter for display text."""

    matcher: str
    highlighter: Highlighter


class PatternCompilerPort(Protocol):
    """Port interface for turning typed text into an indexer pattern.

    Adapter: RegexpPatternCompiler (whitespace-separated words).
    """

    def compile(
        self,
        text: str,
        mode: CompileMode,
        case_insensitive: bool,
    ) -> CompiledPattern | None:
        """Compile ``text`` for the indexer.

        Args:
            text: Pattern part of the user input
            mode: Regular expression dialect the indexer expects
            case_insensitive: Whether matching ignores case

        Returns:
            CompiledPattern, or None when the text yields no usable pattern
        """
        ...
