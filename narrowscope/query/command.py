"""Build cscope line-mode invocations from split queries."""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from narrowscope.app.ports.database import DatabaseLocation
from narrowscope.app.ports.pattern import CompiledPattern, CompileMode, PatternCompilerPort
from narrowscope.app.ports.process import UnsupportedSearchTypeError
from narrowscope.query.splitter import SplitQuery, is_case_insensitive


class SearchType(IntEnum):
    """cscope query fields usable with ``-L``."""

    SYMBOL = 0
    DEFINITION = 1
    CALLED_BY = 2
    CALLING = 3
    TEXT = 4
    EGREP = 6
    FILE = 7
    INCLUDING = 8
    ASSIGNMENT = 9

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def compile_mode(self) -> CompileMode:
        return "extended" if self is SearchType.EGREP else "basic"

    @property
    def min_version(self) -> tuple[int, ...] | None:
        """Oldest cscope release implementing this field, when not all do."""
        return (15, 8) if self is SearchType.ASSIGNMENT else None

    @classmethod
    def parse(cls, value: str) -> SearchType:
        """Accept a code (``"1"``) or a name (``"definition"``, ``"called-by"``)."""
        token = value.strip().lower().replace("-", "_")
        if token.isdigit():
            return cls(int(token))
        try:
            return cls[token.upper()]
        except KeyError:
            raise ValueError(f"Unknown search type: {value}") from None


_LABELS = {
    SearchType.SYMBOL: "C symbol",
    SearchType.DEFINITION: "global definition",
    SearchType.CALLED_BY: "functions called by",
    SearchType.CALLING: "functions calling",
    SearchType.TEXT: "text string",
    SearchType.EGREP: "egrep pattern",
    SearchType.FILE: "file",
    SearchType.INCLUDING: "files including",
    SearchType.ASSIGNMENT: "assignments to",
}


class SearchInvocation(BaseModel):
    """A concrete indexer command line."""

    model_config = ConfigDict(frozen=True)

    program: str = Field(..., description="Executable name or path")
    args: tuple[str, ...] = Field(default=(), description="Arguments after the program")
    working_dir: Path = Field(..., description="Directory the process runs in")

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


def check_supported(search_type: SearchType, version: tuple[int, ...] | None) -> None:
    """Reject ``search_type`` when the indexer ``version`` is known to lack it.

    Raises:
        UnsupportedSearchTypeError: If ``version`` predates the search type
    """
    minimum = search_type.min_version
    if minimum is None or version is None or version >= minimum:
        return
    raise UnsupportedSearchTypeError(
        f"Searching for {search_type.label} needs cscope "
        f"{'.'.join(map(str, minimum))} or newer (found {'.'.join(map(str, version))})"
    )


def build_invocation(
    search_type: SearchType,
    query: SplitQuery,
    location: DatabaseLocation,
    *,
    program: str,
    configured_args: Sequence[str],
    compiler: PatternCompilerPort,
) -> tuple[SearchInvocation, CompiledPattern] | None:
    """Return the invocation for ``query`` and its compiled pattern.

    The command line has the shape
    ``program [configured_args] -f DB -L<code><matcher> [extra_args]``.

    Returns:
        ``(invocation, compiled)``, or None when the compiler reports no
        usable pattern and nothing must be launched
    """
    case_insensitive = is_case_insensitive(configured_args) or is_case_insensitive(
        query.extra_args
    )
    compiled = compiler.compile(query.pattern, search_type.compile_mode, case_insensitive)
    if compiled is None or not compiled.matcher:
        return None

    args = (
        *configured_args,
        "-f",
        str(location.path),
        f"-L{int(search_type)}{compiled.matcher}",
        *query.extra_args,
    )
    invocation = SearchInvocation(
        program=program,
        args=args,
        working_dir=location.directory,
    )
    return invocation, compiled
