"""Port interfaces for the narrowscope application layer.

These protocol interfaces define contracts for adapters.
The interaction and its services depend on these ports, never on concrete
implementations.
"""

__all__ = [
    "Buffer",
    "BufferPort",
    "CompiledPattern",
    "CompileMode",
    "DatabaseFinderPort",
    "DatabaseLocation",
    "DatabaseNotFoundError",
    "HighlightSpan",
    "Highlighter",
    "LaunchError",
    "PatternCompilerPort",
    "ProcessHandle",
    "ProcessPort",
    "ProjectRootPort",
    "UnsupportedSearchTypeError",
]

from narrowscope.app.ports.buffer import Buffer, BufferPort
from narrowscope.app.ports.database import (
    DatabaseFinderPort,
    DatabaseLocation,
    DatabaseNotFoundError,
    ProjectRootPort,
)
from narrowscope.app.ports.pattern import (
    CompiledPattern,
    CompileMode,
    Highlighter,
    HighlightSpan,
    PatternCompilerPort,
)
from narrowscope.app.ports.process import (
    LaunchError,
    ProcessHandle,
    ProcessPort,
    UnsupportedSearchTypeError,
)
