"""Concrete adapters wiring application ports to built-in implementations."""

from __future__ import annotations

from .database_finder import PriorityDatabaseFinder
from .file_buffers import FileBufferAdapter
from .project_root import MarkerProjectRoot
from .regexp_compiler import RegexpPatternCompiler
from .subprocess_runner import AsyncSubprocessAdapter, AsyncSubprocessHandle

__all__ = [
    "AsyncSubprocessAdapter",
    "AsyncSubprocessHandle",
    "FileBufferAdapter",
    "MarkerProjectRoot",
    "PriorityDatabaseFinder",
    "RegexpPatternCompiler",
]
