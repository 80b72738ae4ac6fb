"""Process port interface for launching the indexer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:  # pragma: no cover
    from narrowscope.query.command import SearchInvocation


class LaunchError(RuntimeError):
    """Raised when the indexer subprocess cannot be started."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class UnsupportedSearchTypeError(LaunchError):
    """Raised when the installed indexer cannot perform a search type."""


class ProcessHandle(Protocol):
    """A running indexer subprocess."""

    @property
    def pid(self) -> int | None:
        """Operating system process id, if any."""
        ...

    async def read(self, size: int = -1) -> bytes:
        """Read the next chunk of stdout; ``b""`` at end of stream."""
        ...

    def kill(self) -> None:
        """Send the kill signal immediately; no-op once the process exited."""
        ...

    async def wait(self) -> int:
        """Wait for the process to exit and return its exit code."""
        ...

    def stderr_text(self) -> str:
        """Return the captured (possibly truncated) stderr output."""
        ...


class ProcessPort(Protocol):
    """Port interface for spawning indexer subprocesses.

    Adapter: AsyncSubprocessAdapter (asyncio subprocesses).

    Side effects: starts external processes (offline).
    """

    async def spawn(self, invocation: SearchInvocation) -> ProcessHandle:
        """Start ``invocation`` with stdout piped.

        Raises:
            LaunchError: If the program cannot be started
        """
        ...
