"""Asyncio subprocess adapter for running the indexer."""

from __future__ import annotations

import asyncio
import logging
import re

from narrowscope.app.ports.process import LaunchError, ProcessHandle, ProcessPort
from narrowscope.query.command import SearchInvocation

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"version\s+(\d+(?:\.\d+)*)", re.IGNORECASE)

READ_CHUNK_SIZE = 65536


class AsyncSubprocessHandle(ProcessHandle):
    """Wraps an ``asyncio.subprocess.Process`` with bounded stderr capture."""

    def __init__(self, process: asyncio.subprocess.Process, *, stderr_limit: int) -> None:
        self._process = process
        self._stderr_limit = stderr_limit
        self._stderr = bytearray()
        self._stderr_task: asyncio.Task[None] | None = None
        if process.stderr is not None:
            self._stderr_task = asyncio.ensure_future(self._drain_stderr(process.stderr))

    @property
    def pid(self) -> int | None:
        return self._process.pid

    async def _drain_stderr(self, stream: asyncio.StreamReader) -> None:
        while chunk := await stream.read(READ_CHUNK_SIZE):
            room = self._stderr_limit - len(self._stderr)
            if room > 0:
                self._stderr.extend(chunk[:room])

    async def read(self, size: int = -1) -> bytes:
        assert self._process.stdout is not None
        return await self._process.stdout.read(READ_CHUNK_SIZE if size < 0 else size)

    def kill(self) -> None:
        if self._process.returncode is not None:
            return
        try:
            self._process.kill()
        except ProcessLookupError:
            pass

    async def wait(self) -> int:
        returncode = await self._process.wait()
        if self._stderr_task is not None:
            await self._stderr_task
        return returncode

    def stderr_text(self) -> str:
        return self._stderr.decode("utf-8", errors="replace").strip()


class AsyncSubprocessAdapter(ProcessPort):
    """Spawns indexer processes on the running event loop."""

    def __init__(self, *, stderr_limit: int = 4096) -> None:
        self.stderr_limit = stderr_limit

    async def spawn(self, invocation: SearchInvocation) -> AsyncSubprocessHandle:
        logger.debug("Launching %s in %s", invocation.argv, invocation.working_dir)
        try:
            process = await asyncio.create_subprocess_exec(
                *invocation.argv,
                cwd=invocation.working_dir,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            if not invocation.working_dir.is_dir():
                reason = f"Working directory no longer exists: {invocation.working_dir}"
            else:
                reason = f"Program not found: {invocation.program}"
            raise LaunchError(reason) from exc
        except PermissionError as exc:
            raise LaunchError(f"Permission denied running {invocation.program}") from exc
        except OSError as exc:
            raise LaunchError(f"Failed to start {invocation.program}: {exc}") from exc

        return AsyncSubprocessHandle(process, stderr_limit=self.stderr_limit)

    async def probe_version(self, program: str) -> tuple[int, ...] | None:
        """Return the version reported by ``program -V``, or None if unknown."""
        try:
            process = await asyncio.create_subprocess_exec(
                program,
                "-V",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            logger.debug("Version probe of %s failed: %s", program, exc)
            return None

        try:
            output, _ = await asyncio.wait_for(process.communicate(), timeout=5)
        except TimeoutError:
            process.kill()
            await process.wait()
            return None

        match = _VERSION_RE.search(output.decode("utf-8", errors="replace"))
        if match is None:
            return None
        return tuple(int(part) for part in match.group(1).split("."))
