"""Search orchestrator owning the indexer subprocess of one interaction.

State machine::

    IDLE --submit--> LAUNCHING --spawned--> RUNNING --exit--> IDLE
                                  RUNNING --submit--> (kill) LAUNCHING
                 any --terminate--> TERMINATED

At most one subprocess is live at a time. Every session gets a generation
number; candidate events of any other generation than the current one are
dropped both when queued and when consumed, so output a killed process
produced after cancellation never reaches a consumer.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum

from narrowscope.app.ports.pattern import Highlighter
from narrowscope.app.ports.process import LaunchError, ProcessHandle, ProcessPort
from narrowscope.query.command import SearchInvocation
from narrowscope.query.lines import LineAccumulator
from narrowscope.query.results import Candidate, parse_line

logger = logging.getLogger(__name__)


class OrchestratorState(str, Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass(frozen=True, slots=True)
class CandidateEvent:
    generation: int
    candidate: Candidate


@dataclass(frozen=True, slots=True)
class SessionFinished:
    """The indexer exited on its own."""

    generation: int
    returncode: int
    stderr: str = ""


@dataclass(frozen=True, slots=True)
class SessionFailed:
    """The session ended without the indexer finishing normally."""

    generation: int
    reason: str


@dataclass(frozen=True, slots=True)
class SessionCancelled:
    """The session was superseded by new input or terminated."""

    generation: int


SearchEvent = CandidateEvent | SessionFinished | SessionFailed | SessionCancelled
TerminalEvent = SessionFinished | SessionFailed | SessionCancelled


@dataclass
class SearchSession:
    """One live indexer process and its partial output."""

    generation: int
    invocation: SearchInvocation
    handle: ProcessHandle
    highlighter: Highlighter | None = None
    lines: LineAccumulator = field(default_factory=LineAccumulator)
    reader: asyncio.Task[None] | None = None


class SearchOrchestrator:
    """Start, stream, cancel and terminate indexer searches."""

    def __init__(
        self,
        runner: ProcessPort,
        *,
        max_columns: int = 300,
        io_timeout: float | None = None,
    ) -> None:
        self._runner = runner
        self._max_columns = max_columns
        self._io_timeout = io_timeout
        self._queue: asyncio.Queue[SearchEvent | None] = asyncio.Queue()
        self._session: SearchSession | None = None
        self._generation = 0
        # Highest generation whose terminal event has been consumed.
        self._ended = 0
        self._reapers: set[asyncio.Task[int]] = set()
        self.state = OrchestratorState.IDLE
        self.last_outcome: TerminalEvent | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def session(self) -> SearchSession | None:
        return self._session

    async def submit(
        self,
        invocation: SearchInvocation | None,
        *,
        highlighter: Highlighter | None = None,
    ) -> int | None:
        """Replace the running search with ``invocation``.

        A None invocation only cancels the running search (no usable
        pattern). Returns the new session's generation, or None when nothing
        was launched.

        Raises:
            LaunchError: If the indexer could not be started
        """
        if self.state is OrchestratorState.TERMINATED:
            raise RuntimeError("Search orchestrator has been terminated")

        self._cancel_current()
        self._generation += 1
        generation = self._generation

        if invocation is None:
            self.state = OrchestratorState.IDLE
            return None

        self.state = OrchestratorState.LAUNCHING
        try:
            handle = await self._runner.spawn(invocation)
        except LaunchError as exc:
            if generation != self._generation:
                logger.debug("Ignoring launch failure of superseded search: %s", exc.reason)
                return None
            self.state = OrchestratorState.IDLE
            self.last_outcome = SessionFailed(generation, exc.reason)
            raise

        if generation != self._generation or self.state is OrchestratorState.TERMINATED:
            # Input changed while the process was starting.
            handle.kill()
            self._reap(handle)
            return None

        session = SearchSession(
            generation=generation,
            invocation=invocation,
            handle=handle,
            highlighter=highlighter,
        )
        self._session = session
        self.state = OrchestratorState.RUNNING
        session.reader = asyncio.ensure_future(self._pump(session))
        logger.debug("Search %d running (pid %s)", generation, handle.pid)
        return generation

    async def terminate(self) -> None:
        """Kill any live search and release its resources."""
        if self.state is OrchestratorState.TERMINATED:
            return

        self._cancel_current()
        self._generation += 1
        self.state = OrchestratorState.TERMINATED
        self._queue.put_nowait(None)
        if self._reapers:
            await asyncio.gather(*self._reapers, return_exceptions=True)

    async def events(self) -> AsyncIterator[SearchEvent]:
        """Yield events until the orchestrator is terminated.

        Candidate events are only yielded for the current generation;
        terminal events carry their generation and are always yielded.
        """
        while True:
            event = await self._queue.get()
            if event is None:
                return
            if isinstance(event, CandidateEvent):
                if event.generation != self._generation:
                    continue
            else:
                self._ended = max(self._ended, event.generation)
            yield event

    async def stream(self, generation: int) -> AsyncIterator[Candidate]:
        """Yield the candidates of ``generation`` until its session ends.

        Returns at once for a superseded generation or one whose end was
        already consumed.
        """
        if generation != self._generation or generation <= self._ended:
            return

        async for event in self.events():
            if event.generation != generation:
                if event.generation > generation:
                    return
                continue
            if isinstance(event, CandidateEvent):
                yield event.candidate
            else:
                return

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _put(self, event: SearchEvent) -> None:
        if isinstance(event, CandidateEvent) and event.generation != self._generation:
            return
        self._queue.put_nowait(event)

    def _finish(self, session: SearchSession, event: TerminalEvent) -> None:
        if self._session is session:
            self._session = None
            if self.state is OrchestratorState.RUNNING:
                self.state = OrchestratorState.IDLE
        self.last_outcome = event
        self._put(event)

    def _cancel_current(self) -> None:
        session = self._session
        if session is None:
            return

        self._session = None
        session.handle.kill()
        session.lines.discard()
        if session.reader is not None and not session.reader.done():
            session.reader.cancel()
        self._reap(session.handle)
        self.last_outcome = SessionCancelled(session.generation)
        self._put(self.last_outcome)
        logger.debug("Search %d cancelled", session.generation)

    def _reap(self, handle: ProcessHandle) -> None:
        task = asyncio.ensure_future(handle.wait())
        self._reapers.add(task)
        task.add_done_callback(self._reapers.discard)

    def _emit(self, session: SearchSession, lines: list[str]) -> None:
        for line in lines:
            if session.generation != self._generation:
                return
            candidate = parse_line(
                line,
                max_columns=self._max_columns,
                highlighter=session.highlighter,
            )
            if candidate is not None:
                self._put(CandidateEvent(session.generation, candidate))

    async def _read(self, session: SearchSession) -> bytes:
        if self._io_timeout is None:
            return await session.handle.read()
        return await asyncio.wait_for(session.handle.read(), self._io_timeout)

    async def _pump(self, session: SearchSession) -> None:
        try:
            while chunk := await self._read(session):
                self._emit(session, session.lines.feed(chunk))
            self._emit(session, session.lines.flush())
            returncode = await session.handle.wait()
        except TimeoutError:
            reason = f"Search timed out after {self._io_timeout}s without output"
            logger.warning("%s: %s", reason, session.invocation.argv)
            session.handle.kill()
            self._reap(session.handle)
            self._finish(session, SessionFailed(session.generation, reason))
            return
        except OSError as exc:
            logger.warning("Reading search output failed: %s", exc)
            session.handle.kill()
            self._reap(session.handle)
            self._finish(session, SessionFailed(session.generation, str(exc)))
            return

        if returncode != 0:
            logger.debug("Search %d exited with %d", session.generation, returncode)
        self._finish(
            session,
            SessionFinished(session.generation, returncode, session.handle.stderr_text()),
        )
