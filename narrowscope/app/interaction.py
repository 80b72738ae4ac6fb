"""Per-interaction context tying the query pipeline to a host UI."""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from narrowscope.app.orchestrator import SearchOrchestrator
from narrowscope.app.ports.buffer import BufferPort
from narrowscope.app.ports.database import DatabaseFinderPort, DatabaseLocation
from narrowscope.app.ports.pattern import PatternCompilerPort
from narrowscope.app.ports.process import LaunchError, ProcessPort
from narrowscope.app.preview import PositionMarker, PositionResolver
from narrowscope.config import Settings
from narrowscope.query.command import SearchType, build_invocation, check_supported
from narrowscope.query.results import Candidate, group_title
from narrowscope.query.splitter import SplitQuery, initial_input, split

logger = logging.getLogger(__name__)

VersionProbe = Callable[[str], Awaitable[tuple[int, ...] | None]]


@dataclass(frozen=True, slots=True)
class UpdateStatus:
    """Outcome of feeding new input to an interaction."""

    query: SplitQuery
    generation: int | None = None
    error: str | None = None

    @property
    def launched(self) -> bool:
        return self.generation is not None

    @property
    def no_match(self) -> bool:
        return self.generation is None and self.error is None


def _filter_regex(term: str) -> re.Pattern[str]:
    try:
        return re.compile(term, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(term), re.IGNORECASE)


class Interaction:
    """One live search session as driven by a user.

    Owns the database location, the search orchestrator, the preview state
    and the table mapping display strings back to candidates. Nothing is
    shared between interactions.

    Example:
        >>> async with container.new_interaction(SearchType.SYMBOL) as interaction:
        ...     await interaction.update("#main")
        ...     async for candidate in interaction.candidates():
        ...         print(candidate.display)
    """

    def __init__(
        self,
        settings: Settings,
        *,
        search_type: SearchType,
        finder: DatabaseFinderPort,
        compiler: PatternCompilerPort,
        runner: ProcessPort,
        buffers: BufferPort,
        start_dir: Path | None = None,
        version_probe: VersionProbe | None = None,
    ) -> None:
        self.settings = settings
        self.search_type = search_type
        self._finder = finder
        self._compiler = compiler
        self._buffers = buffers
        self._start_dir = start_dir or Path.cwd()
        self._version_probe = version_probe
        self._configured_args = settings.get_args()
        self._orchestrator = SearchOrchestrator(
            runner,
            max_columns=settings.max_columns,
            io_timeout=settings.io_timeout_seconds,
        )
        self._location: DatabaseLocation | None = None
        self._resolver: PositionResolver | None = None
        self._version: tuple[int, ...] | None = None
        self._updates = 0
        self._status: UpdateStatus | None = None
        self._filters: list[re.Pattern[str]] = []
        self._lookup: dict[str, Candidate] = {}
        self._results: list[Candidate] = []
        self._complete = False
        self.committed: PositionMarker | None = None
        self.closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> DatabaseLocation:
        """Resolve the database; nothing is launched when this fails.

        Raises:
            DatabaseNotFoundError: If the configured database cannot be found
        """
        self._location = self._finder.resolve(self.settings.database, self._start_dir)
        self._resolver = PositionResolver(self._buffers, self._location.directory)
        if self.search_type.min_version is not None and self._version_probe is not None:
            self._version = await self._version_probe(self.settings.program)
        logger.debug("Using database %s", self._location.path)
        return self._location

    async def commit(self, candidate: Candidate) -> PositionMarker:
        """Stop searching and return the final jump location for ``candidate``."""
        resolver = self._require_resolver()
        await self._orchestrator.terminate()
        marker = resolver.resolve(candidate, previewing=False)
        resolver.close_preview()
        self.committed = marker
        self.closed = True
        return marker

    async def abort(self) -> None:
        """Stop searching and close every buffer opened for preview."""
        await self._orchestrator.terminate()
        if self._resolver is not None:
            self._resolver.close_preview()
        self.closed = True

    async def __aenter__(self) -> Interaction:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self.closed:
            await self.abort()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    @property
    def location(self) -> DatabaseLocation | None:
        return self._location

    @property
    def orchestrator(self) -> SearchOrchestrator:
        return self._orchestrator

    @property
    def status(self) -> UpdateStatus | None:
        return self._status

    def initial_query(self, text: str | None) -> tuple[str, list[str]]:
        """Return ``(initial_input, future_history)`` for text at point.

        With ``prefill_input`` the text is pre-populated; otherwise it is
        offered as forward history and only the split separator is typed.
        """
        style = self.settings.split_style
        if not text:
            return initial_input("", style), []

        if self.settings.prefill_input:
            return initial_input(text, style), []

        return initial_input("", style), [initial_input(text, style)]

    async def update(self, raw: str) -> UpdateStatus:
        """Feed the current input, superseding any running search.

        When a later call overtakes this one while its search is starting,
        the returned status is not stored: :attr:`status` always describes
        the most recent input.
        """
        location = self._require_location()
        self._updates += 1
        token = self._updates
        query = split(raw, self.settings.split_style)

        try:
            check_supported(self.search_type, self._version)
        except LaunchError as exc:
            await self._orchestrator.submit(None)
            return self._set_status(token, UpdateStatus(query, error=exc.reason))

        built = build_invocation(
            self.search_type,
            query,
            location,
            program=self.settings.program,
            configured_args=self._configured_args,
            compiler=self._compiler,
        )
        if built is None:
            await self._orchestrator.submit(None)
            return self._set_status(token, UpdateStatus(query))

        invocation, compiled = built
        try:
            generation = await self._orchestrator.submit(
                invocation, highlighter=compiled.highlighter
            )
        except LaunchError as exc:
            logger.warning("Search could not be started: %s", exc.reason)
            return self._set_status(token, UpdateStatus(query, error=exc.reason))
        return self._set_status(token, UpdateStatus(query, generation=generation))

    def _set_status(self, token: int, status: UpdateStatus) -> UpdateStatus:
        if token != self._updates:
            logger.debug("Dropping status of superseded input %r", status.query.raw)
            return status

        self._status = status
        self._filters = [_filter_regex(term) for term in status.query.filter_terms]
        self._lookup.clear()
        self._results = []
        self._complete = False
        return status

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    async def candidates(self) -> AsyncIterator[Candidate]:
        """Yield candidates of the current search that pass the filter terms.

        Stops when the search ends or is superseded by new input. Candidates
        already received are yielded again first, so asking twice shows the
        same results until the input changes.
        """
        status = self._status
        if status is None or status.generation is None:
            return

        for candidate in list(self._results):
            yield candidate
        if self._complete:
            return

        async for candidate in self._orchestrator.stream(status.generation):
            if not all(regex.search(candidate.display) for regex in self._filters):
                continue
            self._lookup[candidate.display] = candidate
            self._results.append(candidate)
            yield candidate

        if self._status is status:
            self._complete = True

    def lookup(self, display: str) -> Candidate | None:
        """Return the candidate rendered as ``display`` in the current search."""
        return self._lookup.get(display)

    def group(self, display: str, transform: bool = False) -> str | None:
        """Group callback on display strings; see :func:`group_title`."""
        candidate = self.lookup(display)
        if candidate is None:
            return None
        return group_title(candidate, transform)

    def preview(self, candidate: Candidate) -> PositionMarker:
        """Open ``candidate`` temporarily and return its location."""
        return self._require_resolver().resolve(candidate, previewing=True)

    def close_preview(self) -> None:
        if self._resolver is not None:
            self._resolver.close_preview()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_location(self) -> DatabaseLocation:
        if self._location is None:
            raise RuntimeError("Interaction not started; call start() first")
        if self.closed:
            raise RuntimeError("Interaction already closed")
        return self._location

    def _require_resolver(self) -> PositionResolver:
        self._require_location()
        assert self._resolver is not None
        return self._resolver
