"""Application bootstrap wiring ports, adapters, and interactions."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from narrowscope.app.adapters import (
    AsyncSubprocessAdapter,
    FileBufferAdapter,
    MarkerProjectRoot,
    PriorityDatabaseFinder,
    RegexpPatternCompiler,
)
from narrowscope.app.interaction import Interaction
from narrowscope.app.ports import (
    BufferPort,
    DatabaseFinderPort,
    PatternCompilerPort,
    ProcessPort,
)
from narrowscope.config import Settings, get_settings
from narrowscope.query.command import SearchType


@dataclass(slots=True)
class ApplicationContainer:
    """Aggregates wired adapters for the CLI layer."""

    settings: Settings
    finder: DatabaseFinderPort
    compiler: PatternCompilerPort
    runner: ProcessPort
    buffers: BufferPort

    def new_interaction(
        self,
        search_type: SearchType,
        *,
        start_dir: Path | None = None,
    ) -> Interaction:
        """Create an interaction with its own orchestrator and preview state."""
        probe = getattr(self.runner, "probe_version", None)
        return Interaction(
            self.settings,
            search_type=search_type,
            finder=self.finder,
            compiler=self.compiler,
            runner=self.runner,
            buffers=self.buffers,
            start_dir=start_dir,
            version_probe=probe,
        )


def bootstrap_application(settings: Settings | None = None) -> ApplicationContainer:
    """Wire the default adapters according to ``settings``."""

    active_settings = settings or get_settings()

    project_root = (
        MarkerProjectRoot(active_settings.project_markers)
        if active_settings.project_root_discovery
        else None
    )

    return ApplicationContainer(
        settings=active_settings,
        finder=PriorityDatabaseFinder(project_root),
        compiler=RegexpPatternCompiler(),
        runner=AsyncSubprocessAdapter(stderr_limit=active_settings.stderr_limit),
        buffers=FileBufferAdapter(),
    )
