"""Tests for the asyncio subprocess adapter against a scripted cscope."""

from __future__ import annotations

from pathlib import Path

import pytest

from narrowscope.app.adapters import AsyncSubprocessAdapter
from narrowscope.app.orchestrator import SearchOrchestrator, SessionFinished
from narrowscope.app.ports import LaunchError
from narrowscope.query.command import SearchInvocation


def _invocation(program: Path | str, working_dir: Path) -> SearchInvocation:
    return SearchInvocation(
        program=str(program),
        args=("-f", str(working_dir / "cscope.out"), "-L0foo"),
        working_dir=working_dir,
    )


@pytest.mark.asyncio
async def test_spawn_runs_program_and_streams_output(fake_cscope, project_dir):
    handle = await AsyncSubprocessAdapter().spawn(_invocation(fake_cscope, project_dir))

    output = b""
    while chunk := await handle.read():
        output += chunk

    assert await handle.wait() == 0
    assert output.decode().splitlines()[0] == "src/main.c main 5 int x = foo();"
    recorded = (fake_cscope.parent / "last_args").read_text().splitlines()
    assert recorded == ["-f", str(project_dir / "cscope.out"), "-L0foo"]


@pytest.mark.asyncio
async def test_orchestrated_search_with_real_process(fake_cscope, project_dir):
    orchestrator = SearchOrchestrator(AsyncSubprocessAdapter())

    generation = await orchestrator.submit(_invocation(fake_cscope, project_dir))
    candidates = [c async for c in orchestrator.stream(generation)]

    assert [(c.file, c.line) for c in candidates] == [
        ("src/main.c", 5),
        ("src/main.c", 6),
        ("src/helper.c", 1),
    ]
    assert isinstance(orchestrator.last_outcome, SessionFinished)
    await orchestrator.terminate()


@pytest.mark.asyncio
async def test_missing_program_raises_launch_error(project_dir):
    with pytest.raises(LaunchError, match="Program not found"):
        await AsyncSubprocessAdapter().spawn(
            _invocation(project_dir / "no-such-cscope", project_dir)
        )


@pytest.mark.asyncio
async def test_missing_working_directory_raises_launch_error(fake_cscope, temp_dir):
    with pytest.raises(LaunchError, match="Working directory"):
        await AsyncSubprocessAdapter().spawn(_invocation(fake_cscope, temp_dir / "gone"))


@pytest.mark.asyncio
async def test_kill_after_exit_is_harmless(fake_cscope, project_dir):
    handle = await AsyncSubprocessAdapter().spawn(_invocation(fake_cscope, project_dir))
    while await handle.read():
        pass
    await handle.wait()

    handle.kill()


@pytest.mark.asyncio
async def test_probe_version(fake_cscope, project_dir):
    adapter = AsyncSubprocessAdapter()

    assert await adapter.probe_version(str(fake_cscope)) == (15, 9)
    assert await adapter.probe_version(str(project_dir / "no-such-cscope")) is None
