"""Pytest configuration and fixtures."""

import asyncio
import shutil
import stat
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from narrowscope.app.ports import Buffer, LaunchError
from narrowscope.config import Settings
from narrowscope.query.command import SearchInvocation

SAMPLE_SOURCE = """\
#include <stdio.h>

int main(void)
{
    int x = foo();
    printf("%d\\n", x);
    return 0;
}
"""

SAMPLE_HELPER = """\
int foo(void)
{
    return 42;
}
"""

FAKE_CSCOPE_OUTPUT = """\
src/main.c main 5 int x = foo();
src/main.c main 6 printf("%d\\n", x);
src/helper.c foo 1 int foo(void)
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    try:
        yield Path(tmpdir)
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a small C project with a (placeholder) cscope database."""
    project = temp_dir / "project"
    (project / ".git").mkdir(parents=True)
    (project / "src").mkdir()
    (project / "src" / "main.c").write_text(SAMPLE_SOURCE)
    (project / "src" / "helper.c").write_text(SAMPLE_HELPER)
    (project / "cscope.out").write_text("cscope 15 $dir -c 0000000000\n")
    return project


@pytest.fixture
def fake_cscope(temp_dir: Path) -> Path:
    """Executable standing in for cscope.

    Records its arguments next to itself, answers ``-V`` with a version and
    otherwise prints a fixed set of line-mode results.
    """
    script = temp_dir / "bin" / "cscope"
    script.parent.mkdir()
    script.write_text(
        "#!/bin/sh\n"
        'if [ "$1" = "-V" ]; then\n'
        '    echo "cscope: version 15.9" >&2\n'
        "    exit 0\n"
        "fi\n"
        'printf "%s\\n" "$@" > "$(dirname "$0")/last_args"\n'
        "cat <<'EOF'\n"
        f"{FAKE_CSCOPE_OUTPUT}"
        "EOF\n"
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def override_settings(project_dir: Path, fake_cscope: Path) -> Generator[Settings, None, None]:
    """Provide isolated narrowscope settings scoped to tests."""

    import narrowscope.config as config_module

    original_settings = getattr(config_module, "_settings", None)

    settings = config_module.Settings(
        program=str(fake_cscope),
        database=str(project_dir / "cscope.out"),
        _env_file=None,
    )

    config_module._settings = settings

    try:
        yield settings
    finally:
        config_module._settings = original_settings


class FakeHandle:
    """Scripted process: output is fed by the test, exit is explicit."""

    def __init__(self, invocation: SearchInvocation) -> None:
        self.invocation = invocation
        self.pid = None
        self.killed = False
        self.returncode: int | None = None
        self._chunks: asyncio.Queue[bytes] = asyncio.Queue()
        self._exited = asyncio.Event()

    def feed(self, data: bytes) -> None:
        self._chunks.put_nowait(data)

    def finish(self, returncode: int = 0) -> None:
        self.returncode = returncode
        self._chunks.put_nowait(b"")
        self._exited.set()

    async def read(self, size: int = -1) -> bytes:
        return await self._chunks.get()

    def kill(self) -> None:
        if self.returncode is not None:
            return
        self.killed = True
        self.finish(-9)

    async def wait(self) -> int:
        await self._exited.wait()
        assert self.returncode is not None
        return self.returncode

    def stderr_text(self) -> str:
        return ""


class FakeRunner:
    """ProcessPort recording every spawn."""

    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []
        self.fail_with: str | None = None
        # When set, the next spawn waits for this event before starting.
        self.gate: asyncio.Event | None = None

    async def spawn(self, invocation: SearchInvocation) -> FakeHandle:
        gate, self.gate = self.gate, None
        if gate is not None:
            await gate.wait()
        if self.fail_with is not None:
            raise LaunchError(self.fail_with)
        handle = FakeHandle(invocation)
        self.handles.append(handle)
        return handle


class RecordingBuffers:
    """BufferPort keeping track of opens and closes."""

    def __init__(self) -> None:
        self.open_buffers: dict[Path, Buffer] = {}
        self.opened: list[Path] = []
        self.closed: list[Path] = []

    def find(self, path: Path) -> Buffer | None:
        return self.open_buffers.get(path)

    def open(self, path: Path) -> Buffer:
        if path in self.open_buffers:
            return self.open_buffers[path]
        buffer = Buffer(path=path)
        self.open_buffers[path] = buffer
        self.opened.append(path)
        return buffer

    def close(self, buffer: Buffer) -> None:
        assert buffer.path in self.open_buffers, f"{buffer.path} closed twice"
        del self.open_buffers[buffer.path]
        self.closed.append(buffer.path)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def recording_buffers() -> RecordingBuffers:
    return RecordingBuffers()
