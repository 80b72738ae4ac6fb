"""CLI integration smoke tests."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from typer.testing import CliRunner

from narrowscope.app.interaction import UpdateStatus
from narrowscope.app.orchestrator import SessionFailed, SessionFinished
from narrowscope.cli import _echo_status, app
from narrowscope.query.splitter import split

REQUIRED_SCHEMA_FIELDS = {"schema_id", "schema_version", "producer", "produced_at"}


def test_cli_types_lists_every_search_type() -> None:
    result = CliRunner().invoke(app, ["types"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert len(lines) == 9
    assert lines[0].startswith("0  symbol")
    assert "15.8+" in lines[-1]


def test_cli_locate_prints_database(override_settings, project_dir: Path) -> None:
    result = CliRunner().invoke(app, ["locate", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert REQUIRED_SCHEMA_FIELDS <= payload.keys()
    assert payload["schema_id"] == "database_location"
    assert payload["path"] == str(project_dir / "cscope.out")
    assert payload["directory"] == str(project_dir)


def test_cli_locate_missing_database(override_settings, temp_dir: Path, monkeypatch) -> None:
    monkeypatch.chdir(temp_dir)

    result = CliRunner().invoke(app, ["--database", "missing.out", "locate"])

    assert result.exit_code == 1
    assert "cscope database not found: missing.out" in result.output


def test_cli_query_groups_results_by_file(override_settings, project_dir: Path) -> None:
    result = CliRunner().invoke(app, ["query", "symbol", "#foo"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines == [
        "src/main.c",
        "   1. 5:main: int x = foo();",
        '   2. 6:main: printf("%d\\n", x);',
        "src/helper.c",
        "   3. 1:foo: int foo(void)",
    ]

    recorded = (Path(override_settings.program).parent / "last_args").read_text().splitlines()
    assert recorded == ["-f", str(project_dir / "cscope.out"), "-L0foo"]


def test_cli_query_json(override_settings) -> None:
    result = CliRunner().invoke(
        app, ["query", "1", "#foo#helper -- -C", "--json"]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert REQUIRED_SCHEMA_FIELDS <= payload.keys()
    assert payload["schema_id"] == "query_results"
    assert payload["producer"].startswith("narrowscope-")
    datetime.fromisoformat(payload["produced_at"])
    assert payload["search_type"] == "definition"
    assert payload["pattern"] == "foo"
    assert payload["filter_terms"] == ["helper"]
    assert payload["extra_args"] == ["-C"]
    assert payload["error"] is None
    assert payload["total_hits"] == 1
    assert payload["results"][0]["display"] == "src/helper.c:1:foo: int foo(void)"
    assert payload["results"][0]["highlight_spans"] == [[4, 7]]


def test_cli_query_limit(override_settings) -> None:
    result = CliRunner().invoke(app, ["query", "symbol", "#foo", "--limit", "1", "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["total_hits"] == 1


def test_cli_query_missing_program(override_settings, temp_dir: Path) -> None:
    result = CliRunner().invoke(
        app, ["--program", str(temp_dir / "nowhere" / "cscope"), "query", "symbol", "#foo"]
    )

    assert result.exit_code == 1
    assert "Program not found" in result.output


def test_cli_query_rejects_unknown_search_type(override_settings) -> None:
    result = CliRunner().invoke(app, ["query", "5", "#foo"])

    assert result.exit_code != 0


def test_cli_interactive_preview_then_jump(override_settings, project_dir: Path) -> None:
    result = CliRunner().invoke(
        app,
        ["interactive", "symbol"],
        input="#foo\n:p 1\n:g 1\n",
    )

    assert result.exit_code == 0, result.output
    main_c = project_dir / "src" / "main.c"
    assert "   1. 5:main: int x = foo();" in result.stdout
    assert ">     5     int x = foo();" in result.stdout
    assert result.stdout.rstrip().splitlines()[-1].endswith(f"{main_c}:5:0")


def test_cli_interactive_uses_offered_history(override_settings) -> None:
    result = CliRunner().invoke(
        app,
        ["interactive", "symbol", "--initial", "foo"],
        input=":n\n:q\n",
    )

    assert result.exit_code == 0, result.output
    assert "Enter ':n' to use '#foo'" in result.stdout
    assert "src/helper.c" in result.stdout
    assert result.stdout.rstrip().endswith("Aborted")


def test_status_ignores_outcome_of_earlier_search(capsys) -> None:
    status = UpdateStatus(split("#foo"), generation=2)

    _echo_status(status, SessionFinished(1, 3, "old failure"))
    _echo_status(status, SessionFailed(1, "timed out"))
    _echo_status(status, None)
    assert capsys.readouterr().err == ""

    _echo_status(status, SessionFinished(2, 3, "bad database"))
    assert "cscope exited with status 3: bad database" in capsys.readouterr().err
