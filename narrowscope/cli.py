"""narrowscope CLI application with Typer."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from narrowscope import __version__
from narrowscope.app.interaction import Interaction, UpdateStatus
from narrowscope.app.orchestrator import SessionFailed, SessionFinished
from narrowscope.app.ports import DatabaseNotFoundError
from narrowscope.bootstrap import ApplicationContainer, bootstrap_application
from narrowscope.config import get_settings, set_settings
from narrowscope.query.command import SearchType
from narrowscope.query.results import Candidate, group_key, group_title

app = typer.Typer(
    name="narrowscope",
    help="Live narrowing search over cscope cross-reference databases",
    add_completion=True,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"narrowscope version {__version__}")
        raise typer.Exit()


def _parse_search_type(value: str) -> SearchType:
    try:
        return SearchType.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _database_error(exc: DatabaseNotFoundError) -> typer.Exit:
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    typer.echo("Build one with 'cscope -b -R' or pass --database.", err=True)
    return typer.Exit(code=1)


def _render_content(candidate: Candidate) -> str:
    content = candidate.content
    parts: list[str] = []
    position = 0
    for start, end in candidate.highlight_spans:
        parts.append(content[position:start])
        parts.append(typer.style(content[start:end], fg=typer.colors.RED, bold=True))
        position = end
    parts.append(content[position:])
    return "".join(parts)


def _echo_grouped(candidates: list[Candidate]) -> None:
    current_group: str | None = None
    for index, candidate in enumerate(candidates, 1):
        key = group_key(candidate)
        if key != current_group:
            typer.secho(key, fg=typer.colors.BLUE, bold=True)
            current_group = key
        visible = group_title(candidate, transform=True)
        prefix = visible[: len(visible) - len(candidate.content)]
        typer.echo(f"{index:>4}. {prefix}{_render_content(candidate)}")


def _echo_status(status: UpdateStatus, outcome: object) -> None:
    if status.error is not None:
        typer.secho(f"Error: {status.error}", fg=typer.colors.RED, err=True)
    elif status.no_match:
        typer.secho("No usable pattern", fg=typer.colors.YELLOW)
    elif getattr(outcome, "generation", None) != status.generation:
        # Still running, or the outcome belongs to an earlier search.
        return
    elif isinstance(outcome, SessionFailed):
        typer.secho(f"Search failed: {outcome.reason}", fg=typer.colors.RED, err=True)
    elif isinstance(outcome, SessionFinished) and outcome.returncode != 0:
        detail = f": {outcome.stderr}" if outcome.stderr else ""
        typer.secho(
            f"cscope exited with status {outcome.returncode}{detail}",
            fg=typer.colors.YELLOW,
            err=True,
        )


async def _collect(interaction: Interaction, limit: int | None) -> list[Candidate]:
    results: list[Candidate] = []
    async for candidate in interaction.candidates():
        results.append(candidate)
        if limit is not None and len(results) >= limit:
            break
    return results


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log pipeline activity to stderr"),
    ] = False,
    database: Annotated[
        str | None,
        typer.Option("--database", "-f", help="Override the cscope database path"),
    ] = None,
    program: Annotated[
        str | None,
        typer.Option("--program", help="Override the cscope executable"),
    ] = None,
) -> None:
    """narrowscope - incremental cscope queries with preview and jump."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # Update settings with CLI flags
    settings = get_settings()
    if database:
        settings.database = database
    if program:
        settings.program = program
    set_settings(settings)


@app.command("types")
def list_types() -> None:
    """List the supported search types."""
    for search_type in SearchType:
        note = ""
        if search_type.min_version is not None:
            note = f" (cscope {'.'.join(map(str, search_type.min_version))}+)"
        typer.echo(
            f"{int(search_type)}  {search_type.name.lower().replace('_', '-'):<11} "
            f"{search_type.label}{note}"
        )


@app.command("locate")
def locate(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output location as JSON"),
    ] = False,
) -> None:
    """Show which cscope database queries would use."""
    container = bootstrap_application()
    try:
        location = container.finder.resolve(container.settings.database, Path.cwd())
    except DatabaseNotFoundError as exc:
        raise _database_error(exc) from exc

    if json_output:
        from narrowscope.utils.cli_output import json_response

        typer.echo(
            json_response(
                "database_location",
                1,
                configured=container.settings.database,
                path=str(location.path),
                directory=str(location.directory),
            )
        )
        return

    typer.echo(str(location.path))


async def _run_query(
    container: ApplicationContainer,
    search_type: SearchType,
    raw: str,
    limit: int | None,
) -> tuple[UpdateStatus, list[Candidate], object]:
    async with container.new_interaction(search_type) as interaction:
        status = await interaction.update(raw)
        results = await _collect(interaction, limit)
        return status, results, interaction.orchestrator.last_outcome


@app.command("query")
def query(
    search_type: Annotated[
        str,
        typer.Argument(help="Search type code or name (see 'narrowscope types')"),
    ],
    raw: Annotated[
        str,
        typer.Argument(help="Input in narrowing syntax, e.g. '#pattern#filter -- -C'"),
    ],
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", help="Stop after this many results", min=1),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results as JSON"),
    ] = False,
) -> None:
    """Run one query and print the results grouped by file."""
    parsed_type = _parse_search_type(search_type)
    container = bootstrap_application()

    try:
        status, results, outcome = asyncio.run(
            _run_query(container, parsed_type, raw, limit)
        )
    except DatabaseNotFoundError as exc:
        raise _database_error(exc) from exc

    if json_output:
        from narrowscope.utils.cli_output import json_response

        typer.echo(
            json_response(
                "query_results",
                1,
                input=raw,
                search_type=parsed_type.name.lower(),
                pattern=status.query.pattern,
                filter_terms=list(status.query.filter_terms),
                extra_args=list(status.query.extra_args),
                error=status.error,
                total_hits=len(results),
                results=[candidate.model_dump(mode="json") for candidate in results],
            )
        )
    else:
        _echo_status(status, outcome)
        if results:
            _echo_grouped(results)
        elif status.launched:
            typer.secho("No results found", fg=typer.colors.YELLOW)

    if status.error is not None:
        raise typer.Exit(code=1)


async def _read_line(prompt: str) -> str | None:
    typer.echo(prompt, nl=False)
    line = await asyncio.to_thread(sys.stdin.readline)
    if not line:
        return None
    return line.rstrip("\n")


def _pick(results: list[Candidate], argument: str) -> Candidate | None:
    try:
        index = int(argument)
    except ValueError:
        index = 0
    if not 1 <= index <= len(results):
        typer.secho(f"No result number {argument.strip()!r}", fg=typer.colors.YELLOW)
        return None
    return results[index - 1]


async def _interactive(
    container: ApplicationContainer,
    search_type: SearchType,
    initial_text: str | None,
    limit: int | None,
) -> None:
    async with container.new_interaction(search_type) as interaction:
        initial, history = interaction.initial_query(initial_text)
        results: list[Candidate] = []

        if history:
            typer.echo(f"Enter ':n' to use {history[0]!r}")
        if initial_text and not history:
            status = await interaction.update(initial)
            results = await _collect(interaction, limit)
            _echo_status(status, interaction.orchestrator.last_outcome)
            _echo_grouped(results)

        while True:
            line = await _read_line(f"{search_type.label}> ")
            if line is None or line.strip() == ":q":
                await interaction.abort()
                typer.echo("Aborted")
                return

            command, _, argument = line.strip().partition(" ")
            if command == ":p":
                candidate = _pick(results, argument)
                if candidate is None:
                    continue
                marker = interaction.preview(candidate)
                typer.secho(str(marker), fg=typer.colors.BLUE)
                buffer = container.buffers.find(marker.file)
                if buffer is not None:
                    for number, text in buffer.excerpt(marker.line):
                        pointer = ">" if number == marker.line else " "
                        typer.echo(f"{pointer}{number:>6} {text}")
                continue
            if command == ":g":
                candidate = _pick(results, argument)
                if candidate is None:
                    continue
                marker = await interaction.commit(candidate)
                typer.echo(str(marker))
                return

            if command == ":n" and history:
                line = history[0]
            status = await interaction.update(line)
            results = await _collect(interaction, limit)
            _echo_status(status, interaction.orchestrator.last_outcome)
            _echo_grouped(results)


@app.command("interactive")
def interactive(
    search_type: Annotated[
        str,
        typer.Argument(help="Search type code or name (see 'narrowscope types')"),
    ],
    initial: Annotated[
        str | None,
        typer.Option("--initial", "-i", help="Text at point to start from"),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", help="Show at most this many results", min=1),
    ] = 50,
) -> None:
    """Refine a query line by line.

    Each line replaces the input and restarts the search. ':p N' previews
    result N, ':g N' jumps to it and exits, ':q' aborts.
    """
    parsed_type = _parse_search_type(search_type)
    container = bootstrap_application()

    try:
        asyncio.run(_interactive(container, parsed_type, initial, limit))
    except DatabaseNotFoundError as exc:
        raise _database_error(exc) from exc


if __name__ == "__main__":
    app()
