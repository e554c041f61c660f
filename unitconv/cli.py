from __future__ import annotations

import logging
import sqlite3
from typing import Callable

import typer

from unitconv.core.config import Settings, get_settings
from unitconv.core.errors import FetchError, UnitConvError
from unitconv.core.logging import init_logging
from unitconv.db.dal import Database
from unitconv.db.schema import init_db
from unitconv.services.commands import (
    CommandOutput,
    CommandProcessor,
    format_result,
    parse_command,
    run_conversion,
    units_listing,
)
from unitconv.services.rates.cache_service import RateCache, build_rate_cache

logger = logging.getLogger("unitconv.cli")

app = typer.Typer(add_completion=False, help="Convert units and currencies.")

BANNER = "Enter a conversion expression (e.g. 100 m -> km), 'help' for commands or 'exit' to quit."


def open_rate_cache(settings: Settings) -> RateCache:
    """Create the schema if needed and return an unloaded cache bound to it.

    A database that cannot even be created is the one fatal startup error.
    """
    try:
        init_db(settings.db_path)  # type: ignore[arg-type]
    except sqlite3.Error as e:
        logger.exception("failed to initialise database")
        typer.secho(f"Cannot open rate database {settings.db_path}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from e
    return build_rate_cache(settings, Database(settings.db_path))  # type: ignore[arg-type]


def _echo_output(output: CommandOutput) -> None:
    for warning in output.warnings:
        typer.secho(f"Warning: {warning}", fg=typer.colors.YELLOW)
    typer.echo(output.text)


def run_repl(rates: RateCache, read_line: Callable[[str], str] = input) -> None:
    processor = CommandProcessor(rates)
    typer.echo(BANNER)
    while True:
        try:
            line = read_line("> ")
        except (EOFError, KeyboardInterrupt):
            typer.echo("")
            break
        if not line.strip():
            continue
        try:
            output = processor.execute(parse_command(line))
        except UnitConvError as e:
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            continue
        if output is None:
            break
        _echo_output(output)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Verbose JSON logs on stderr"),
):
    """Start the interactive converter when no sub-command is given."""
    settings = get_settings()
    init_logging(debug=debug or settings.debug, quiet=True)
    ctx.obj = settings
    if ctx.invoked_subcommand is not None:
        return
    with open_rate_cache(settings) as rates:
        run_repl(rates)


@app.command("convert", context_settings={"ignore_unknown_options": True})
def convert_command(
    ctx: typer.Context,
    value: float = typer.Argument(..., help="Amount to convert"),
    source: str = typer.Argument(..., help="Source unit or currency code, e.g. km or USD"),
    target: str = typer.Argument(..., help="Target unit or currency code"),
):
    """Convert a single value and print the result.

    Negative amounts are accepted as they are: unitconv convert -5 m km
    """
    settings: Settings = ctx.obj
    with open_rate_cache(settings) as rates:
        try:
            result = run_conversion(value, source, target, rates)
        except UnitConvError as e:
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        _echo_output(CommandOutput(format_result(result), rates.take_warnings()))


@app.command("units")
def units_command():
    """List available units grouped by category."""
    typer.echo(units_listing())


@app.command("rates")
def rates_command(
    ctx: typer.Context,
    refresh: bool = typer.Option(False, "--refresh", help="Fetch new rates before printing"),
):
    """Show the cached exchange-rate snapshot."""
    settings: Settings = ctx.obj
    with open_rate_cache(settings) as rates:
        if refresh:
            try:
                rates.refresh()
            except FetchError as e:
                typer.secho(f"Error: {e}", fg=typer.colors.RED)
                raise typer.Exit(code=1)
        snapshot = rates.snapshot
        if snapshot.is_empty:
            typer.echo("No cached rates.")
            return
        typer.echo(
            f"Base {snapshot.base_currency}, fetched {snapshot.fetched_at.isoformat()} "
            f"({rates.state().value})"
        )
        for code in sorted(snapshot.rates):
            typer.echo(f"  {code} {snapshot.rates[code]:.6g}")


@app.command("serve")
def serve_command(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
):
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from unitconv.main import create_app

    uvicorn.run(create_app(ctx.obj), host=host, port=port)


if __name__ == "__main__":  # pragma: no cover
    app()
