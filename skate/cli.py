"""
cli.py - the skate command-line interface.

stdout carries only command output (values, keys, database names) so it can
be piped; errors and notices go to stderr.
"""

import asyncio
import sys
from collections.abc import Coroutine
from importlib.metadata import PackageNotFoundError, version
from typing import Any, TypeVar

import typer
from rich.console import Console

from skate.address import name_from_args, parse_address
from skate.config import Settings
from skate.destructive import delete_database
from skate.exceptions import DatabaseNotFound, SkateError
from skate.formatter import Formatter, IterateOptions
from skate.logging_util import configure_logging
from skate.models.exceptions import EngineError
from skate.registry import format_databases, list_databases
from skate.store import Store

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="skate",
    help="Skate, a personal key value store.",
    add_completion=False,
    no_args_is_help=True,
)


def _version() -> str:
    try:
        return version("skate")
    except PackageNotFoundError:
        return "unknown (built from source)"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"skate version {_version()}")
        raise typer.Exit()


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


def _fail(message: str) -> typer.Exit:
    err_console.print(message, markup=False, highlight=False)
    return typer.Exit(code=1)


def _run(coro: Coroutine[Any, Any, T], db: str = "") -> T:
    """Run one command body, turning known failures into exit status 1."""
    try:
        return asyncio.run(coro)
    except DatabaseNotFound as e:
        raise _fail(f'"@{db}" does not exist, {e}') from e
    except (SkateError, EngineError, OSError) as e:
        raise _fail(str(e)) from e


def _stdout_formatter(options: IterateOptions) -> Formatter:
    return Formatter(options, sys.stdout.buffer, sys.stdout.isatty)


@app.callback()
def main_callback(
    ctx: typer.Context,
    show_version: bool = typer.Option(
        False,
        "--version",
        help="Print the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    ctx.obj = settings


@app.command("set")
def set_command(
    ctx: typer.Context,
    address: str = typer.Argument(..., metavar="KEY[@DB]"),
    value: str | None = typer.Argument(None, help="Value to store; read from stdin when omitted."),
) -> None:
    """Set a value for a key with an optional @ db."""
    settings = _settings(ctx)
    try:
        key, db = parse_address(address)
    except SkateError as e:
        raise _fail(str(e)) from e

    data = value.encode("utf-8") if value is not None else sys.stdin.buffer.read()

    async def run() -> None:
        async with Store.open(db, settings) as store:
            await store.set(key, data)

    _run(run(), db)


@app.command("get")
def get_command(
    ctx: typer.Context,
    address: str = typer.Argument(..., metavar="KEY[@DB]"),
    show_binary: bool = typer.Option(False, "--show-binary", "-b", help="print binary values"),
) -> None:
    """Get a value for a key with an optional @ db."""
    settings = _settings(ctx)
    try:
        key, db = parse_address(address)
    except SkateError as e:
        raise _fail(str(e)) from e

    async def run() -> bytes:
        async with Store.open(db, settings, create=not db) as store:
            return await store.get(key)

    value = _run(run(), db)
    _stdout_formatter(IterateOptions(show_binary=show_binary)).print_value(value)


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    address: str = typer.Argument(..., metavar="KEY[@DB]"),
) -> None:
    """Delete a key with an optional @ db."""
    settings = _settings(ctx)
    try:
        key, db = parse_address(address)
    except SkateError as e:
        raise _fail(str(e)) from e

    async def run() -> None:
        async with Store.open(db, settings, create=not db) as store:
            await store.delete(key)

    _run(run(), db)


@app.command("list")
def list_command(
    ctx: typer.Context,
    database: str | None = typer.Argument(None, metavar="[@DB]"),
    reverse: bool = typer.Option(False, "--reverse", "-r", help="list in reverse lexicographic order"),
    keys_only: bool = typer.Option(False, "--keys-only", "-k", help="only print keys and don't fetch values from the db"),
    values_only: bool = typer.Option(False, "--values-only", "-v", help="only print values"),
    delimiter: str = typer.Option("\t", "--delimiter", "-d", help="delimiter to separate keys and values; backslash escapes such as \\t, \\x1f or \\u2028 are interpreted"),
    show_binary: bool = typer.Option(False, "--show-binary", "-b", help="print binary values"),
) -> None:
    """List key value pairs with an optional @ db."""
    settings = _settings(ctx)
    try:
        db = name_from_args([database] if database is not None else [])
        formatter = _stdout_formatter(
            IterateOptions(
                reverse=reverse,
                keys_only=keys_only,
                values_only=values_only,
                delimiter=delimiter,
                show_binary=show_binary,
            )
        )
    except SkateError as e:
        raise _fail(str(e)) from e

    async def run() -> int:
        async with Store.open(db, settings, create=not db) as store:
            return await formatter.iterate(store)

    _run(run(), db)


@app.command("list-dbs")
def list_dbs_command(ctx: typer.Context) -> None:
    """List databases."""
    settings = _settings(ctx)
    try:
        names = format_databases(list_databases(settings))
    except OSError as e:
        raise _fail(str(e)) from e
    for name in names:
        typer.echo(name)


@app.command("delete-db")
def delete_db_command(
    ctx: typer.Context,
    database: str = typer.Argument(..., metavar="@DB"),
) -> None:
    """Delete a database."""
    settings = _settings(ctx)
    try:
        delete_database(database, settings, console=console, err_console=err_console)
    except DatabaseNotFound as e:
        raise _fail(f'"{database}" does not exist, {e}') from e
    except (SkateError, OSError) as e:
        raise _fail(str(e)) from e


def main() -> None:
    """Entry point for the skate console script."""
    app(prog_name="skate")


__all__ = ["app", "main"]
