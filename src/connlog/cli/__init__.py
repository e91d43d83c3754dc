"""connlog CLI -- typer-based command interface.

Commands:
    connlog show <path>        Print records in readable form
    connlog validate <path>    Check every line decodes as a record
"""

from __future__ import annotations

from pathlib import Path

import typer

from connlog.cli._errors import handle_error
from connlog.codec import decode_line, encode_record, format_timestamp
from connlog.errors import LogDecodeError
from connlog.events import Connect, LogRecord, MessageEvent
from connlog.logging import setup_logging
from connlog.reader import read_records

app = typer.Typer(
    name="connlog",
    help="Inspect connection logs written by connlog.",
    no_args_is_help=True,
)


@app.callback()
def _setup() -> None:
    setup_logging()


def summarize(record: LogRecord) -> str:
    """One human-readable line for a record."""
    op = record.op
    if isinstance(op, Connect):
        detail = f"{op.tag} {op.ipaddr}"
    elif isinstance(op, MessageEvent):
        detail = f"{op.tag} {len(op.data)} bytes"
        if op.data:
            detail += f" {op.data.hex()}"
    else:
        detail = op.tag
    return f"{format_timestamp(record.ts)} conn={record.conn_id} {detail}"


@app.command()
def show(
    path: Path = typer.Argument(..., help="Connection log file."),
    as_json: bool = typer.Option(False, "--json", help="Print canonical JSON lines."),
) -> None:
    """Print every record in the log."""
    if not path.is_file():
        handle_error(f"{path} is not a file")
    try:
        for record in read_records(path):
            if as_json:
                typer.echo(encode_record(record).decode("utf-8"), nl=False)
            else:
                typer.echo(summarize(record))
    except LogDecodeError as err:
        handle_error(str(err))


@app.command()
def validate(
    path: Path = typer.Argument(..., help="Connection log file."),
) -> None:
    """Check that every line is a complete record."""
    if not path.is_file():
        handle_error(f"{path} is not a file")

    good = 0
    bad = 0
    with open(path, "rb") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                decode_line(line, lineno)
            except LogDecodeError as err:
                bad += 1
                typer.echo(str(err), err=True)
            else:
                good += 1

    if bad:
        typer.echo(f"{bad} bad line(s), {good} record(s) OK", err=True)
        raise typer.Exit(1)
    typer.echo(f"{good} record(s) OK")


def main() -> None:
    """Entry point for the connlog CLI."""
    app()
