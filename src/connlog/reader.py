"""Read a connection log back, one record per line.

The file is line-delimited, so it can be read while it is still being
appended to. Blank lines are skipped.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

from connlog.codec import decode_line
from connlog.events import LogRecord


def iter_records(lines: Iterable[str | bytes]) -> Iterator[LogRecord]:
    """Decode lines lazily. Raises LogDecodeError naming the bad line."""
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        yield decode_line(line, lineno)


def read_records(path: str | Path) -> Iterator[LogRecord]:
    with open(path, "rb") as f:
        yield from iter_records(f)
