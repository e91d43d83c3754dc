"""RecordSink protocol: strategy pattern for connection log destinations."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from connlog.events import LogRecord


@runtime_checkable
class RecordSink(Protocol):
    """Where connection log records get written.

    ``enabled`` is fixed for the sink's lifetime. Handles skip building
    records entirely when it is False.
    """

    enabled: bool

    async def write(self, record: LogRecord) -> None: ...

    async def aclose(self) -> None: ...
