"""No-op sink: the disabled logger."""

from __future__ import annotations

from connlog.events import LogRecord


class NoOpSink:
    """Discards all records. Never blocks, never fails."""

    enabled = False

    async def write(self, record: LogRecord) -> None:
        pass

    async def aclose(self) -> None:
        pass

    def __repr__(self) -> str:
        return "NoOpSink()"


NOOP_SINK = NoOpSink()
