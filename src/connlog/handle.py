"""LogHandle: a per-connection view onto the shared connection log.

Open the log once at startup, then derive one handle per connection:

    root = LogHandle.open("/var/log/proxy/conn.jsonl")
    await root.append(ServerStartup())

    conn = root.derive(conn_id)
    await conn.append(Connect(ipaddr=str(peer)))
    await conn.append(ClientToServerMessage(chunk))
    await conn.append(Close())

Handles are small frozen values. Deriving or copying one never reopens the
file; every copy shares the root's sink. A handle built without a stream
is disabled and drops every event, so call sites never need to check
whether logging is configured.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import BinaryIO

from connlog.config import ConnLogConfig
from connlog.events import EVENT_TYPES, EventBody, LogRecord, check_conn_id
from connlog.sinks import NOOP_SINK, RecordSink, StreamSink


@dataclass(frozen=True)
class LogHandle:
    conn_id: int = 0
    sink: RecordSink = field(default=NOOP_SINK)

    def __post_init__(self) -> None:
        check_conn_id(self.conn_id)

    # -- construction -------------------------------------------------------

    @classmethod
    def create_root(cls, conn_id: int, stream: BinaryIO) -> LogHandle:
        """Wrap an already-open binary append stream in a fresh shared sink.

        The caller keeps ownership of ``stream``.
        """
        return cls(conn_id=conn_id, sink=StreamSink(stream))

    @classmethod
    def open(cls, path: str | Path, conn_id: int = 0) -> LogHandle:
        """Open ``path`` for appending and return a root handle owning it."""
        check_conn_id(conn_id)
        return cls(conn_id=conn_id, sink=StreamSink.open(path))

    @classmethod
    def disabled(cls, conn_id: int = 0) -> LogHandle:
        return cls(conn_id=conn_id)

    @classmethod
    def from_config(cls, config: ConnLogConfig | None = None) -> LogHandle:
        """Root handle over the configured path, or a disabled handle."""
        cfg = config or ConnLogConfig()
        if not cfg.enabled:
            return cls.disabled()
        return cls.open(cfg.path)  # type: ignore[arg-type]

    def derive(self, conn_id: int) -> LogHandle:
        """Same sink, different connection id."""
        return replace(self, conn_id=conn_id)

    # -- state ----------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self.sink.enabled

    # -- operations ---------------------------------------------------------

    async def append(self, event: EventBody) -> None:
        """Append one event to the connection log as one line.

        Suspends only while another writer holds the sink. Raises
        LogWriteError if the log cannot be written; the caller is expected
        to treat that as fatal.
        """
        if not self.sink.enabled:
            return
        if not isinstance(event, EVENT_TYPES):
            raise TypeError(f"not a connection log event: {event!r}")
        record = LogRecord.now(self.conn_id, event)
        await self.sink.write(record)

    async def aclose(self) -> None:
        """Close the shared sink. Affects every handle derived from the root."""
        await self.sink.aclose()
