"""Stream sink: one shared append stream behind one asyncio.Lock.

Every handle derived from the same root holds a reference to the same
StreamSink, so all connections funnel through a single lock and a single
stream. Inside the lock there is no await: a record is serialized, written
and flushed in one go, so lines are never interleaved and a task cancelled
while waiting for the lock writes nothing.

A failed write poisons the sink. Every later write raises LogWriteError
instead of appending after a gap.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import BinaryIO

from connlog.codec import encode_record
from connlog.errors import LogWriteError
from connlog.events import LogRecord
from connlog.logging import get_logger


def _logger():
    """Lazy logger: reflects the active formatter, not import-time state."""
    return get_logger("connlog.sink")


class StreamSink:
    """Append JSON lines to a binary stream, one writer at a time."""

    enabled = True

    def __init__(self, stream: BinaryIO, *, owns_stream: bool = False) -> None:
        if not callable(getattr(stream, "write", None)):
            raise TypeError(f"stream must be a writable binary stream, got {stream!r}")
        self._stream = stream
        self._owns_stream = owns_stream
        self._lock = asyncio.Lock()
        self._failure: BaseException | None = None
        self._closed = False

    @classmethod
    def open(cls, path: str | Path) -> StreamSink:
        """Open ``path`` for appending, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        sink = cls(open(path, "ab"), owns_stream=True)
        _logger().info("connlog.sink.opened", path=str(path))
        return sink

    @property
    def failed(self) -> bool:
        return self._failure is not None

    @property
    def closed(self) -> bool:
        return self._closed

    async def write(self, record: LogRecord) -> None:
        async with self._lock:
            if self._failure is not None:
                raise LogWriteError(
                    "connection log is unusable after an earlier write failure"
                ) from self._failure
            if self._closed:
                raise LogWriteError("connection log is closed")

            data = encode_record(record)
            try:
                self._write_all(data)
            except (OSError, ValueError) as err:
                self._failure = err
                _logger().critical(
                    "connlog.sink.write_failed",
                    conn_id=record.conn_id,
                    op=record.op.tag,
                    error=f"{type(err).__name__}: {err}",
                )
                raise LogWriteError(f"could not write to connection log: {err}") from err

    def _write_all(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            written = self._stream.write(view)
            # Non-blocking raw streams return None when nothing was written
            if written is None:
                raise BlockingIOError("stream would block; record not written")
            if written <= 0:
                raise OSError("stream accepted no bytes")
            view = view[written:]
        self._stream.flush()

    async def aclose(self) -> None:
        """Flush and, if this sink opened the stream, close it."""
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            flush_error: BaseException | None = None
            if self._failure is None:
                try:
                    self._stream.flush()
                except (OSError, ValueError) as err:
                    self._failure = flush_error = err
            if self._owns_stream:
                try:
                    self._stream.close()
                except (OSError, ValueError) as err:
                    if flush_error is None:
                        if self._failure is None:
                            self._failure = err
                        raise LogWriteError(f"could not close connection log: {err}") from err
            if flush_error is not None:
                raise LogWriteError(f"could not flush connection log: {flush_error}") from flush_error
            _logger().info("connlog.sink.closed")

    def __repr__(self) -> str:
        name = getattr(self._stream, "name", None) or type(self._stream).__name__
        return f"StreamSink({name!r})"
