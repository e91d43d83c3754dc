"""Shared fixtures for connlog tests.

Handles over in-memory streams, a stream that fails on write, and a
stream that accepts a few bytes per call.
"""

from __future__ import annotations

import io

import pytest

from connlog.handle import LogHandle
from connlog.logging import reset_logging

# =============================================================================
# Streams
# =============================================================================


class BrokenStream(io.RawIOBase):
    """Every write fails like a full disk."""

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        raise OSError(28, "No space left on device")


class TrickleStream(io.RawIOBase):
    """Accepts at most ``chunk`` bytes per write call."""

    def __init__(self, chunk: int = 3) -> None:
        super().__init__()
        self.chunk = chunk
        self.buffer = bytearray()
        self.calls = 0

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        self.calls += 1
        taken = bytes(b[: self.chunk])
        self.buffer.extend(taken)
        return len(taken)


class WouldBlockStream(io.RawIOBase):
    """Non-blocking stream whose buffer is full: write returns None."""

    def writable(self) -> bool:
        return True

    def write(self, b) -> None:
        return None


class StalledStream(io.RawIOBase):
    """Accepts the call but takes zero bytes."""

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        return 0


class FailingCloseStream(io.BytesIO):
    """Close fails; flush fails too when ``fail_flush`` is set."""

    def __init__(self, fail_flush: bool = False) -> None:
        super().__init__()
        self.fail_flush = fail_flush
        self.close_attempts = 0

    def flush(self) -> None:
        if self.fail_flush:
            raise OSError(5, "flush failed")
        super().flush()

    def close(self) -> None:
        self.close_attempts += 1
        super().close()
        # Only the first close fails, so garbage collection stays quiet
        if self.close_attempts == 1:
            raise OSError(5, "close failed")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop any diagnostic handler installed by a test."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def stream() -> io.BytesIO:
    return io.BytesIO()


@pytest.fixture
def root(stream: io.BytesIO) -> LogHandle:
    return LogHandle.create_root(0, stream)


@pytest.fixture
def broken_stream() -> BrokenStream:
    return BrokenStream()


@pytest.fixture
def trickle_stream() -> TrickleStream:
    return TrickleStream()


@pytest.fixture
def would_block_stream() -> WouldBlockStream:
    return WouldBlockStream()


@pytest.fixture
def stalled_stream() -> StalledStream:
    return StalledStream()


@pytest.fixture
def failing_close_stream():
    """Factory: FailingCloseStream(fail_flush=...)."""
    return FailingCloseStream
