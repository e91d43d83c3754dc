"""Exception hierarchy for connlog."""

from __future__ import annotations


class ConnLogError(Exception):
    """Base class for connlog errors."""


class LogWriteError(ConnLogError):
    """The connection log could not be written.

    Raised for the failing write and for every later write to the same
    sink. The underlying I/O error is chained as ``__cause__``.
    """


class LogDecodeError(ConnLogError, ValueError):
    """A line is not a valid connection log record."""

    def __init__(self, message: str, lineno: int | None = None) -> None:
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)
        self.lineno = lineno
