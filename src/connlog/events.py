"""Typed event dataclasses for the connection log.

All events are frozen (immutable) dataclasses. Connection handlers build
these and hand them to a LogHandle; the codec decides how they look on disk.

Each variant carries a stable ``tag``: the name it is written under in the
``op`` field of a record. Grouped by lifecycle: server, connection, traffic.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import ClassVar, Union

U32_MAX = 2**32 - 1


def check_conn_id(conn_id: int) -> int:
    """Validate a connection id: an int in the unsigned 32-bit range."""
    if isinstance(conn_id, bool) or not isinstance(conn_id, int):
        raise TypeError(f"conn_id must be an int, got {type(conn_id).__name__}")
    if not 0 <= conn_id <= U32_MAX:
        raise ValueError(f"conn_id {conn_id} outside 0..{U32_MAX}")
    return conn_id


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServerStartup:
    tag: ClassVar[str] = "ServerStartup"


@dataclass(frozen=True)
class ServerShutdown:
    tag: ClassVar[str] = "ServerShutdown"


# ---------------------------------------------------------------------------
# Connection lifecycle
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Connect:
    # Textual peer address; v4 and v6 are not told apart.
    ipaddr: str
    tag: ClassVar[str] = "Connect"

    def __post_init__(self) -> None:
        if not isinstance(self.ipaddr, str):
            raise TypeError(f"ipaddr must be a str, got {type(self.ipaddr).__name__}")


@dataclass(frozen=True)
class Close:
    tag: ClassVar[str] = "Close"


# ---------------------------------------------------------------------------
# Traffic
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MessageEvent:
    """Shared shape of the two traffic variants."""

    data: bytes

    def __post_init__(self) -> None:
        if isinstance(self.data, str):
            raise TypeError("message payload must be bytes-like, not str")
        # bytearray / memoryview are copied so the event stays immutable
        object.__setattr__(self, "data", bytes(self.data))


@dataclass(frozen=True)
class ServerToClientMessage(MessageEvent):
    tag: ClassVar[str] = "ServerToClientMsg"


@dataclass(frozen=True)
class ClientToServerMessage(MessageEvent):
    tag: ClassVar[str] = "ClientToServerMsg"


EventBody = Union[
    ServerStartup,
    ServerShutdown,
    Connect,
    ServerToClientMessage,
    ClientToServerMessage,
    Close,
]

EVENT_TYPES: tuple[type, ...] = (
    ServerStartup,
    ServerShutdown,
    Connect,
    ServerToClientMessage,
    ClientToServerMessage,
    Close,
)

EVENTS_BY_TAG: dict[str, type] = {cls.tag: cls for cls in EVENT_TYPES}


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LogRecord:
    """One tagged, timestamped event, ready to be serialized.

    ``ts`` is nanoseconds since the Unix epoch, UTC.
    """

    conn_id: int
    op: EventBody
    ts: int

    def __post_init__(self) -> None:
        check_conn_id(self.conn_id)
        if not isinstance(self.op, EVENT_TYPES):
            raise TypeError(f"not a connection log event: {self.op!r}")

    @classmethod
    def now(cls, conn_id: int, op: EventBody) -> LogRecord:
        """Build a record stamped with the current UTC time."""
        return cls(conn_id=conn_id, op=op, ts=time.time_ns())
