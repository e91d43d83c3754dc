"""connlog: append-only, per-connection event log for network services.

Public API:
    LogHandle        -- per-connection view onto one shared log file
    ServerStartup, ServerShutdown, Connect, Close,
    ServerToClientMessage, ClientToServerMessage
                     -- the events a handle can append
    read_records()   -- decode an existing log file
    setup_logging()  -- diagnostic logging for the library itself

One file, one lock, many handles. Each append writes exactly one JSON line.
"""

from connlog.codec import decode_line, encode_record
from connlog.config import ConnLogConfig
from connlog.errors import ConnLogError, LogDecodeError, LogWriteError
from connlog.events import (
    ClientToServerMessage,
    Close,
    Connect,
    EventBody,
    LogRecord,
    ServerShutdown,
    ServerStartup,
    ServerToClientMessage,
)
from connlog.handle import LogHandle
from connlog.logging import get_logger, setup_logging
from connlog.reader import iter_records, read_records

__all__ = [
    # Core API
    "LogHandle",
    "ConnLogConfig",
    # Events
    "EventBody",
    "LogRecord",
    "ServerStartup",
    "ServerShutdown",
    "Connect",
    "ServerToClientMessage",
    "ClientToServerMessage",
    "Close",
    # Codec / reading
    "encode_record",
    "decode_line",
    "iter_records",
    "read_records",
    # Errors
    "ConnLogError",
    "LogWriteError",
    "LogDecodeError",
    # Logging
    "get_logger",
    "setup_logging",
]
