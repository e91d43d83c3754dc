"""Line codec: LogRecord <-> one compact JSON object per line.

Wire format (externally tagged ``op``):

    {"conn_id":0,"op":"ServerStartup","ts":"2026-01-01T00:00:00.5Z"}
    {"conn_id":1,"op":{"Connect":{"ipaddr":"10.0.0.1"}},"ts":"..."}
    {"conn_id":1,"op":{"ClientToServerMsg":[1,2,255]},"ts":"..."}

Payload-less variants are written as the bare tag string. ``{"Close": null}``
is accepted on decode as an equivalent form. Byte payloads are arrays of
integers so every byte value survives unchanged.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from connlog.errors import LogDecodeError
from connlog.events import (
    EVENT_TYPES,
    EVENTS_BY_TAG,
    Connect,
    EventBody,
    LogRecord,
    MessageEvent,
    check_conn_id,
)

_NS_PER_SECOND = 1_000_000_000
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?"
    r"([Zz]|[+-]\d{2}:\d{2})$"
)


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def format_timestamp(ts_ns: int) -> str:
    """Format epoch nanoseconds as RFC 3339 UTC with a trimmed fraction."""
    seconds, nanos = divmod(ts_ns, _NS_PER_SECOND)
    dt = _EPOCH + timedelta(seconds=seconds)
    fraction = f"{nanos:09d}".rstrip("0") or "0"
    return f"{dt:%Y-%m-%dT%H:%M:%S}.{fraction}Z"


def parse_timestamp(text: str) -> int:
    """Parse an RFC 3339 timestamp into epoch nanoseconds (UTC).

    Digits past nanosecond precision are truncated.
    """
    if not isinstance(text, str):
        raise LogDecodeError(f"timestamp must be a string, got {text!r}")
    m = _RFC3339.match(text)
    if m is None:
        raise LogDecodeError(f"not an RFC 3339 timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, offset = m.groups()

    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6]))
        tz = timezone(sign * delta)

    try:
        dt = datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second),
            tzinfo=tz,
        )
    except ValueError as err:
        raise LogDecodeError(f"invalid timestamp {text!r}: {err}") from err

    seconds = (dt - _EPOCH) // timedelta(seconds=1)
    nanos = int((fraction or "0")[:9].ljust(9, "0"))
    return seconds * _NS_PER_SECOND + nanos


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def encode_event(event: EventBody) -> Any:
    """Return the JSON value for an event's ``op`` field."""
    if not isinstance(event, EVENT_TYPES):
        raise TypeError(f"not a connection log event: {event!r}")
    if isinstance(event, Connect):
        return {event.tag: {"ipaddr": event.ipaddr}}
    if isinstance(event, MessageEvent):
        return {event.tag: list(event.data)}
    return event.tag


def decode_event(value: Any) -> EventBody:
    """Rebuild an event from the JSON value of an ``op`` field."""
    if isinstance(value, str):
        tag, payload, bare = value, None, True
    elif isinstance(value, dict) and len(value) == 1:
        ((tag, payload),) = value.items()
        bare = False
    else:
        raise LogDecodeError(f"op must be a tag or a single-key object, got {value!r}")

    cls = EVENTS_BY_TAG.get(tag)
    if cls is None:
        raise LogDecodeError(f"unknown op {tag!r}")

    if cls is Connect:
        if bare or not isinstance(payload, dict) or not isinstance(payload.get("ipaddr"), str):
            raise LogDecodeError(f"Connect needs {{\"ipaddr\": str}}, got {payload!r}")
        return Connect(ipaddr=payload["ipaddr"])

    if issubclass(cls, MessageEvent):
        if bare or not isinstance(payload, list):
            raise LogDecodeError(f"{tag} needs a byte array, got {payload!r}")
        # bool is an int subclass; true/false are not byte values
        if not all(type(b) is int and 0 <= b <= 255 for b in payload):
            raise LogDecodeError(f"{tag} payload is not a byte array: {payload!r}")
        return cls(bytes(payload))

    if payload is not None:
        raise LogDecodeError(f"{tag} takes no payload, got {payload!r}")
    return cls()


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def record_to_dict(record: LogRecord) -> dict[str, Any]:
    return {
        "conn_id": record.conn_id,
        "op": encode_event(record.op),
        "ts": format_timestamp(record.ts),
    }


def encode_record(record: LogRecord) -> bytes:
    """Serialize a record as one UTF-8 JSON line, newline included."""
    line = json.dumps(record_to_dict(record), separators=(",", ":"), ensure_ascii=False)
    return line.encode("utf-8") + b"\n"


def decode_line(line: str | bytes, lineno: int | None = None) -> LogRecord:
    """Parse one line of the log back into a LogRecord."""
    try:
        obj = json.loads(line)
    except (UnicodeDecodeError, json.JSONDecodeError) as err:
        raise LogDecodeError(f"invalid JSON: {err}", lineno) from err

    if not isinstance(obj, dict):
        raise LogDecodeError("record must be a JSON object", lineno)
    missing = {"conn_id", "op", "ts"} - obj.keys()
    if missing:
        raise LogDecodeError(f"missing field(s): {', '.join(sorted(missing))}", lineno)

    try:
        conn_id = check_conn_id(obj["conn_id"])
        op = decode_event(obj["op"])
        ts = parse_timestamp(obj["ts"])
    except LogDecodeError as err:
        if lineno is None:
            raise
        raise LogDecodeError(str(err), lineno) from err
    except (TypeError, ValueError) as err:
        raise LogDecodeError(str(err), lineno) from err

    return LogRecord(conn_id=conn_id, op=op, ts=ts)
