"""Record sinks: where a LogHandle's records end up."""

from connlog.sinks.base import RecordSink
from connlog.sinks.noop_sink import NOOP_SINK, NoOpSink
from connlog.sinks.stream_sink import StreamSink

__all__ = ["RecordSink", "StreamSink", "NoOpSink", "NOOP_SINK"]
