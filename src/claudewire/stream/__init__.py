"""SSE framing, event decoding and the delta channel."""

from claudewire.stream.channel import DeltaStream
from claudewire.stream.decoder import (
    CompletionEventDecoder,
    EventDecoder,
    MessageEventDecoder,
    StreamState,
    pump,
)
from claudewire.stream.framing import iter_sse_records

__all__ = [
    "CompletionEventDecoder",
    "DeltaStream",
    "EventDecoder",
    "MessageEventDecoder",
    "StreamState",
    "iter_sse_records",
    "pump",
]
