"""Stream event envelopes and the deltas delivered to callers.

Each SSE record carries one JSON envelope whose ``type`` field selects
the event model below. The tables at the bottom are the complete set of
event types the decoder understands; anything else is skipped.

Anthropic streaming reference:
    message_start -> content_block_start -> (ping) -> content_block_delta*
    -> content_block_stop -> message_delta -> message_stop
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MessageEventType = Literal[
    "message_start",
    "content_block_start",
    "ping",
    "content_block_delta",
    "content_block_stop",
    "message_delta",
    "message_stop",
    "error",
]

CompletionEventType = Literal["completion", "ping", "error"]


class _Event(BaseModel):
    model_config = ConfigDict(extra="allow")


class StreamUsage(_Event):
    input_tokens: int | None = None
    output_tokens: int | None = None


class MessageStartPayload(_Event):
    id: str = ""
    type: str = "message"
    role: str = "assistant"
    content: list[Any] = Field(default_factory=list)
    model: str = ""
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: StreamUsage = Field(default_factory=StreamUsage)


class MessageStartEvent(_Event):
    type: Literal["message_start"] = "message_start"
    message: MessageStartPayload = Field(default_factory=MessageStartPayload)


class ContentBlockStartEvent(_Event):
    type: Literal["content_block_start"] = "content_block_start"
    index: int = 0
    content_block: dict[str, Any] = Field(default_factory=dict)


class PingEvent(_Event):
    type: Literal["ping"] = "ping"


class BlockDelta(_Event):
    """Incremental content. ``type`` is text_delta, thinking_delta, input_json_delta, ..."""

    type: str = "text_delta"
    text: str | None = None
    thinking: str | None = None
    partial_json: str | None = None
    signature: str | None = None


class ContentBlockDeltaEvent(_Event):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int = 0
    delta: BlockDelta = Field(default_factory=BlockDelta)


class ContentBlockStopEvent(_Event):
    type: Literal["content_block_stop"] = "content_block_stop"
    index: int = 0


class MessageDeltaPayload(_Event):
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: StreamUsage | None = None


class MessageDeltaEvent(_Event):
    type: Literal["message_delta"] = "message_delta"
    delta: MessageDeltaPayload = Field(default_factory=MessageDeltaPayload)
    usage: StreamUsage | None = None


class MessageStopEvent(_Event):
    type: Literal["message_stop"] = "message_stop"


class ErrorPayload(_Event):
    type: str = ""
    message: str = ""


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    error: ErrorPayload = Field(default_factory=ErrorPayload)


class CompletionEvent(_Event):
    type: Literal["completion"] = "completion"
    completion: str = ""
    stop_reason: str | None = None
    model: str | None = None
    stop: str | None = None
    log_id: str | None = None


MessageStreamEvent = (
    MessageStartEvent
    | ContentBlockStartEvent
    | PingEvent
    | ContentBlockDeltaEvent
    | ContentBlockStopEvent
    | MessageDeltaEvent
    | MessageStopEvent
    | ErrorEvent
)

CompletionStreamEvent = CompletionEvent | PingEvent | ErrorEvent

MESSAGE_EVENT_TYPES: Mapping[str, type[_Event]] = MappingProxyType(
    {
        "message_start": MessageStartEvent,
        "content_block_start": ContentBlockStartEvent,
        "ping": PingEvent,
        "content_block_delta": ContentBlockDeltaEvent,
        "content_block_stop": ContentBlockStopEvent,
        "message_delta": MessageDeltaEvent,
        "message_stop": MessageStopEvent,
        "error": ErrorEvent,
    }
)

COMPLETION_EVENT_TYPES: Mapping[str, type[_Event]] = MappingProxyType(
    {
        "completion": CompletionEvent,
        "ping": PingEvent,
        "error": ErrorEvent,
    }
)


@dataclass(frozen=True)
class TokenUsage:
    """Token usage statistics."""

    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class MessageStreamResponse:
    """One decoded delta of a streamed message.

    ``text`` is only set for text_delta events, so concatenating ``text``
    over the whole stream gives the response text. ``usage`` is the running
    total as of this event.
    """

    type: str
    index: int | None = None
    delta_type: str | None = None
    text: str = ""
    thinking: str = ""
    partial_json: str = ""
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: TokenUsage = TokenUsage()
    event: MessageStreamEvent | None = None


@dataclass(frozen=True)
class CompletionStreamResponse:
    """One decoded delta of a streamed legacy completion."""

    type: str
    completion: str = ""
    stop_reason: str | None = None
    model: str | None = None
    stop: str | None = None
    log_id: str | None = None
