"""Incremental stream decoder.

The decoder turns each framed record into a typed event and then into a
delta for the caller, keeping the running response state as it goes:

    AWAITING_EVENT -> DECODING_ENVELOPE -> DISPATCHING
        -> EMITTED_DELTA   (loop back to AWAITING_EVENT)
        -> TERMINAL_STOP   (message_stop seen)
        -> TERMINAL_ERROR  (error event, malformed record, read failure)

Unknown event types are skipped so that new server-side events do not
break existing clients. An ``error`` event is never skipped: it ends the
stream with a StreamError. Nothing here is retried; a broken stream has
to be restarted by the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from claudewire.core.cancellation import CancellationToken
from claudewire.core.errors import StreamDecodeError, StreamError, UnsupportedEventType
from claudewire.core.events import (
    COMPLETION_EVENT_TYPES,
    MESSAGE_EVENT_TYPES,
    CompletionEvent,
    CompletionStreamResponse,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ErrorEvent,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    MessageStreamResponse,
    PingEvent,
    TokenUsage,
)

logger = logging.getLogger(__name__)

DeltaT = TypeVar("DeltaT")


class StreamState(Enum):
    """Decoder states."""

    AWAITING_EVENT = auto()
    DECODING_ENVELOPE = auto()
    DISPATCHING = auto()
    EMITTED_DELTA = auto()
    TERMINAL_STOP = auto()
    TERMINAL_ERROR = auto()


@dataclass
class MessageAccumulator:
    """Response state built up while a message streams in."""

    text: str = ""
    thinking: str = ""
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass
class CompletionAccumulator:
    completion: str = ""
    stop_reason: str | None = None


class EventDecoder(Generic[DeltaT]):
    """Shared envelope decoding and dispatch; subclasses apply events."""

    event_types: ClassVar[Mapping[str, type[BaseModel]]] = {}

    def __init__(self) -> None:
        self.state = StreamState.AWAITING_EVENT

    def decode(self, record: str) -> DeltaT:
        """Decode one record into a delta.

        Raises:
            UnsupportedEventType: The record's type is not in the table.
            StreamError: The record is an upstream error event.
            StreamDecodeError: The record is not a valid envelope.
        """
        self.state = StreamState.DECODING_ENVELOPE
        envelope = self._decode_envelope(record)
        event_type = envelope["type"]

        self.state = StreamState.DISPATCHING
        event_model = self.event_types.get(event_type)
        if event_model is None:
            # Not terminal: go back to waiting for the next record
            self.state = StreamState.AWAITING_EVENT
            raise UnsupportedEventType(event_type)

        try:
            event = event_model.model_validate(envelope)
        except PydanticValidationError as err:
            self.state = StreamState.TERMINAL_ERROR
            raise StreamDecodeError(f"error decoding {event_type} event: {err}") from err

        if isinstance(event, ErrorEvent):
            self.state = StreamState.TERMINAL_ERROR
            raise StreamError(event.error.type, event.error.message)

        delta = self._apply(event)
        self.state = (
            StreamState.TERMINAL_STOP if self.is_terminal(delta) else StreamState.EMITTED_DELTA
        )
        return delta

    def is_terminal(self, delta: DeltaT) -> bool:
        return False

    def _decode_envelope(self, record: str) -> dict[str, Any]:
        try:
            envelope = json.loads(record)
        except json.JSONDecodeError as err:
            self.state = StreamState.TERMINAL_ERROR
            raise StreamDecodeError(f"error decoding event data: {err}") from err

        if not isinstance(envelope, dict) or not isinstance(envelope.get("type"), str):
            self.state = StreamState.TERMINAL_ERROR
            raise StreamDecodeError(f"event envelope has no type: {record[:200]}")
        return envelope

    def _apply(self, event: Any) -> DeltaT:
        raise NotImplementedError


class MessageEventDecoder(EventDecoder[MessageStreamResponse]):
    """Decoder for /v1/messages streams."""

    event_types = MESSAGE_EVENT_TYPES

    def __init__(self) -> None:
        super().__init__()
        self.accumulated = MessageAccumulator()

    def is_terminal(self, delta: MessageStreamResponse) -> bool:
        return delta.type == "message_stop"

    def _apply(self, event: Any) -> MessageStreamResponse:
        acc = self.accumulated

        if isinstance(event, MessageStartEvent):
            usage = event.message.usage
            acc.usage = TokenUsage(
                input_tokens=usage.input_tokens or 0,
                output_tokens=usage.output_tokens or 0,
            )
            return MessageStreamResponse(type=event.type, usage=acc.usage, event=event)

        if isinstance(event, ContentBlockDeltaEvent):
            delta = event.delta
            text = (delta.text or "") if delta.type == "text_delta" else ""
            thinking = (delta.thinking or "") if delta.type == "thinking_delta" else ""
            acc.text += text
            acc.thinking += thinking
            return MessageStreamResponse(
                type=event.type,
                index=event.index,
                delta_type=delta.type,
                text=text,
                thinking=thinking,
                partial_json=delta.partial_json or "",
                usage=acc.usage,
                event=event,
            )

        if isinstance(event, MessageDeltaEvent):
            acc.stop_reason = event.delta.stop_reason
            acc.stop_sequence = event.delta.stop_sequence
            # Usage normally sits at the top level; older payloads nest it in delta
            usage = event.usage or event.delta.usage
            if usage is not None:
                acc.usage = TokenUsage(
                    input_tokens=(
                        usage.input_tokens
                        if usage.input_tokens is not None
                        else acc.usage.input_tokens
                    ),
                    output_tokens=(
                        usage.output_tokens
                        if usage.output_tokens is not None
                        else acc.usage.output_tokens
                    ),
                )
            return MessageStreamResponse(
                type=event.type,
                stop_reason=acc.stop_reason,
                stop_sequence=acc.stop_sequence,
                usage=acc.usage,
                event=event,
            )

        if isinstance(event, (ContentBlockStartEvent, ContentBlockStopEvent)):
            return MessageStreamResponse(
                type=event.type, index=event.index, usage=acc.usage, event=event
            )

        if isinstance(event, (PingEvent, MessageStopEvent)):
            return MessageStreamResponse(type=event.type, usage=acc.usage, event=event)

        raise UnsupportedEventType(event.type)


class CompletionEventDecoder(EventDecoder[CompletionStreamResponse]):
    """Decoder for legacy /v1/complete streams."""

    event_types = COMPLETION_EVENT_TYPES

    def __init__(self) -> None:
        super().__init__()
        self.accumulated = CompletionAccumulator()

    def _apply(self, event: Any) -> CompletionStreamResponse:
        if isinstance(event, CompletionEvent):
            self.accumulated.completion += event.completion
            if event.stop_reason is not None:
                self.accumulated.stop_reason = event.stop_reason
            return CompletionStreamResponse(
                type=event.type,
                completion=event.completion,
                stop_reason=event.stop_reason,
                model=event.model,
                stop=event.stop,
                log_id=event.log_id,
            )

        if isinstance(event, PingEvent):
            return CompletionStreamResponse(type=event.type)

        raise UnsupportedEventType(event.type)


_STOPPED: Any = object()


async def _next_record(records: AsyncIterator[str], cancellation: CancellationToken) -> Any:
    """Read one record, or return _STOPPED if cancellation wins the race.

    A read still pending when the token is set is cancelled, so a stalled
    transport cannot hold the producer.
    """
    read = asyncio.ensure_future(records.__anext__())
    stop = asyncio.ensure_future(cancellation.wait())
    try:
        await asyncio.wait({read, stop}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop.cancel()
        if not read.done():
            read.cancel()

    if read.done():
        return read.result()

    await asyncio.wait({read})
    if not read.cancelled() and read.exception() is not None:
        logger.debug("Read failed after cancellation: %s", read.exception())
    return _STOPPED


async def pump(
    records: AsyncIterable[str],
    decoder: EventDecoder[DeltaT],
    emit: Callable[[DeltaT], Awaitable[None]],
    cancellation: CancellationToken,
) -> None:
    """Decode records in order and hand each delta to ``emit``.

    Returns when the input is exhausted, a terminal event is decoded, or
    cancellation is requested. Cancellation also interrupts a read that
    is waiting on the transport. Decode and read errors propagate.
    """
    iterator = records.__aiter__()
    count = 0
    while not cancellation.is_cancelled:
        try:
            record = await _next_record(iterator, cancellation)
        except StopAsyncIteration:
            return
        if record is _STOPPED:
            break

        try:
            delta = decoder.decode(record)
        except UnsupportedEventType as err:
            logger.debug("Skipping unsupported event type %r", err.event_type)
            continue

        count += 1
        logger.debug("Decoded event %d: %s", count, getattr(delta, "type", "?"))
        await emit(delta)

        if decoder.state is StreamState.TERMINAL_STOP:
            return
        decoder.state = StreamState.AWAITING_EVENT

    logger.debug("Stream cancelled after %d events", count)
