"""Pytest configuration and fixtures."""

import asyncio
import json

import pytest

from claudewire.core.types import MessagePart, MessageRequest


def sse(*events: dict, event_names: bool = True) -> bytes:
    """Encode event envelopes as an SSE body, one record per event."""
    chunks = []
    for event in events:
        if event_names:
            chunks.append(f"event: {event['type']}\n")
        chunks.append(f"data: {json.dumps(event)}\n\n")
    return "".join(chunks).encode("utf-8")


async def lines_of(body: bytes):
    """Async line iterator over ``body``, like aiohttp's StreamReader."""
    for line in body.splitlines(keepends=True):
        yield line


async def records_of(*records: str):
    for record in records:
        yield record


async def stalled_after(*records: str):
    """Yield ``records``, then wait for data that never comes."""
    for record in records:
        yield record
    await asyncio.sleep(30)


# A complete message stream: "Hello there, General Kenobi", 25 in / 15 out
KENOBI_EVENTS = [
    {
        "type": "message_start",
        "message": {
            "id": "msg_01",
            "type": "message",
            "role": "assistant",
            "content": [],
            "model": "claude-3-sonnet-20240229",
            "stop_reason": None,
            "stop_sequence": None,
            "usage": {"input_tokens": 25, "output_tokens": 1},
        },
    },
    {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
    {"type": "ping"},
    {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Hello"}},
    {"type": "unknown_event", "payload": {"anything": True}},
    {
        "type": "content_block_delta",
        "index": 0,
        "delta": {"type": "text_delta", "text": " there, General Kenobi"},
    },
    {"type": "content_block_stop", "index": 0},
    {
        "type": "message_delta",
        "delta": {"stop_reason": "end_turn", "stop_sequence": None},
        "usage": {"output_tokens": 15},
    },
    {"type": "message_stop"},
]

OVERLOADED_EVENTS = [
    KENOBI_EVENTS[0],
    KENOBI_EVENTS[1],
    KENOBI_EVENTS[3],
    {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}},
]

COMPLETION_EVENTS = [
    {"type": "completion", "completion": " Hello", "stop_reason": None, "model": "claude-2.1"},
    {"type": "ping"},
    {"type": "completion", "completion": " world", "stop_reason": None, "model": "claude-2.1"},
    {
        "type": "completion",
        "completion": "",
        "stop_reason": "stop_sequence",
        "model": "claude-2.1",
        "log_id": "log_1",
    },
]

MESSAGE_RESPONSE = {
    "id": "msg_01",
    "type": "message",
    "role": "assistant",
    "model": "claude-3-sonnet-20240229",
    "content": [{"type": "text", "text": "Hello!"}],
    "stop_reason": "end_turn",
    "stop_sequence": None,
    "usage": {"input_tokens": 10, "output_tokens": 5},
}

COMPLETION_RESPONSE = {
    "completion": " Hello!",
    "stop_reason": "stop_sequence",
    "model": "claude-2.1",
}


@pytest.fixture
def kenobi_sse() -> bytes:
    return sse(*KENOBI_EVENTS)


@pytest.fixture
def overloaded_sse() -> bytes:
    return sse(*OVERLOADED_EVENTS)


@pytest.fixture
def completion_sse() -> bytes:
    return sse(*COMPLETION_EVENTS)


@pytest.fixture
def message_request() -> MessageRequest:
    return MessageRequest(
        messages=[MessagePart(role="user", content="Hello there")],
        max_tokens=64,
    )


@pytest.fixture
def stream_request(message_request) -> MessageRequest:
    return message_request.model_copy(update={"stream": True})
