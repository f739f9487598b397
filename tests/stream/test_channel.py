"""Tests for the delta/error channel."""

import asyncio
import json

import pytest
from conftest import KENOBI_EVENTS, stalled_after

from claudewire.core.cancellation import CancellationToken
from claudewire.core.errors import RequestValidationError, StreamError
from claudewire.stream.channel import DeltaStream
from claudewire.stream.decoder import MessageEventDecoder, pump


class TestDeltaStream:
    """Tests for DeltaStream."""

    @pytest.mark.asyncio
    async def test_deltas_in_order(self):
        """Deltas arrive in the order the producer emitted them."""

        async def produce(stream):
            for i in range(5):
                await stream.emit(i)

        stream = DeltaStream()
        stream.start(produce)

        assert await stream.collect() == [0, 1, 2, 3, 4]
        assert stream.closed

    @pytest.mark.asyncio
    async def test_error_raised_after_deltas(self):
        """The producer's error is raised once, after the last delta."""

        async def produce(stream):
            await stream.emit("a")
            raise StreamError("api_error", "boom")

        stream = DeltaStream()
        stream.start(produce)
        received = []

        with pytest.raises(StreamError, match="boom"):
            async for delta in stream:
                received.append(delta)

        assert received == ["a"]
        # Iteration after the error just ends
        assert [d async for d in stream] == []

    @pytest.mark.asyncio
    async def test_error_method(self):
        """error() drains the stream and returns the error."""

        async def produce(stream):
            await stream.emit(1)
            raise StreamError("overloaded_error", "Overloaded")

        stream = DeltaStream()
        stream.start(produce)

        err = await stream.error()

        assert isinstance(err, StreamError)
        assert stream.closed

    @pytest.mark.asyncio
    async def test_no_error_on_clean_finish(self):
        """A producer that returns normally leaves no error."""

        async def produce(stream):
            await stream.emit(1)

        stream = DeltaStream()
        stream.start(produce)

        assert await stream.error() is None

    @pytest.mark.asyncio
    async def test_failed_stream(self):
        """failed() is closed from the start with the error queued."""
        err = RequestValidationError("cannot use streaming with tools")

        stream = DeltaStream.failed(err)

        assert stream.errors.qsize() == 1
        assert await stream.error() is err

    @pytest.mark.asyncio
    async def test_failed_stream_raises_on_iteration(self):
        """Iterating a failed stream raises its error without deltas."""
        stream = DeltaStream.failed(RequestValidationError("bad"))

        with pytest.raises(RequestValidationError, match="bad"):
            await stream.collect()

    @pytest.mark.asyncio
    async def test_backpressure(self):
        """The producer cannot run more than one delta ahead of the reader."""
        emitted = []

        async def produce(stream):
            for i in range(10):
                await stream.emit(i)
                emitted.append(i)

        stream = DeltaStream()
        stream.start(produce)
        for _ in range(5):
            await asyncio.sleep(0)

        # One delta in the queue and the producer blocked on the next put
        assert len(emitted) <= 1
        await stream.collect()
        assert len(emitted) == 10

    @pytest.mark.asyncio
    async def test_aclose_cancels_producer(self):
        """aclose() stops a producer blocked on a full queue."""
        token = CancellationToken()
        emitted = []

        async def produce(stream):
            i = 0
            while not stream.cancellation.is_cancelled:
                await stream.emit(i)
                emitted.append(i)
                i += 1

        stream = DeltaStream(token)
        stream.start(produce)

        first = await stream.__anext__()
        await stream.aclose()

        assert first == 0
        assert token.is_cancelled
        assert stream.closed
        assert stream._task.done()

    @pytest.mark.asyncio
    async def test_aclose_while_source_stalled(self):
        """aclose() returns promptly when the producer is waiting for data."""

        async def produce(stream):
            records = stalled_after(json.dumps(KENOBI_EVENTS[0]))
            await pump(records, MessageEventDecoder(), stream.emit, stream.cancellation)

        stream = DeltaStream()
        stream.start(produce)

        first = await stream.__anext__()
        await asyncio.wait_for(stream.aclose(), timeout=2)

        assert first.type == "message_start"
        assert stream.closed
        assert await stream.error() is None
        assert stream._task.done()

    @pytest.mark.asyncio
    async def test_context_manager_closes(self):
        """Leaving the async with block cancels the stream."""

        async def produce(stream):
            while not stream.cancellation.is_cancelled:
                await stream.emit("tick")

        async with DeltaStream() as stream:
            stream.start(produce)
            assert await stream.__anext__() == "tick"

        assert stream.cancellation.is_cancelled
        assert stream.closed

    @pytest.mark.asyncio
    async def test_start_twice_rejected(self):
        """A stream has exactly one producer."""

        async def produce(stream):
            return None

        stream = DeltaStream()
        stream.start(produce)

        with pytest.raises(RuntimeError, match="already started"):
            stream.start(produce)
        await stream.error()
