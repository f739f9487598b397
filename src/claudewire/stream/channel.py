"""Delta/error channel pair connecting a stream producer to its caller.

One producer task per streaming call owns the network response and the
decoder, and is the only writer of both queues:

- ``deltas`` holds at most one decoded delta, so the producer waits for
  the caller to read before decoding further.
- ``errors`` holds at most one error. A validation failure is queued
  before any producer exists, so it is waiting when the caller looks.

The producer closes the stream by queueing a sentinel on ``deltas``
after any error, so a reader that sees the close can always find the
error behind it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from claudewire.core.cancellation import CancellationToken

logger = logging.getLogger(__name__)

DeltaT = TypeVar("DeltaT")

_CLOSED: Any = object()


class DeltaStream(Generic[DeltaT]):
    """Caller-side handle for one streaming call.

    Iterate it to receive deltas in transport order. When the producer
    finishes with an error, iteration raises that error once after the
    last delta.

    Example:
        >>> stream = client.message_stream(request)
        >>> async for delta in stream:
        ...     print(delta.text, end="")
    """

    def __init__(self, cancellation: CancellationToken | None = None) -> None:
        self.deltas: asyncio.Queue[Any] = asyncio.Queue(maxsize=1)
        self.errors: asyncio.Queue[BaseException] = asyncio.Queue(maxsize=1)
        self.cancellation = cancellation or CancellationToken()
        self._task: asyncio.Task[None] | None = None
        self._exhausted = False
        self._error: BaseException | None = None

    # -- producer side -----------------------------------------------------

    @classmethod
    def failed(cls, error: BaseException) -> DeltaStream[DeltaT]:
        """A stream that is already closed with ``error`` and has no producer."""
        stream: DeltaStream[DeltaT] = cls()
        stream.errors.put_nowait(error)
        stream.deltas.put_nowait(_CLOSED)
        return stream

    def start(self, produce: Callable[[DeltaStream[DeltaT]], Awaitable[None]]) -> None:
        """Run ``produce`` as this stream's single producer task."""
        if self._task is not None:
            raise RuntimeError("stream producer already started")
        self._task = asyncio.create_task(self._run(produce))

    async def emit(self, delta: DeltaT) -> None:
        """Queue a delta, waiting until the caller has taken the previous one."""
        await self.deltas.put(delta)

    async def _run(self, produce: Callable[[DeltaStream[DeltaT]], Awaitable[None]]) -> None:
        try:
            await produce(self)
        except Exception as err:  # delivered to the caller on the error queue
            logger.debug("Stream producer ended with %s: %s", type(err).__name__, err)
            self.errors.put_nowait(err)
        finally:
            await self.deltas.put(_CLOSED)

    # -- caller side -------------------------------------------------------

    def __aiter__(self) -> DeltaStream[DeltaT]:
        return self

    async def __anext__(self) -> DeltaT:
        if self._exhausted:
            raise StopAsyncIteration

        item = await self.deltas.get()
        if item is _CLOSED:
            self._mark_closed()
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item

    def _mark_closed(self) -> None:
        self._exhausted = True
        try:
            self._error = self.errors.get_nowait()
        except asyncio.QueueEmpty:
            self._error = None

    @property
    def closed(self) -> bool:
        """True once the caller has read the close marker."""
        return self._exhausted

    async def error(self) -> BaseException | None:
        """Discard remaining deltas and return the stream's error, or None."""
        while not self._exhausted:
            if await self.deltas.get() is _CLOSED:
                self._mark_closed()
        return self._error

    async def collect(self) -> list[DeltaT]:
        """Read every remaining delta. Raises the stream's error, if any."""
        return [delta async for delta in self]

    async def aclose(self) -> None:
        """Cancel the producer, discard unread deltas, and wait for it to exit.

        The producer abandons any read still waiting on the transport, so
        this returns promptly even when the server has gone quiet. Any
        error it had already queued is dropped.
        """
        self.cancellation.cancel()
        await self.error()
        if self._task is not None:
            await self._task

    async def __aenter__(self) -> DeltaStream[DeltaT]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
