"""Cooperative cancellation for streaming calls.

The producer task of a stream races each transport read against the
token. Once it is set, a pending read is abandoned and the producer
closes its own network response on the way out. A record that was
already read is still decoded and emitted.

Typical usage:
1. Create a CancellationToken (or let the client create one)
2. Pass it to message_stream() / complete_stream()
3. Call token.cancel() from any task to stop the stream
"""

from __future__ import annotations

import asyncio


class CancellationToken:
    """Token for cooperative cancellation of one streaming call.

    Example:
        >>> token = CancellationToken()
        >>> stream = client.message_stream(request, cancellation=token)
        >>> async for delta in stream:
        ...     if enough(delta):
        ...         token.cancel()
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Request cancellation. Safe to call more than once."""
        self._cancelled = True
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    async def wait(self) -> None:
        """Wait until cancel() is called."""
        await self._event.wait()
