"""SSE framing: turn a line stream into one payload string per event.

A record is the ``data:`` lines of one event joined with newlines, and
ends at a blank line. ``event:``, ``id:``, ``retry:`` and comment lines
are ignored; the event type is read from the JSON payload instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator

import aiohttp

from claudewire.core.errors import StreamDecodeError

logger = logging.getLogger(__name__)


def _field_value(line: str, name: str) -> str | None:
    """Return the value of an SSE ``name:`` field line, or None."""
    prefix = f"{name}:"
    if not line.startswith(prefix):
        return None
    return line[len(prefix) :].strip()


async def iter_sse_records(lines: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Yield one data payload per SSE event.

    Args:
        lines: Raw lines as produced by ``aiohttp.StreamReader`` iteration.

    Raises:
        StreamDecodeError: If the transport fails while reading.
    """
    data_lines: list[str] = []
    try:
        async for raw in lines:
            line = raw.decode("utf-8").rstrip("\r\n")

            if not line:
                if data_lines:
                    yield "\n".join(data_lines)
                    data_lines = []
                continue

            value = _field_value(line, "data")
            if value is not None:
                data_lines.append(value)
    except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as err:
        raise StreamDecodeError(f"error reading from stream: {err}") from err

    # Server closed without a trailing blank line
    if data_lines:
        logger.debug("Flushing unterminated SSE record at end of stream")
        yield "\n".join(data_lines)
