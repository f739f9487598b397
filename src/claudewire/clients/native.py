"""Direct HTTPS backend for api.anthropic.com.

Uses a single aiohttp.ClientSession per client. Non-streaming calls go
through the retry executor; streaming calls are made once and decoded
incrementally from the SSE body.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import aiohttp

from claudewire.clients.base import Backend, ClientConfig, decode_response
from claudewire.core.errors import ConfigError, classify
from claudewire.core.events import CompletionStreamResponse, MessageStreamResponse
from claudewire.core.types import (
    CompletionRequest,
    CompletionResponse,
    MessageRequest,
    MessageResponse,
)
from claudewire.stream.channel import DeltaStream
from claudewire.stream.decoder import (
    CompletionEventDecoder,
    EventDecoder,
    MessageEventDecoder,
    pump,
)
from claudewire.stream.framing import iter_sse_records

logger = logging.getLogger(__name__)

ANTHROPIC_API_VERSION = "2023-06-01"
DEFAULT_BASE_URL = "https://api.anthropic.com"

MESSAGES_PATH = "/v1/messages"
COMPLETE_PATH = "/v1/complete"


@dataclass
class NativeConfig(ClientConfig):
    """Configuration for the direct API backend.

    Attributes:
        api_key: Anthropic API key, sent as X-Api-Key. Required.
        base_url: API root; a trailing slash is ignored.
        beta: Default anthropic-beta header value. A request's own ``beta``
            takes precedence.
        connect_timeout: Seconds allowed for establishing a connection.
        read_timeout: Total seconds allowed per request, streams included.
        session: Caller-owned aiohttp session. When set, the client uses it
            as is and never closes it.
    """

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    beta: str | None = None
    connect_timeout: float = 10.0
    read_timeout: float = 300.0
    session: aiohttp.ClientSession | None = None

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigError("apiKey is required")
        self.base_url = self.base_url.rstrip("/")


class NativeBackend(Backend):
    """Backend speaking to the Anthropic HTTP API."""

    config: NativeConfig

    def __init__(self, config: NativeConfig) -> None:
        super().__init__(config)
        self._session: aiohttp.ClientSession | None = config.session
        self._owns_session = config.session is None

    async def connect(self) -> None:
        """Create the HTTP session, unless one was supplied."""
        if self._session is not None:
            return
        timeout = aiohttp.ClientTimeout(
            connect=self.config.connect_timeout,
            total=self.config.read_timeout,
        )
        self._session = aiohttp.ClientSession(timeout=timeout)
        self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session and self._owns_session:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("Client not connected. Call connect() first.")
        return self._session

    def _headers(self, beta: str | None, streaming: bool = False) -> dict[str, str]:
        headers = {
            "X-Api-Key": self.config.api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
            "Content-Type": "application/json",
        }
        beta = beta or self.config.beta
        if beta:
            headers["anthropic-beta"] = beta
        if streaming:
            headers["Accept"] = "text/event-stream"
        return headers

    async def _post(self, path: str, body: dict[str, Any], headers: dict[str, str]) -> str:
        session = self._require_session()
        url = f"{self.config.base_url}{path}"
        logger.debug("POST %s (model=%s)", url, body.get("model"))

        async with session.post(url, json=body, headers=headers) as response:
            text = await response.text()
            if response.status != 200:
                raise classify(response.status, text)
            return text

    async def message(self, request: MessageRequest) -> MessageResponse:
        body = request.to_wire()
        headers = self._headers(request.beta)
        raw = await self.retry.run(
            lambda: self._post(MESSAGES_PATH, body, headers),
            label=f"POST {MESSAGES_PATH}",
        )
        return decode_response(MessageResponse, raw)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        body = request.to_wire()
        headers = self._headers(request.beta)
        raw = await self.retry.run(
            lambda: self._post(COMPLETE_PATH, body, headers),
            label=f"POST {COMPLETE_PATH}",
        )
        return decode_response(CompletionResponse, raw)

    async def stream_message(
        self,
        request: MessageRequest,
        stream: DeltaStream[MessageStreamResponse],
    ) -> None:
        await self._stream(
            MESSAGES_PATH, request.to_wire(), request.beta, MessageEventDecoder(), stream
        )

    async def stream_complete(
        self,
        request: CompletionRequest,
        stream: DeltaStream[CompletionStreamResponse],
    ) -> None:
        await self._stream(
            COMPLETE_PATH, request.to_wire(), request.beta, CompletionEventDecoder(), stream
        )

    async def _stream(
        self,
        path: str,
        body: dict[str, Any],
        beta: str | None,
        decoder: EventDecoder[Any],
        stream: DeltaStream[Any],
    ) -> None:
        session = self._require_session()
        url = f"{self.config.base_url}{path}"
        logger.debug("POST %s (stream, model=%s)", url, body.get("model"))

        headers = self._headers(beta, streaming=True)
        async with session.post(url, json=body, headers=headers) as response:
            if response.status != 200:
                raise classify(response.status, await response.text())
            await pump(
                iter_sse_records(response.content),
                decoder,
                stream.emit,
                stream.cancellation,
            )
