"""Client facade over the native and Bedrock backends.

Every call validates its request first. A rejected non-streaming call
raises RequestValidationError; a rejected streaming call returns a
stream that is already closed with the error queued, and no request is
ever sent.
"""

from __future__ import annotations

import logging
from typing import Union

from claudewire.clients.base import Backend, ClientConfig
from claudewire.clients.bedrock import BedrockBackend, BedrockConfig
from claudewire.clients.native import NativeBackend, NativeConfig
from claudewire.core.cancellation import CancellationToken
from claudewire.core.errors import ClaudeWireError, ConfigError
from claudewire.core.events import CompletionStreamResponse, MessageStreamResponse
from claudewire.core.types import (
    CompletionRequest,
    CompletionResponse,
    MessageRequest,
    MessageResponse,
)
from claudewire.core.validation import (
    validate_complete_request,
    validate_complete_stream_request,
    validate_message_request,
    validate_message_stream_request,
)
from claudewire.stream.channel import DeltaStream

logger = logging.getLogger(__name__)

MessageStream = DeltaStream[MessageStreamResponse]
CompletionStream = DeltaStream[CompletionStreamResponse]

AnyConfig = Union[NativeConfig, BedrockConfig]


class Client:
    """Anthropic client bound to one backend.

    Use as an async context manager, or call connect() and close()
    yourself:

        async with make_client(NativeConfig(api_key=key)) as client:
            response = await client.message(request)
    """

    def __init__(self, backend: Backend) -> None:
        self.backend = backend

    @property
    def config(self) -> ClientConfig:
        return self.backend.config

    async def connect(self) -> None:
        await self.backend.connect()

    async def close(self) -> None:
        await self.backend.close()

    async def __aenter__(self) -> Client:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def message(self, request: MessageRequest) -> MessageResponse:
        """Send a non-streaming message request.

        Raises:
            RequestValidationError: Before any network call.
            ClassifiedError: Non-success status after all attempts.
        """
        validate_message_request(request)
        self.backend.check_message_model(request.model)
        return await self.backend.message(request)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Send a non-streaming legacy completion request."""
        validate_complete_request(request)
        self.backend.check_completion_model(request.model)
        return await self.backend.complete(request)

    def message_stream(
        self,
        request: MessageRequest,
        cancellation: CancellationToken | None = None,
    ) -> MessageStream:
        """Start a streaming message call and return its stream.

        Must be called with a running event loop. Deltas arrive in order;
        the stream's error, if any, is raised after the last delta.
        """
        try:
            validate_message_stream_request(
                request, allow_streamed_tools=self.config.allow_streamed_tools
            )
            self.backend.check_message_model(request.model)
        except ClaudeWireError as err:
            logger.debug("Rejected message stream request: %s", err)
            return DeltaStream.failed(err)

        stream: MessageStream = DeltaStream(cancellation)
        stream.start(lambda s: self.backend.stream_message(request, s))
        return stream

    def complete_stream(
        self,
        request: CompletionRequest,
        cancellation: CancellationToken | None = None,
    ) -> CompletionStream:
        """Start a streaming legacy completion call and return its stream."""
        try:
            validate_complete_stream_request(request)
            self.backend.check_completion_model(request.model)
        except ClaudeWireError as err:
            logger.debug("Rejected completion stream request: %s", err)
            return DeltaStream.failed(err)

        stream: CompletionStream = DeltaStream(cancellation)
        stream.start(lambda s: self.backend.stream_complete(request, s))
        return stream


def make_client(config: AnyConfig) -> Client:
    """Build an unconnected client for the backend matching ``config``.

    Raises:
        ConfigError: ``config`` is not a known configuration type.
    """
    if isinstance(config, NativeConfig):
        return Client(NativeBackend(config))
    if isinstance(config, BedrockConfig):
        return Client(BedrockBackend(config))
    raise ConfigError("unknown client config")
