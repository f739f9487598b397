"""Backend interface shared by the native and Bedrock transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from claudewire.clients.retry import DEFAULT_RETRY_ON, RetryExecutor
from claudewire.core.errors import ResponseDecodeError
from claudewire.core.events import CompletionStreamResponse, MessageStreamResponse
from claudewire.core.types import (
    CompletionRequest,
    CompletionResponse,
    MessageRequest,
    MessageResponse,
)
from claudewire.stream.channel import DeltaStream

ResponseT = TypeVar("ResponseT", bound=BaseModel)


@dataclass(kw_only=True)
class ClientConfig:
    """Settings common to every backend. Keyword-only in every config.

    Attributes:
        max_retries: Extra attempts for non-streaming calls (negative -> 0).
        retry_delay: Fixed seconds between attempts (negative -> 0).
        allow_streamed_tools: Accept tool definitions on streamed message
            calls. Off by default; such requests are rejected up front.
    """

    max_retries: int = 0
    retry_delay: float = 0.0
    allow_streamed_tools: bool = False


def decode_response(model: type[ResponseT], raw: str | bytes) -> ResponseT:
    """Validate a JSON response body, wrapping failures in ResponseDecodeError."""
    try:
        return model.model_validate_json(raw)
    except PydanticValidationError as err:
        raise ResponseDecodeError(f"error decoding {model.__name__}: {err}") from err


class Backend(ABC):
    """One transport capable of executing message and completion calls.

    Requests arrive already validated. Non-streaming methods return the
    decoded response or raise; streaming methods are the body of the
    stream's producer task and deliver deltas through ``stream.emit``.
    """

    # Failures that make a non-streaming attempt retryable
    retry_on: tuple[type[BaseException], ...] = DEFAULT_RETRY_ON

    def __init__(self, config: ClientConfig) -> None:
        self.config = config
        self.retry = RetryExecutor(
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            retry_on=self.retry_on,
        )

    async def connect(self) -> None:
        """Acquire transport resources. No-op by default."""

    async def close(self) -> None:
        """Release transport resources. No-op by default."""

    def check_message_model(self, model: str) -> None:
        """Reject models this backend cannot serve on the message endpoint."""

    def check_completion_model(self, model: str) -> None:
        """Reject models this backend cannot serve on the completion endpoint."""

    @abstractmethod
    async def message(self, request: MessageRequest) -> MessageResponse: ...

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse: ...

    @abstractmethod
    async def stream_message(
        self,
        request: MessageRequest,
        stream: DeltaStream[MessageStreamResponse],
    ) -> None: ...

    @abstractmethod
    async def stream_complete(
        self,
        request: CompletionRequest,
        stream: DeltaStream[CompletionStreamResponse],
    ) -> None: ...
