"""Core types, validation and errors. No I/O happens here."""

from claudewire.core.cancellation import CancellationToken
from claudewire.core.errors import (
    ClassifiedError,
    ClaudeWireError,
    ConfigError,
    ErrorKind,
    RequestValidationError,
    ResponseDecodeError,
    StreamDecodeError,
    StreamError,
    UnsupportedEventType,
    classify,
)
from claudewire.core.events import CompletionStreamResponse, MessageStreamResponse, TokenUsage
from claudewire.core.models import DEFAULT_MODEL, MAX_IMAGE_BLOCKS, ModelCapabilities, capabilities
from claudewire.core.types import (
    CompletionRequest,
    CompletionResponse,
    MessagePart,
    MessageRequest,
    MessageResponse,
    Tool,
    ToolChoice,
)

__all__ = [
    "CancellationToken",
    # Errors
    "ClaudeWireError",
    "ClassifiedError",
    "ConfigError",
    "ErrorKind",
    "RequestValidationError",
    "ResponseDecodeError",
    "StreamDecodeError",
    "StreamError",
    "UnsupportedEventType",
    "classify",
    # Models
    "DEFAULT_MODEL",
    "MAX_IMAGE_BLOCKS",
    "ModelCapabilities",
    "capabilities",
    # Requests and responses
    "CompletionRequest",
    "CompletionResponse",
    "MessagePart",
    "MessageRequest",
    "MessageResponse",
    "Tool",
    "ToolChoice",
    # Stream deltas
    "CompletionStreamResponse",
    "MessageStreamResponse",
    "TokenUsage",
]
