"""claudewire - async Anthropic API client with a streaming SSE decoder.

Two backends share one facade: the direct HTTPS API and AWS Bedrock.

Layers:
    core/       Models, request types, validation, errors
    stream/     SSE framing, event decoding, delta channel
    clients/    Native and Bedrock backends, retry

Quick Start:
    >>> from claudewire import MessagePart, MessageRequest, NativeConfig, make_client
    >>>
    >>> request = MessageRequest(
    ...     messages=[MessagePart(role="user", content="Hello!")],
    ...     max_tokens=256,
    ... )
    >>> async with make_client(NativeConfig(api_key=key)) as client:
    ...     response = await client.message(request)
    ...     print(response.text)

Streaming:
    >>> request = request.model_copy(update={"stream": True})
    >>> async with make_client(NativeConfig(api_key=key)) as client:
    ...     async for delta in client.message_stream(request):
    ...         print(delta.text, end="")
"""

from claudewire.__version__ import __version__
from claudewire.client import Client, CompletionStream, MessageStream, make_client
from claudewire.clients import BedrockConfig, NativeConfig
from claudewire.core import (
    CancellationToken,
    ClassifiedError,
    ClaudeWireError,
    CompletionRequest,
    CompletionResponse,
    CompletionStreamResponse,
    ConfigError,
    ErrorKind,
    MessagePart,
    MessageRequest,
    MessageResponse,
    MessageStreamResponse,
    RequestValidationError,
    ResponseDecodeError,
    StreamDecodeError,
    StreamError,
    TokenUsage,
    Tool,
    ToolChoice,
)
from claudewire.core.prompts import ChatMessage, get_chat_prompt, get_prompt
from claudewire.core.types import image_block, text_block, tool_result_block, tool_use_block

__all__ = [
    "__version__",
    # Client
    "Client",
    "make_client",
    "NativeConfig",
    "BedrockConfig",
    "MessageStream",
    "CompletionStream",
    "CancellationToken",
    # Requests and responses
    "MessagePart",
    "MessageRequest",
    "MessageResponse",
    "CompletionRequest",
    "CompletionResponse",
    "Tool",
    "ToolChoice",
    "text_block",
    "image_block",
    "tool_use_block",
    "tool_result_block",
    # Stream deltas
    "MessageStreamResponse",
    "CompletionStreamResponse",
    "TokenUsage",
    # Errors
    "ClaudeWireError",
    "ClassifiedError",
    "ConfigError",
    "ErrorKind",
    "RequestValidationError",
    "ResponseDecodeError",
    "StreamDecodeError",
    "StreamError",
    # Prompts
    "ChatMessage",
    "get_prompt",
    "get_chat_prompt",
]
