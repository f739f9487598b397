"""Request validation run before any network call.

Each validator raises RequestValidationError on the first rule that
fails and returns None otherwise. They are pure: nothing is sent and
the request is not modified.
"""

from __future__ import annotations

from claudewire.core.errors import RequestValidationError
from claudewire.core.models import (
    MAX_IMAGE_BLOCKS,
    is_completion_compatible,
    is_image_compatible,
    is_message_compatible,
)
from claudewire.core.types import CompletionRequest, MessageRequest


def _check_message_content(request: MessageRequest) -> None:
    image_count = request.count_image_content()
    if image_count and not is_image_compatible(request.model):
        raise RequestValidationError(f"model {request.model} does not support image content")
    if image_count > MAX_IMAGE_BLOCKS:
        raise RequestValidationError(
            f"too many image content blocks, maximum is {MAX_IMAGE_BLOCKS}"
        )


def validate_message_request(request: MessageRequest) -> None:
    """Validate a request for the blocking Message call."""
    if request.stream:
        raise RequestValidationError(
            "cannot use Message with streaming enabled, use MessageStream instead"
        )
    if not is_message_compatible(request.model):
        raise RequestValidationError(
            f"model {request.model} is not compatible with the message endpoint"
        )
    _check_message_content(request)


def validate_message_stream_request(
    request: MessageRequest,
    allow_streamed_tools: bool = False,
) -> None:
    """Validate a request for the streaming MessageStream call.

    Args:
        request: The message request.
        allow_streamed_tools: Whether the backend accepts tool definitions
            on streamed calls. When False, any tools reject the request.
    """
    if not request.stream:
        raise RequestValidationError(
            "cannot use MessageStream with streaming disabled, use Message instead"
        )
    if not is_message_compatible(request.model):
        raise RequestValidationError(
            f"model {request.model} is not compatible with the messagestream endpoint"
        )
    if request.tools and not allow_streamed_tools:
        raise RequestValidationError("cannot use streaming with tools")
    _check_message_content(request)


def validate_complete_request(request: CompletionRequest) -> None:
    """Validate a request for the blocking Complete call."""
    if request.stream:
        raise RequestValidationError(
            "cannot use Complete with a streaming request, use CompleteStream instead"
        )
    if not is_completion_compatible(request.model):
        raise RequestValidationError(
            f"model {request.model} is not compatible with the completion endpoint"
        )


def validate_complete_stream_request(request: CompletionRequest) -> None:
    """Validate a request for the streaming CompleteStream call."""
    if not request.stream:
        raise RequestValidationError(
            "cannot use CompleteStream with a non-streaming request, use Complete instead"
        )
    if not is_completion_compatible(request.model):
        raise RequestValidationError(
            f"model {request.model} is not compatible with the completion endpoint"
        )
