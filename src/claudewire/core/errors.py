"""Error taxonomy and upstream status classification.

Every error raised by the library derives from ClaudeWireError:

- RequestValidationError: the request is malformed for the chosen call,
  detected before any network I/O.
- ConfigError: the client could not be constructed.
- ClassifiedError: the upstream answered with a non-success status.
- StreamError: the upstream sent an ``error`` event mid-stream.
- StreamDecodeError: a stream record could not be decoded or read.
- ResponseDecodeError: a non-streaming response body was not valid.

UnsupportedEventType is not surfaced to callers; the stream decoder
uses it to skip event types it does not know.
"""

from __future__ import annotations

from enum import Enum


class ClaudeWireError(Exception):
    """Base class for all library errors."""


class RequestValidationError(ClaudeWireError):
    """Raised when a request is rejected before it is sent."""


class ConfigError(ClaudeWireError):
    """Raised when a client configuration is invalid."""


class ErrorKind(Enum):
    """Coarse, machine-dispatchable classification of upstream failures."""

    INVALID_REQUEST = (
        "invalid request: there was an issue with the format or content of your request"
    )
    UNAUTHORIZED = "unauthorized: there's an issue with your API key"
    FORBIDDEN = (
        "forbidden: your API key does not have permission to use the specified resource"
    )
    RATE_LIMITED = "your account has hit a rate limit"
    SERVER_ERROR = "an unexpected error has occurred internal to Anthropic's systems"
    UNKNOWN = "unknown error occurred"


# HTTP status -> error kind. Anything not listed is UNKNOWN.
ERROR_KIND_MAP = {
    400: ErrorKind.INVALID_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    429: ErrorKind.RATE_LIMITED,
    500: ErrorKind.SERVER_ERROR,
}


class ClassifiedError(ClaudeWireError):
    """Upstream failure with a coarse kind and the raw upstream body.

    ``str(err)`` is the kind's fixed message; ``response_body`` keeps the
    provider-specific detail for callers that need it.
    """

    def __init__(self, kind: ErrorKind, status_code: int, response_body: str = ""):
        super().__init__(kind.value)
        self.kind = kind
        self.status_code = status_code
        self.response_body = response_body

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(kind={self.kind.name}, status_code={self.status_code}, "
            f"response_body={self.response_body[:200]!r})"
        )


def classify(status_code: int, response_body: str = "") -> ClassifiedError:
    """Map an upstream status code to a ClassifiedError.

    Total over all integers: unmapped codes become ErrorKind.UNKNOWN.
    """
    kind = ERROR_KIND_MAP.get(status_code, ErrorKind.UNKNOWN)
    return ClassifiedError(kind, status_code, response_body)


class StreamError(ClaudeWireError):
    """Upstream reported an error event inside a stream. Always terminal."""

    def __init__(self, error_type: str, message: str):
        super().__init__(f"error type: {error_type}, message: {message}")
        self.error_type = error_type
        self.message = message


class StreamDecodeError(ClaudeWireError):
    """A stream record was malformed or the transport failed mid-read."""


class UnsupportedEventType(ClaudeWireError):
    """Event type the decoder does not know. Skipped, never surfaced."""

    def __init__(self, event_type: str):
        super().__init__(f"unknown event type: {event_type}")
        self.event_type = event_type


class ResponseDecodeError(ClaudeWireError):
    """A successful non-streaming response could not be decoded."""
