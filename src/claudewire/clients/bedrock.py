"""AWS Bedrock backend.

The bedrock-runtime client from boto3 is synchronous, so every call into
it (including each step of a response event stream) runs in a worker
thread via ``asyncio.to_thread``. Request bodies are the native bodies
without ``model`` and ``stream``, plus the Bedrock ``anthropic_version``;
the model goes in the ``modelId`` parameter instead.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import AsyncIterator, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from claudewire.clients.base import Backend, ClientConfig, decode_response
from claudewire.core import models
from claudewire.core.errors import (
    ClassifiedError,
    ConfigError,
    RequestValidationError,
    StreamDecodeError,
    classify,
)
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

logger = logging.getLogger(__name__)

BEDROCK_ANTHROPIC_VERSION = "bedrock-2023-05-31"

BEDROCK_CLAUDE_3_5_SONNET_20241022 = "anthropic.claude-3-5-sonnet-20241022-v2:0"
BEDROCK_CLAUDE_3_5_SONNET = "anthropic.claude-3-5-sonnet-20240620-v1:0"
BEDROCK_CLAUDE_3_OPUS = "anthropic.claude-3-opus-20240229-v1:0"
BEDROCK_CLAUDE_3_SONNET = "anthropic.claude-3-sonnet-20240229-v1:0"
BEDROCK_CLAUDE_3_HAIKU = "anthropic.claude-3-haiku-20240307-v1:0"
BEDROCK_CLAUDE_V2_1 = "anthropic.claude-v2:1"

# Top-level region codes that have cross-region inference profiles
CROSS_REGION_PREFIXES = ("us", "eu")

BEDROCK_MESSAGE_MODELS: Mapping[str, str] = {
    models.CLAUDE_3_5_SONNET_20241022: BEDROCK_CLAUDE_3_5_SONNET_20241022,
    models.CLAUDE_3_5_SONNET: BEDROCK_CLAUDE_3_5_SONNET,
    models.CLAUDE_3_OPUS: BEDROCK_CLAUDE_3_OPUS,
    models.CLAUDE_3_SONNET: BEDROCK_CLAUDE_3_SONNET,
    models.CLAUDE_3_HAIKU: BEDROCK_CLAUDE_3_HAIKU,
    models.CLAUDE_V2_1: BEDROCK_CLAUDE_V2_1,
}

# Fields carried elsewhere in a Bedrock invocation
_BODY_EXCLUDED = ("model", "stream")

_STATUS_CODE_RE = re.compile(r"StatusCode: (\d+)")

_END = object()


@dataclass
class BedrockConfig(ClientConfig):
    """Configuration for the Bedrock backend.

    Static credentials are used only when both the key id and the secret
    are given; otherwise boto3's default credential chain applies.

    Attributes:
        region: AWS region, e.g. "us-east-1". Required.
        access_key_id: Static AWS access key id.
        secret_access_key: Static AWS secret key.
        session_token: Optional STS session token for static credentials.
        cross_region_inference: Route through the "us." or "eu." inference
            profile derived from the region.
        runtime_client: Pre-built bedrock-runtime client. Skips boto3
            session setup entirely.
    """

    region: str
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    cross_region_inference: bool = False
    runtime_client: Any = None

    def __post_init__(self) -> None:
        if not self.region:
            raise ConfigError("Region is required for establishing anthropic bedrock client")
        # Validates the prefix eagerly
        cross_region_prefix(self)


def cross_region_prefix(config: BedrockConfig) -> str:
    """Inference profile prefix for ``config``, or "" when not enabled.

    Raises:
        ConfigError: The region's prefix has no cross-region profile.
    """
    if not config.cross_region_inference:
        return ""
    prefix = config.region[:2]
    if prefix not in CROSS_REGION_PREFIXES:
        allowed = ", ".join(f"'{p}'" for p in CROSS_REGION_PREFIXES)
        raise ConfigError(
            f"Cross region inference is only supported for: {allowed}; "
            f"Region prefix: '{prefix}' is not supported"
        )
    return prefix


def bedrock_model_id(model: str, region_prefix: str = "") -> str:
    """Map a model name to the Bedrock model id for message calls.

    Deterministic: the same model and prefix always give the same id.

    Raises:
        RequestValidationError: No Bedrock mapping, or the mapping has no
            cross-region profile.
    """
    model_id = BEDROCK_MESSAGE_MODELS.get(model)
    if model_id is None:
        raise RequestValidationError(
            f"model {model} is not compatible with the bedrock message endpoint"
        )
    if not region_prefix:
        return model_id
    if model_id == BEDROCK_CLAUDE_V2_1:
        raise RequestValidationError(
            f"Bedrock model {model_id} is not compatible with cross-region inference"
        )
    return f"{region_prefix}.{model_id}"


def bedrock_completion_model_id(model: str) -> str:
    """Map a model name to the Bedrock model id for completion calls."""
    if model == models.CLAUDE_V2_1:
        return BEDROCK_CLAUDE_V2_1
    raise RequestValidationError(
        f"model {model} is not compatible with the bedrock completion endpoint"
    )


def adapt_body(body: dict[str, Any]) -> dict[str, Any]:
    """Turn a native request body into a Bedrock invocation body."""
    adapted = {k: v for k, v in body.items() if k not in _BODY_EXCLUDED}
    adapted["anthropic_version"] = BEDROCK_ANTHROPIC_VERSION
    return adapted


def extract_status_code(err: Exception) -> int:
    """Best-effort HTTP status of a botocore failure; 0 when unknown."""
    if isinstance(err, ClientError):
        status = err.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if status:
            return int(status)
    match = _STATUS_CODE_RE.search(str(err))
    if match:
        return int(match.group(1))
    return 0


def classify_client_error(err: ClientError) -> ClassifiedError:
    return classify(extract_status_code(err), str(err))


async def iter_chunk_records(events: Iterable[Mapping[str, Any]]) -> AsyncIterator[str]:
    """Yield the JSON payload of each ``chunk`` event in a response stream.

    Other event members are skipped. Errors raised while reading the
    stream are classified when they carry a status, otherwise reported
    as StreamDecodeError.
    """
    iterator = iter(events)
    while True:
        try:
            event = await asyncio.to_thread(next, iterator, _END)
        except ClientError as err:
            raise classify_client_error(err) from err
        except BotoCoreError as err:
            raise StreamDecodeError(f"error reading from stream: {err}") from err

        if event is _END:
            return

        chunk = event.get("chunk")
        if chunk is None:
            logger.debug("Skipping non-chunk stream event: %s", ", ".join(event))
            continue
        try:
            record = chunk["bytes"].decode("utf-8")
        except (KeyError, UnicodeDecodeError) as err:
            raise StreamDecodeError(f"error decoding stream chunk: {err!r}") from err
        yield record


class BedrockBackend(Backend):
    """Backend invoking Anthropic models through Bedrock runtime."""

    config: BedrockConfig
    retry_on = (ClassifiedError, BotoCoreError)

    def __init__(self, config: BedrockConfig) -> None:
        super().__init__(config)
        self.region_prefix = cross_region_prefix(config)
        self._runtime = config.runtime_client

    async def connect(self) -> None:
        """Build the bedrock-runtime client, unless one was supplied."""
        if self._runtime is not None:
            return
        self._runtime = await asyncio.to_thread(self._build_runtime_client)

    def _build_runtime_client(self) -> Any:
        cfg = self.config
        if cfg.access_key_id and cfg.secret_access_key:
            session = boto3.Session(
                aws_access_key_id=cfg.access_key_id,
                aws_secret_access_key=cfg.secret_access_key,
                aws_session_token=cfg.session_token,
                region_name=cfg.region,
            )
        else:
            session = boto3.Session(region_name=cfg.region)
        return session.client("bedrock-runtime")

    def _require_runtime(self) -> Any:
        if self._runtime is None:
            raise RuntimeError("Client not connected. Call connect() first.")
        return self._runtime

    def check_message_model(self, model: str) -> None:
        bedrock_model_id(model, self.region_prefix)

    def check_completion_model(self, model: str) -> None:
        bedrock_completion_model_id(model)

    async def _invoke(self, model_id: str, body: dict[str, Any]) -> bytes:
        runtime = self._require_runtime()
        logger.debug("InvokeModel %s", model_id)

        def invoke() -> bytes:
            response = runtime.invoke_model(
                modelId=model_id,
                body=json.dumps(body),
                contentType="application/json",
                accept="application/json",
            )
            return response["body"].read()

        try:
            return await asyncio.to_thread(invoke)
        except ClientError as err:
            raise classify_client_error(err) from err

    async def message(self, request: MessageRequest) -> MessageResponse:
        model_id = bedrock_model_id(request.model, self.region_prefix)
        body = adapt_body(request.to_wire())
        raw = await self.retry.run(
            lambda: self._invoke(model_id, body),
            label=f"InvokeModel {model_id}",
        )
        return decode_response(MessageResponse, raw)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        model_id = bedrock_completion_model_id(request.model)
        body = adapt_body(request.to_wire())
        raw = await self.retry.run(
            lambda: self._invoke(model_id, body),
            label=f"InvokeModel {model_id}",
        )
        return decode_response(CompletionResponse, raw)

    async def stream_message(
        self,
        request: MessageRequest,
        stream: DeltaStream[MessageStreamResponse],
    ) -> None:
        model_id = bedrock_model_id(request.model, self.region_prefix)
        await self._stream(model_id, adapt_body(request.to_wire()), MessageEventDecoder(), stream)

    async def stream_complete(
        self,
        request: CompletionRequest,
        stream: DeltaStream[CompletionStreamResponse],
    ) -> None:
        model_id = bedrock_completion_model_id(request.model)
        await self._stream(
            model_id, adapt_body(request.to_wire()), CompletionEventDecoder(), stream
        )

    async def _stream(
        self,
        model_id: str,
        body: dict[str, Any],
        decoder: EventDecoder[Any],
        stream: DeltaStream[Any],
    ) -> None:
        runtime = self._require_runtime()
        logger.debug("InvokeModelWithResponseStream %s", model_id)

        try:
            response = await asyncio.to_thread(
                runtime.invoke_model_with_response_stream,
                modelId=model_id,
                body=json.dumps(body),
                contentType="application/json",
            )
        except ClientError as err:
            raise classify_client_error(err) from err

        events = response["body"]
        try:
            await pump(iter_chunk_records(events), decoder, stream.emit, stream.cancellation)
        finally:
            close = getattr(events, "close", None)
            if close is not None:
                await asyncio.to_thread(close)
