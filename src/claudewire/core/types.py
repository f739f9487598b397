"""Pydantic models for Anthropic request and response bodies.

Requests are built by the caller and only read by the client. Response
models use extra="allow" so fields added server-side pass through.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from claudewire.core.models import CLAUDE_V2, DEFAULT_MODEL


class ImageSource(BaseModel):
    """Base64 image payload for image content blocks."""

    type: Literal["base64"] = "base64"
    media_type: str
    data: str


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    source: ImageSource


class ToolUseBlock(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str | list[TextBlock | ImageBlock] | None = None
    is_error: bool | None = None


ContentBlock = Annotated[
    Union[TextBlock, ImageBlock, ToolUseBlock, ToolResultBlock],
    Field(discriminator="type"),
]


def text_block(text: str) -> TextBlock:
    return TextBlock(text=text)


def image_block(media_type: str, data: str) -> ImageBlock:
    """Build an image block from base64 data, e.g. ``image_block("image/png", b64)``."""
    return ImageBlock(source=ImageSource(media_type=media_type, data=data))


def tool_use_block(block_id: str, name: str, tool_input: dict[str, Any]) -> ToolUseBlock:
    return ToolUseBlock(id=block_id, name=name, input=tool_input)


def tool_result_block(
    tool_use_id: str,
    content: str | list[TextBlock | ImageBlock] | None,
    is_error: bool | None = None,
) -> ToolResultBlock:
    return ToolResultBlock(tool_use_id=tool_use_id, content=content, is_error=is_error)


class MessagePart(BaseModel):
    """One turn of the conversation."""

    role: Literal["user", "assistant"]
    content: str | list[ContentBlock]

    def image_count(self) -> int:
        """Image blocks in this turn, including those nested in tool results."""
        if isinstance(self.content, str):
            return 0
        count = 0
        for block in self.content:
            if isinstance(block, ImageBlock):
                count += 1
            elif isinstance(block, ToolResultBlock) and isinstance(block.content, list):
                count += sum(1 for item in block.content if isinstance(item, ImageBlock))
        return count


class Tool(BaseModel):
    """Definition of a tool the model may call."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any]

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("tool name cannot be empty")
        return v


class ToolChoice(BaseModel):
    """Tool-choice policy: "auto", "any", or "tool" with a name."""

    type: Literal["auto", "any", "tool"]
    name: str | None = None


# Client-side request fields that are never sent upstream
_LOCAL_FIELDS = {"beta"}


class _WireModel(BaseModel):
    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON body the API expects, dropping unset fields."""
        return self.model_dump(mode="json", exclude_none=True, exclude=_LOCAL_FIELDS)


class MessageRequest(_WireModel):
    """Request body for POST /v1/messages."""

    model: str = DEFAULT_MODEL
    messages: list[MessagePart]
    max_tokens: int = 1024
    system: str | None = None
    metadata: dict[str, Any] | None = None
    stop_sequences: list[str] | None = None
    stream: bool = False
    temperature: float | None = None
    top_k: int | None = None
    top_p: float | None = None
    tools: list[Tool] | None = None
    tool_choice: ToolChoice | None = None

    # Sent as the anthropic-beta header, not in the body
    beta: str | None = None

    @field_validator("max_tokens")
    @classmethod
    def validate_max_tokens(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_tokens must be positive")
        return v

    def count_image_content(self) -> int:
        return sum(message.image_count() for message in self.messages)

    def contains_image_content(self) -> bool:
        return self.count_image_content() > 0


class CompletionRequest(_WireModel):
    """Request body for the legacy POST /v1/complete endpoint."""

    prompt: str
    model: str = CLAUDE_V2
    max_tokens_to_sample: int = 25
    stop_sequences: list[str] | None = None
    stream: bool = False
    temperature: float | None = None
    top_k: int | None = None
    top_p: float | None = None

    beta: str | None = None


class Usage(BaseModel):
    model_config = ConfigDict(extra="allow")

    input_tokens: int = 0
    output_tokens: int = 0


class ResponseContent(BaseModel):
    """Content block returned by the API (text, tool_use, thinking, ...)."""

    model_config = ConfigDict(extra="allow")

    type: str
    text: str | None = None
    thinking: str | None = None
    id: str | None = None
    name: str | None = None
    input: dict[str, Any] | None = None


class MessageResponse(BaseModel):
    """Non-streaming response from /v1/messages."""

    model_config = ConfigDict(extra="allow")

    id: str = ""
    type: str = "message"
    role: str = "assistant"
    model: str = ""
    content: list[ResponseContent] = Field(default_factory=list)
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage = Field(default_factory=Usage)

    @property
    def text(self) -> str:
        return "".join(block.text or "" for block in self.content if block.type == "text")


class CompletionResponse(BaseModel):
    """Non-streaming response from /v1/complete."""

    model_config = ConfigDict(extra="allow")

    completion: str = ""
    stop_reason: str | None = None
    stop: str | None = None
    model: str | None = None
