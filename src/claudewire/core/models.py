"""Model identifiers and the per-model capability matrix.

The matrix is a static table built once at import time and never
written afterwards. Unknown identifiers are not an error: they simply
have no capabilities.

Reference: https://docs.anthropic.com/claude/docs/models-overview
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

# Claude 3 models
CLAUDE_3_5_SONNET_20241022 = "claude-3-5-sonnet-20241022"
CLAUDE_3_5_SONNET = "claude-3-5-sonnet-20240620"
CLAUDE_3_OPUS = "claude-3-opus-20240229"
CLAUDE_3_SONNET = "claude-3-sonnet-20240229"
CLAUDE_3_HAIKU = "claude-3-haiku-20240307"

# Claude 2 models
CLAUDE_V2_1 = "claude-2.1"
CLAUDE_V2 = "claude-2"

# Claude 1 models
CLAUDE_V1 = "claude-v1"
CLAUDE_V1_100K = "claude-v1-100k"
CLAUDE_V1_3 = "claude-v1.3"
CLAUDE_V1_3_100K = "claude-v1.3-100k"
CLAUDE_V1_2 = "claude-v1.2"
CLAUDE_V1_0 = "claude-v1.0"

# Claude Instant models
CLAUDE_INSTANT_V1 = "claude-instant-v1"
CLAUDE_INSTANT_V1_100K = "claude-instant-v1-100k"
CLAUDE_INSTANT_V1_1 = "claude-instant-v1.1"
CLAUDE_INSTANT_V1_1_100K = "claude-instant-v1.1-100k"
CLAUDE_INSTANT_V1_0 = "claude-instant-v1.0"

DEFAULT_MODEL = CLAUDE_3_SONNET

# Maximum image content blocks accepted across all messages of one request
MAX_IMAGE_BLOCKS = 20


@dataclass(frozen=True)
class ModelCapabilities:
    """Operations and content types a model supports."""

    image_compatible: bool = False
    message_compatible: bool = False
    completion_compatible: bool = False

    @property
    def is_valid(self) -> bool:
        """A model is valid if it supports anything at all."""
        return self.image_compatible or self.message_compatible or self.completion_compatible


_NO_CAPABILITIES = ModelCapabilities()


def _build_matrix() -> Mapping[str, ModelCapabilities]:
    claude_3 = ModelCapabilities(
        image_compatible=True,
        message_compatible=True,
        completion_compatible=True,
    )
    claude_2_1 = ModelCapabilities(message_compatible=True, completion_compatible=True)
    legacy = ModelCapabilities(completion_compatible=True)

    table: dict[str, ModelCapabilities] = {
        CLAUDE_3_5_SONNET_20241022: claude_3,
        CLAUDE_3_5_SONNET: claude_3,
        CLAUDE_3_OPUS: claude_3,
        CLAUDE_3_SONNET: claude_3,
        CLAUDE_3_HAIKU: claude_3,
        CLAUDE_V2_1: claude_2_1,
    }
    for model in (
        CLAUDE_V2,
        CLAUDE_V1,
        CLAUDE_V1_100K,
        CLAUDE_V1_3,
        CLAUDE_V1_3_100K,
        CLAUDE_V1_2,
        CLAUDE_V1_0,
        CLAUDE_INSTANT_V1,
        CLAUDE_INSTANT_V1_100K,
        CLAUDE_INSTANT_V1_1,
        CLAUDE_INSTANT_V1_1_100K,
        CLAUDE_INSTANT_V1_0,
    ):
        table[model] = legacy
    return MappingProxyType(table)


CAPABILITY_MATRIX: Mapping[str, ModelCapabilities] = _build_matrix()


def capabilities(model: str) -> ModelCapabilities:
    """Look up a model's capabilities. Unknown models get all-false flags."""
    return CAPABILITY_MATRIX.get(model, _NO_CAPABILITIES)


def is_image_compatible(model: str) -> bool:
    return capabilities(model).image_compatible


def is_message_compatible(model: str) -> bool:
    return capabilities(model).message_compatible


def is_completion_compatible(model: str) -> bool:
    return capabilities(model).completion_compatible


def is_valid_model(model: str) -> bool:
    return capabilities(model).is_valid
