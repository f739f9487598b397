"""Tests for the model capability matrix."""

import pytest

from claudewire.core import models
from claudewire.core.models import (
    CAPABILITY_MATRIX,
    ModelCapabilities,
    capabilities,
    is_completion_compatible,
    is_image_compatible,
    is_message_compatible,
    is_valid_model,
)

CLAUDE_3_MODELS = [
    models.CLAUDE_3_5_SONNET_20241022,
    models.CLAUDE_3_5_SONNET,
    models.CLAUDE_3_OPUS,
    models.CLAUDE_3_SONNET,
    models.CLAUDE_3_HAIKU,
]

LEGACY_MODELS = [
    models.CLAUDE_V2,
    models.CLAUDE_V1,
    models.CLAUDE_V1_100K,
    models.CLAUDE_V1_3,
    models.CLAUDE_V1_3_100K,
    models.CLAUDE_V1_2,
    models.CLAUDE_V1_0,
    models.CLAUDE_INSTANT_V1,
    models.CLAUDE_INSTANT_V1_100K,
    models.CLAUDE_INSTANT_V1_1,
    models.CLAUDE_INSTANT_V1_1_100K,
    models.CLAUDE_INSTANT_V1_0,
]


class TestCapabilityMatrix:
    """Tests for capability lookups."""

    @pytest.mark.parametrize("model", CLAUDE_3_MODELS)
    def test_claude_3_supports_everything(self, model):
        """Claude 3 models support images, messages and completions."""
        assert is_image_compatible(model)
        assert is_message_compatible(model)
        assert is_completion_compatible(model)

    def test_claude_2_1_has_no_images(self):
        """claude-2.1 serves messages and completions but not images."""
        caps = capabilities(models.CLAUDE_V2_1)

        assert caps == ModelCapabilities(message_compatible=True, completion_compatible=True)

    @pytest.mark.parametrize("model", LEGACY_MODELS)
    def test_legacy_models_are_completion_only(self, model):
        """Claude 1, Instant and claude-2 only serve completions."""
        assert capabilities(model) == ModelCapabilities(completion_compatible=True)

    def test_unknown_model_has_no_capabilities(self):
        """Unknown identifiers are not an error, they just support nothing."""
        assert capabilities("gpt-4") == ModelCapabilities()
        assert not is_valid_model("gpt-4")
        assert not is_message_compatible("")

    def test_valid_iff_any_flag(self):
        """A model is valid exactly when it has at least one capability."""
        for model, caps in CAPABILITY_MATRIX.items():
            flags = (caps.image_compatible, caps.message_compatible, caps.completion_compatible)
            expected = any(flags)
            assert is_valid_model(model) is expected
            assert expected

    def test_images_imply_messages(self):
        """Every image-capable model can also serve messages."""
        for caps in CAPABILITY_MATRIX.values():
            if caps.image_compatible:
                assert caps.message_compatible

    def test_matrix_is_read_only(self):
        """The table cannot be modified after import."""
        with pytest.raises(TypeError):
            CAPABILITY_MATRIX["new-model"] = ModelCapabilities()  # type: ignore[index]

    def test_default_model_supports_messages(self):
        """The default model can be used with the message endpoint."""
        assert is_message_compatible(models.DEFAULT_MODEL)
