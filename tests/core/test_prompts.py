"""Tests for legacy prompt builders."""

from claudewire.core.prompts import ChatMessage, get_chat_prompt, get_prompt


class TestPrompts:
    """Tests for get_prompt and get_chat_prompt."""

    def test_get_prompt_strips_question(self):
        """The question is trimmed and wrapped in Human/Assistant turns."""
        assert get_prompt("  Why is the sky blue?\n") == (
            "\n\nHuman: Why is the sky blue?\n\nAssistant:"
        )

    def test_get_chat_prompt(self):
        """Each message becomes a turn and an open Assistant turn ends it."""
        prompt = get_chat_prompt(
            [
                ChatMessage(sender="Human", content="Hi"),
                ChatMessage(sender="Assistant", content="Hello!"),
                ChatMessage(sender="Human", content="How are you?"),
            ]
        )

        assert prompt == (
            "\n\nHuman: Hi\n\nAssistant: Hello!\n\nHuman: How are you?\n\nAssistant:"
        )

    def test_get_chat_prompt_empty(self):
        """An empty transcript is just the Assistant turn."""
        assert get_chat_prompt([]) == "\n\nAssistant:"
