"""Prompt builders for the legacy completion endpoint."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

HUMAN = "Human"
ASSISTANT = "Assistant"


@dataclass(frozen=True)
class ChatMessage:
    """One line of a chat transcript; ``sender`` is e.g. "Human" or a username."""

    sender: str
    content: str


def get_prompt(question: str) -> str:
    """Wrap a single question in the Human/Assistant turn format."""
    return f"\n\n{HUMAN}: {question.strip()}\n\n{ASSISTANT}:"


def get_chat_prompt(messages: Iterable[ChatMessage]) -> str:
    """Render a transcript, ending with an open Assistant turn."""
    lines = [f"\n\n{message.sender}: {message.content}" for message in messages]
    lines.append(f"\n\n{ASSISTANT}:")
    return "".join(lines)
