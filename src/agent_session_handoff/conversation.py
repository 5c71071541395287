"""Conversation message model and small text helpers.

Collaborators send messages in a loose shape (``{"type": "ai", ...}`` from
the chat front end, ``{"role": "assistant", ...}`` from provider SDKs).
``ConversationMessage`` accepts both and normalises the role to
``MessageRole``.

Classes / functions
-------------------
- MessageRole          - normalised speaker enum
- ConversationMessage  - one message in a conversation
- truncate             - clip text to a character budget
- last_user_message    - newest user message in a sequence
- tail                 - trailing window of messages
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Sequence

from pydantic import BaseModel, field_validator, model_validator

_ROLE_ALIASES: dict[str, str] = {
    "user": "user",
    "human": "user",
    "ai": "assistant",
    "assistant": "assistant",
    "bot": "assistant",
    "model": "assistant",
    "system": "system",
    "tool": "tool",
}


class MessageRole(str, Enum):
    """Who produced a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ConversationMessage(BaseModel):
    """A single conversation message.

    Parameters
    ----------
    role:
        Speaker.  The aliases ``type``, ``ai``, ``human`` and ``bot`` are
        accepted on input.
    content:
        Message text.  Non-string content is coerced with ``str()``.
    timestamp:
        Optional time the message was sent.
    """

    model_config = {"frozen": True}

    role: MessageRole
    content: str = ""
    timestamp: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_type_key(cls, data: object) -> object:
        if isinstance(data, dict) and "role" not in data and "type" in data:
            data = {**data, "role": data["type"]}
        return data

    @field_validator("role", mode="before")
    @classmethod
    def _normalise_role(cls, value: object) -> object:
        if isinstance(value, str):
            return _ROLE_ALIASES.get(value.strip().lower(), value)
        return value

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: object) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @property
    def is_user(self) -> bool:
        return self.role is MessageRole.USER

    @property
    def is_assistant(self) -> bool:
        return self.role is MessageRole.ASSISTANT


def truncate(text: str, limit: int, suffix: str = "") -> str:
    """Clip ``text`` to at most ``limit`` characters.

    When clipping happens and ``suffix`` is given, the suffix is included
    within the limit.
    """
    if len(text) <= limit:
        return text
    if suffix and limit > len(suffix):
        return text[: limit - len(suffix)] + suffix
    return text[:limit]


def last_user_message(messages: Sequence[ConversationMessage]) -> ConversationMessage | None:
    """Return the newest user message in ``messages`` or None."""
    for message in reversed(messages):
        if message.is_user:
            return message
    return None


def tail(messages: Sequence[ConversationMessage], count: int) -> list[ConversationMessage]:
    """Return the last ``count`` messages as a new list."""
    if count <= 0:
        return []
    return list(messages[-count:])


__all__ = [
    "ConversationMessage",
    "MessageRole",
    "last_user_message",
    "tail",
    "truncate",
]

