# yovo_server/runtime_state/conversation.py
# -*- coding: utf-8 -*-
"""
Yovo — Conversation history
---------------------------
One connection's ordered message history, in OpenAI chat format.

- The first message is always the system prompt.
- Appending past `max_messages` rewrites the history to the system message
  plus the `keep_recent` newest messages, so any read after `append`
  already sees the truncated form.
- Messages are frozen; `snapshot()` hands out a new list, so a per-call
  system prompt override can never leak back into the stored history.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Literal, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant"]

DEFAULT_MAX_MESSAGES = 15
DEFAULT_KEEP_RECENT = 16


class ChatMessage(BaseModel):
    """One role-tagged message."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = Field(..., min_length=1)

    def to_api(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ConversationSession:
    """
    Message history owned by a single connection.

    Parameters
    ----------
    connection_id:
        Opaque id of the owning connection.
    system_prompt:
        Content of the mandatory first (system) message.
    max_messages:
        Length above which the history is truncated.
    keep_recent:
        How many of the newest non-system messages survive truncation.
    """

    def __init__(
        self,
        connection_id: str,
        system_prompt: str,
        *,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        keep_recent: int = DEFAULT_KEEP_RECENT,
    ) -> None:
        self.connection_id = connection_id
        self.max_messages = max_messages
        self.keep_recent = keep_recent
        self._messages: List[ChatMessage] = [
            ChatMessage(role="system", content=system_prompt)
        ]

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"ConversationSession(connection_id={self.connection_id!r}, messages={len(self)})"

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def system_message(self) -> ChatMessage:
        return self._messages[0]

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)
        self.truncate()

    def add_user(self, content: str) -> ChatMessage:
        message = ChatMessage(role="user", content=content)
        self.append(message)
        return message

    def add_assistant(self, content: str) -> ChatMessage:
        message = ChatMessage(role="assistant", content=content)
        self.append(message)
        return message

    def truncate(self) -> bool:
        """
        Keep the system message and the `keep_recent` newest messages once the
        history is longer than `max_messages`. Returns True if anything was dropped.
        """
        if len(self._messages) <= self.max_messages:
            return False
        system, tail = self._messages[0], self._messages[1:]
        kept = tail[-self.keep_recent:] if self.keep_recent > 0 else []
        if len(kept) == len(tail):
            return False
        dropped = len(tail) - len(kept)
        self._messages = [system, *kept]
        logger.debug(
            "Truncated history for %s: dropped %d, kept %d",
            self.connection_id,
            dropped,
            len(self._messages),
        )
        return True

    def snapshot(self) -> List[ChatMessage]:
        return list(self._messages)


def to_api_messages(messages: Sequence[ChatMessage]) -> List[Dict[str, str]]:
    return [m.to_api() for m in messages]
