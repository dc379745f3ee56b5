# yovo_server/runtime_state/sessions.py
# -*- coding: utf-8 -*-
"""
Yovo — Runtime session registry
-------------------------------

Tracks the live state of every connected client:

- ConversationSession : the client's message history
- TopicProgress       : where the client is in the topic sequence
- lock                : serializes exchanges for that one client

Design notes
~~~~~~~~~~~~
- In-memory only; state is created on connect and dropped on disconnect.
- The registry is owned by the SessionOrchestrator (no module-level global).
- Structural changes (create/delete/lookup) go through one threading.Lock.
  Per-session payload needs no extra lock because the orchestrator holds
  the session's asyncio.Lock for the whole exchange.
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from yovo_server.core.prompts import compiled_prompt
from yovo_server.core.topics import TopicProgress
from yovo_server.runtime_state.conversation import (
    DEFAULT_KEEP_RECENT,
    DEFAULT_MAX_MESSAGES,
    ConversationSession,
)
from yovo_server.utils import get_logger

logger = get_logger("yovo.runtime_state")


@dataclass
class SessionState:
    """Everything one connection owns."""

    connection_id: str
    conversation: ConversationSession
    progress: TopicProgress
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SessionRegistry:
    """
    Map of connection id -> SessionState.

    Parameters
    ----------
    max_messages / keep_recent:
        History truncation limits for new sessions.
    clock:
        Clock handed to each TopicProgress (tests use a fake one).
    """

    def __init__(
        self,
        *,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        keep_recent: int = DEFAULT_KEEP_RECENT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_messages = max_messages
        self.keep_recent = keep_recent
        self._clock = clock
        self._sessions: Dict[str, SessionState] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, connection_id: object) -> bool:
        with self._lock:
            return connection_id in self._sessions

    def create(self, connection_id: str) -> SessionState:
        """
        Create fresh state seeded with the full system prompt.

        An existing entry for the same id is replaced.
        """
        state = SessionState(
            connection_id=connection_id,
            conversation=ConversationSession(
                connection_id,
                compiled_prompt(),
                max_messages=self.max_messages,
                keep_recent=self.keep_recent,
            ),
            progress=TopicProgress(clock=self._clock),
        )
        with self._lock:
            if connection_id in self._sessions:
                logger.warning("[SessionRegistry] Replacing existing session %s", connection_id)
            self._sessions[connection_id] = state
        logger.info("[SessionRegistry] Created session %s", connection_id)
        return state

    def get(self, connection_id: str) -> Optional[SessionState]:
        """Return the SessionState for `connection_id`, or None if not found."""
        with self._lock:
            return self._sessions.get(connection_id)

    def delete(self, connection_id: str) -> bool:
        """Drop a session. Returns False if there was nothing to drop."""
        with self._lock:
            state = self._sessions.pop(connection_id, None)
        if state is None:
            return False
        logger.info("[SessionRegistry] Deleted session %s", connection_id)
        return True

    def is_current(self, state: SessionState) -> bool:
        """True while `state` is still the registered state for its connection."""
        with self._lock:
            return self._sessions.get(state.connection_id) is state
