"""
Runtime state package for the Yovo server.

Per-connection conversation history and topic progress:

    from yovo_server.runtime_state import SessionRegistry

    registry = SessionRegistry()
    state = registry.create(connection_id)
    state.conversation.add_user("I like biology")
    state.progress.record_round()
    ...
    registry.delete(connection_id)
"""

from .conversation import ChatMessage, ConversationSession
from .sessions import SessionRegistry, SessionState

__all__ = [
    "ChatMessage",
    "ConversationSession",
    "SessionRegistry",
    "SessionState",
]
