# yovo_server/core/orchestrator.py
# -*- coding: utf-8 -*-
"""
Yovo — Session orchestrator
---------------------------
Ties the per-connection pieces together:

    connect       -> registry.create (system prompt + initial topic)
    speech        -> user turn -> processingStart -> gateway -> assistant turn
                     -> record round -> maybe advance -> llmResponse
    change-topic  -> jump_to (any value) -> announcement turn -> gateway with the topic's
                     prompt section -> assistant turn -> llmResponse
    disconnect    -> registry.delete

Exchanges for one connection run one at a time (per-session asyncio.Lock);
different connections never wait on each other. If the connection goes away
while the LLM call is in flight, the late result is dropped.

Gateway fallbacks (missing key, provider down, ...) are normal assistant
turns. Anything that raises here is reported with a generic `error` event
and never takes the process down.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from yovo_server.core.gateway import LLMGateway
from yovo_server.core.topics import Topic, section_for_topic
from yovo_server.models.events import (
    ErrorPayload,
    LLMResponsePayload,
    OutboundEvent,
    SessionStatePayload,
    dump_payload,
)
from yovo_server.runtime_state.sessions import SessionRegistry, SessionState

logger = logging.getLogger(__name__)

Emitter = Callable[[str, Dict[str, Any]], Awaitable[None]]

SPEECH_ERROR_MESSAGE = "Error processing your request. Please try again."
TOPIC_ERROR_MESSAGE = "Error changing the discussion topic. Please try again."
NO_SESSION_MESSAGE = "No active session. Please reconnect."


def _preview(text: str, limit: int = 100) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def transition_message(topic: str) -> str:
    """Synthetic user turn announcing an explicit topic change."""
    parsed = Topic.parse(topic)
    label = parsed.label if parsed is not None else topic.replace("-", " ")
    return f"Let's move on to discuss {label}"


class SessionOrchestrator:
    """
    Per-connection conversation flow.

    Parameters
    ----------
    gateway:
        LLMGateway (or anything with the same `generate_response`).
    registry:
        Session registry; a fresh one is created if omitted.
    """

    def __init__(
        self,
        gateway: LLMGateway,
        registry: Optional[SessionRegistry] = None,
    ) -> None:
        self.gateway = gateway
        self.registry = registry if registry is not None else SessionRegistry()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def on_connect(self, connection_id: str) -> SessionState:
        logger.info("New client connected: %s", connection_id)
        return self.registry.create(connection_id)

    def on_disconnect(self, connection_id: str) -> None:
        logger.info("Client disconnected: %s", connection_id)
        self.registry.delete(connection_id)

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    async def handle_speech(self, connection_id: str, text: str, emit: Emitter) -> None:
        state = self.registry.get(connection_id)
        if state is None:
            logger.warning("speech for unknown connection %s", connection_id)
            await self._emit_error(emit, NO_SESSION_MESSAGE)
            return

        async with state.lock:
            if not self.registry.is_current(state):
                logger.info("Dropping queued speech for closed connection %s", connection_id)
                return
            try:
                logger.info("Received from %s: %s", connection_id, text)
                state.conversation.add_user(text)
                await emit(OutboundEvent.PROCESSING_START.value, {})

                result = await self.gateway.generate_response(state.conversation.snapshot())

                if not self.registry.is_current(state):
                    logger.info(
                        "Connection %s closed during LLM call; discarding response",
                        connection_id,
                    )
                    return

                logger.info("Response to %s: %s", connection_id, _preview(result.response_text))
                if result.is_fallback:
                    logger.warning("Fallback reply (%s) for %s", result.kind.value, connection_id)
                state.conversation.add_assistant(result.response_text)

                progress = state.progress
                progress.record_round()
                if progress.should_advance(text):
                    progress.advance()

                await emit(
                    OutboundEvent.LLM_RESPONSE.value,
                    self._response_payload(state, result.response_text),
                )
            except Exception:  # noqa: BLE001
                logger.exception("Error processing speech for %s", connection_id)
                await self._emit_error(emit, SPEECH_ERROR_MESSAGE)

    async def handle_change_topic(self, connection_id: str, topic: str, emit: Emitter) -> None:
        state = self.registry.get(connection_id)
        if state is None:
            logger.warning("change-topic for unknown connection %s", connection_id)
            await self._emit_error(emit, NO_SESSION_MESSAGE)
            return

        async with state.lock:
            if not self.registry.is_current(state):
                logger.info("Dropping queued topic change for closed connection %s", connection_id)
                return
            try:
                requested = Topic.parse(topic)
                if requested is None:
                    logger.warning(
                        "Unknown topic %r requested by %s; no prompt section override",
                        topic,
                        connection_id,
                    )
                state.progress.jump_to(topic)

                state.conversation.add_user(transition_message(topic))
                section = section_for_topic(requested)

                result = await self.gateway.generate_response(
                    state.conversation.snapshot(),
                    section,
                )

                if not self.registry.is_current(state):
                    logger.info(
                        "Connection %s closed during LLM call; discarding response",
                        connection_id,
                    )
                    return

                state.conversation.add_assistant(result.response_text)
                state.progress.refresh_duration()

                await emit(
                    OutboundEvent.LLM_RESPONSE.value,
                    self._response_payload(state, result.response_text),
                )
            except Exception:  # noqa: BLE001
                logger.exception("Error changing topic for %s", connection_id)
                await self._emit_error(emit, TOPIC_ERROR_MESSAGE)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _response_payload(state: SessionState, text: str) -> Dict[str, Any]:
        progress = state.progress
        return dump_payload(
            LLMResponsePayload(
                text=text,
                session_state=SessionStatePayload(
                    current_topic=progress.topic_name,
                    session_duration=progress.session_duration_s,
                ),
            )
        )

    @staticmethod
    async def _emit_error(emit: Emitter, message: str) -> None:
        try:
            await emit(OutboundEvent.ERROR.value, dump_payload(ErrorPayload(message=message)))
        except Exception:  # noqa: BLE001
            # If we can't even send the error, just ignore.
            logger.debug("Failed to emit error event", exc_info=True)
