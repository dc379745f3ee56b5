# yovo_server/routers/ws.py
# -*- coding: utf-8 -*-
"""
Yovo — WebSocket router
-----------------------
/ws/voice is the event channel between the browser voice front-end and the
SessionOrchestrator. One WebSocket = one connection id = one session.

Design goals
------------
- Keep the protocol simple and JSON-based (see models/events.py).
- Be robust against malformed frames (never crash the server on bad input).
- Keep reading while an LLM call is in flight, so a disconnect is noticed
  right away; the orchestrator then drops the late result.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from yovo_server.core.orchestrator import SessionOrchestrator
from yovo_server.models.events import (
    ChangeTopicPayload,
    ErrorPayload,
    EventFrame,
    InboundEvent,
    OutboundEvent,
    SpeechPayload,
    dump_payload,
    make_frame,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _send_error(websocket: WebSocket, message: str) -> None:
    """Send an error frame to the client."""
    try:
        await websocket.send_json(
            make_frame(OutboundEvent.ERROR, dump_payload(ErrorPayload(message=message)))
        )
    except Exception:  # noqa: BLE001
        # If we can't even send the error, just ignore.
        logger.debug("Failed to send error frame over WebSocket", exc_info=True)


def _emitter(websocket: WebSocket):
    async def emit(event: str, payload: Dict[str, Any]) -> None:
        await websocket.send_json({"type": event, "payload": payload})

    return emit


# ---------------------------------------------------------------------------
# /ws/voice
# ---------------------------------------------------------------------------


@router.websocket("/ws/voice")
async def websocket_voice(websocket: WebSocket) -> None:
    """
    Voice conversation endpoint.

    Expected message format (client -> server):

        {"type": "speech" | "change-topic" | "ping", "payload": {...}}
    """
    orchestrator: SessionOrchestrator = websocket.app.state.orchestrator

    await websocket.accept()
    connection_id = uuid.uuid4().hex
    orchestrator.on_connect(connection_id)
    emit = _emitter(websocket)
    tasks: Set[asyncio.Task] = set()

    def _spawn(coro) -> None:
        task = asyncio.create_task(coro)
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    try:
        await websocket.send_json(
            make_frame(OutboundEvent.CONNECTED, {"connectionId": connection_id})
        )

        while True:
            text = await websocket.receive_text()
            logger.debug("WS /ws/voice %s received: %r", connection_id, text)

            try:
                frame = EventFrame.model_validate_json(text)
            except ValidationError as exc:
                logger.warning("Invalid frame over WS from %s: %s", connection_id, exc)
                await _send_error(websocket, 'Frame must be {"type": ..., "payload": {...}}.')
                continue

            msg_type = frame.type.strip()

            # PING --------------------------------------------------------------
            if msg_type == InboundEvent.PING.value:
                await websocket.send_json(make_frame(OutboundEvent.PONG, {}))
                continue

            # SPEECH ------------------------------------------------------------
            if msg_type == InboundEvent.SPEECH.value:
                try:
                    speech = SpeechPayload.model_validate(frame.payload)
                except ValidationError as exc:
                    logger.warning("Invalid speech payload from %s: %s", connection_id, exc)
                    await _send_error(websocket, "Speech event must include non-empty text.")
                    continue
                _spawn(orchestrator.handle_speech(connection_id, speech.text, emit))
                continue

            # CHANGE-TOPIC ------------------------------------------------------
            if msg_type == InboundEvent.CHANGE_TOPIC.value:
                try:
                    change = ChangeTopicPayload.model_validate(frame.payload)
                except ValidationError as exc:
                    logger.warning("Invalid change-topic payload from %s: %s", connection_id, exc)
                    await _send_error(websocket, "Topic change must include a topic.")
                    continue
                _spawn(orchestrator.handle_change_topic(connection_id, change.topic, emit))
                continue

            # UNKNOWN TYPE ------------------------------------------------------
            logger.warning("Unknown event type from %s: %r", connection_id, msg_type)
            await _send_error(websocket, f"Unknown event type: {msg_type!r}")

    except WebSocketDisconnect:
        logger.info("WebSocket /ws/voice disconnected (%s)", connection_id)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error in WS /ws/voice: %s", exc)
        try:
            await websocket.close(code=1011)
        except Exception:  # noqa: BLE001
            pass
    finally:
        orchestrator.on_disconnect(connection_id)
