# yovo_server/models/events.py
# -*- coding: utf-8 -*-
"""
Yovo Voice Chat Server — WebSocket event models
-----------------------------------------------
Every frame on /ws/voice is a JSON object:

    {"type": "<event name>", "payload": {...}}

Inbound (browser -> server):
    speech        {"text": "..."}
    change-topic  {"topic": "career-path"}
    ping          {}

Outbound (server -> browser):
    connected       {"connectionId": "..."}
    processingStart {}
    llmResponse     {"text": "...", "sessionState": {"currentTopic": "...", "sessionDuration": 12}}
    error           {"message": "..."}
    pong            {}
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, constr


class InboundEvent(str, Enum):
    SPEECH = "speech"
    CHANGE_TOPIC = "change-topic"
    PING = "ping"


class OutboundEvent(str, Enum):
    CONNECTED = "connected"
    PROCESSING_START = "processingStart"
    LLM_RESPONSE = "llmResponse"
    ERROR = "error"
    PONG = "pong"


class EventFrame(BaseModel):
    """Envelope shared by both directions."""

    type: str = Field(..., min_length=1)
    payload: Dict[str, Any] = Field(default_factory=dict)


class SpeechPayload(BaseModel):
    """Recognized speech from the browser's speech-to-text."""

    text: constr(min_length=1, strip_whitespace=True)


class ChangeTopicPayload(BaseModel):
    """Explicit jump request; unknown topics are accepted."""

    topic: constr(min_length=1, strip_whitespace=True)


class SessionStatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_topic: str = Field(..., alias="currentTopic")
    session_duration: int = Field(..., alias="sessionDuration")


class LLMResponsePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    session_state: SessionStatePayload = Field(..., alias="sessionState")


class ErrorPayload(BaseModel):
    message: str


def dump_payload(model: BaseModel) -> Dict[str, Any]:
    """Wire form (camelCase aliases) of a payload model."""
    return model.model_dump(mode="json", by_alias=True)


def make_frame(event: OutboundEvent, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": event.value, "payload": payload}
