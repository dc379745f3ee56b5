# yovo_server/core/types.py
# -*- coding: utf-8 -*-
"""
Yovo Voice Chat Server — Shared type helpers
--------------------------------------------
Small shared type definitions used across the core:

- Provider      : supported chat-completion backends
- ResponseKind  : which path produced a gateway reply
- GatewayResult : reply text plus its kind (success or one of the fallbacks)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Provider(str, Enum):
    DEEPSEEK = "deepseek"
    OPENAI = "openai"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Provider"]:
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return None


class ResponseKind(str, Enum):
    OK = "ok"
    CONFIG_ERROR = "config_error"
    UNKNOWN_PROVIDER = "unknown_provider"
    PROVIDER_ERROR = "provider_error"


@dataclass(frozen=True)
class GatewayResult:
    """
    Result of one LLMGateway call.

    Every kind carries text that is spoken to the student and stored as an
    assistant turn; `kind` only tells logs and tests which path was taken.

    Attributes
    ----------
    text:
        Assistant reply, or a fixed fallback text.
    kind:
        ResponseKind.OK for a real provider answer.
    raw:
        Optional backend metadata (provider, model).
    """

    text: str
    kind: ResponseKind = ResponseKind.OK
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def response_text(self) -> str:
        return self.text

    @property
    def is_fallback(self) -> bool:
        return self.kind is not ResponseKind.OK
