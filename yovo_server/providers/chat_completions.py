# yovo_server/providers/chat_completions.py
# -*- coding: utf-8 -*-
"""
Yovo Voice Chat Server — Chat-completion HTTP transport
-------------------------------------------------------
This module is the ONLY place that talks HTTP to an LLM provider.

DeepSeek and OpenAI both expose the same OpenAI-style endpoint:

    POST <base_url>/chat/completions
    {"model": ..., "messages": [...], "max_tokens": ..., "temperature": ...}

Responsibilities:
- Build the request (URL, headers, JSON payload).
- Make exactly one attempt (no retries: voice turns need bounded latency).
- Parse choices[0].message.content out of the response.
- Raise ProviderError with the HTTP status and response payload on any failure.

It is used by yovo_server/core/gateway.py, which turns ProviderError into
the spoken apology fallback.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when a chat-completion call fails (network, HTTP or payload)."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload


def build_payload(
    messages: List[Dict[str, str]],
    model: str,
    max_tokens: int,
    temperature: float,
) -> Dict[str, Any]:
    """JSON body for an OpenAI-style chat-completion request."""
    return {
        "model": model,
        "messages": messages,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }


def _error_payload(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text[:500]


def post_chat_completion(
    *,
    base_url: str,
    api_key: str,
    model: str,
    messages: List[Dict[str, str]],
    max_tokens: int,
    temperature: float,
    timeout: float,
) -> str:
    """
    Send one chat-completion request and return the assistant's text.

    The content is returned exactly as the provider sent it.

    Raises
    ------
    ProviderError
        If the request fails, the status is not 2xx, or the body does not
        carry choices[0].message.content.
    """
    url = base_url.rstrip("/") + "/chat/completions"
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    payload = build_payload(messages, model, max_tokens, temperature)

    try:
        resp = requests.post(url, headers=headers, json=payload, timeout=timeout)
    except requests.RequestException as exc:
        raise ProviderError(f"HTTP request to {url} failed: {exc}") from exc

    if not 200 <= resp.status_code < 300:
        raise ProviderError(
            f"Provider returned HTTP {resp.status_code}",
            status=resp.status_code,
            payload=_error_payload(resp),
        )

    try:
        data = resp.json()
    except ValueError as exc:
        raise ProviderError(
            "Provider returned non-JSON response.",
            status=resp.status_code,
            payload=resp.text[:500],
        ) from exc

    try:
        # OpenAI-style: choices[0].message.content
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderError(
            "Response JSON missing choices[0].message.content",
            status=resp.status_code,
            payload=data,
        ) from exc

    if not isinstance(content, str) or not content.strip():
        raise ProviderError(
            "Provider returned empty content.",
            status=resp.status_code,
            payload=data,
        )

    return content
