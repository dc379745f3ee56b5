# yovo_server/core/gateway.py
# -*- coding: utf-8 -*-
"""
Yovo — LLM gateway
------------------
Sends a conversation to the configured chat-completion provider and always
comes back with something the assistant can say.

    result = await gateway.generate_response(history, PromptSection.GUIDANCE)
    result.response_text  # provider answer or a fixed fallback text

Steps:
1) Resolve the provider (deepseek | openai) from settings.
   Unknown provider   -> "unknown provider" fallback, no network call.
2) Missing API key    -> "API key not set" fallback, no network call.
3) Copy the history; optionally swap the system message for one prompt
   section (only in the copy, never in the stored session).
4) One chat-completion request, no retries.
5) Any transport error -> logged, generic apology fallback.
6) Success            -> provider text, unmodified.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

from yovo_server.core import prompts
from yovo_server.core.config import Settings, settings as default_settings
from yovo_server.core.prompts import PromptSection
from yovo_server.core.types import GatewayResult, Provider, ResponseKind
from yovo_server.providers.chat_completions import ProviderError, post_chat_completion
from yovo_server.runtime_state.conversation import ChatMessage, to_api_messages
from yovo_server.utils import Stopwatch

logger = logging.getLogger(__name__)

API_KEY_MISSING_TEXT = "Configuration Error: API key not set."
APOLOGY_TEXT = (
    "I apologize, but I'm having trouble connecting to my knowledge base right now. "
    "Please try again later."
)


def unknown_provider_text(name: str) -> str:
    return f"Configuration Error: Unknown provider '{(name or '').strip().lower()}'"


@dataclass(frozen=True)
class ProviderConfig:
    provider: Provider
    base_url: str
    api_key: Optional[str]
    model: str


def resolve_provider_config(provider: Provider, cfg: Settings) -> ProviderConfig:
    if provider is Provider.DEEPSEEK:
        return ProviderConfig(
            provider=provider,
            base_url=cfg.deepseek_api_url,
            api_key=cfg.deepseek_api_key,
            model=cfg.deepseek_model,
        )
    if provider is Provider.OPENAI:
        return ProviderConfig(
            provider=provider,
            base_url=cfg.openai_api_url,
            api_key=cfg.openai_api_key,
            model=cfg.openai_model,
        )
    raise ValueError(f"No configuration mapped for provider {provider!r}")


def apply_prompt_section(
    history: Sequence[ChatMessage],
    prompt_section: Union[PromptSection, str, None],
) -> List[ChatMessage]:
    """
    Copy of `history` with the system message replaced by one prompt section.

    Unknown or missing section names leave the copy as-is. If the history
    has no system message, one is inserted at the front.
    """
    messages = list(history)
    text = prompts.section(prompt_section)
    if text is None:
        return messages

    override = ChatMessage(role="system", content=text)
    for index, message in enumerate(messages):
        if message.role == "system":
            messages[index] = override
            break
    else:
        messages.insert(0, override)
    return messages


class LLMGateway:
    """
    Provider-agnostic chat-completion client with fallbacks.

    Parameters
    ----------
    settings:
        Settings to read provider, keys and generation limits from.
    transport:
        Callable with the signature of `post_chat_completion`. Tests inject
        a fake here instead of patching requests.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Callable[..., str] = post_chat_completion,
    ) -> None:
        self.settings = settings or default_settings
        self._transport = transport

    async def generate_response(
        self,
        history: Sequence[ChatMessage],
        prompt_section: Union[PromptSection, str, None] = None,
    ) -> GatewayResult:
        cfg = self.settings

        # 1) Provider
        provider = Provider.parse(cfg.llm_provider)
        if provider is None:
            logger.error("Unknown LLM provider: %s", cfg.llm_provider)
            return GatewayResult(
                text=unknown_provider_text(cfg.llm_provider),
                kind=ResponseKind.UNKNOWN_PROVIDER,
            )
        provider_cfg = resolve_provider_config(provider, cfg)

        # 2) Credentials
        if not provider_cfg.api_key:
            logger.error("%s_API_KEY is not set", provider.value.upper())
            return GatewayResult(
                text=API_KEY_MISSING_TEXT,
                kind=ResponseKind.CONFIG_ERROR,
                raw={"provider": provider.value},
            )

        # 3) Per-call copy with optional system prompt override
        messages = apply_prompt_section(history, prompt_section)
        if prompts.section(prompt_section) is not None:
            section_label = PromptSection(prompt_section).value
        else:
            section_label = "full system prompt"
        logger.debug(
            "Calling %s API (messages=%d, prompt_section=%s)",
            provider.value,
            len(messages),
            section_label,
        )

        # 4) One attempt, off the event loop
        try:
            with Stopwatch(f"{provider.value} chat completion", logger, logging.DEBUG):
                text = await asyncio.to_thread(
                    self._transport,
                    base_url=provider_cfg.base_url,
                    api_key=provider_cfg.api_key,
                    model=provider_cfg.model,
                    messages=to_api_messages(messages),
                    max_tokens=cfg.llm_max_tokens,
                    temperature=cfg.llm_temperature,
                    timeout=cfg.llm_timeout_s,
                )
        except ProviderError as exc:
            # 5) Degrade to the apology text
            logger.error(
                "Error calling %s API: message=%s status=%s payload=%r",
                provider.value,
                exc,
                exc.status,
                exc.payload,
            )
            return GatewayResult(
                text=APOLOGY_TEXT,
                kind=ResponseKind.PROVIDER_ERROR,
                raw={"provider": provider.value, "model": provider_cfg.model},
            )
        except Exception:  # noqa: BLE001
            # Transports are expected to raise ProviderError; anything else
            # still degrades to the apology text.
            logger.exception("Unexpected error calling %s API", provider.value)
            return GatewayResult(
                text=APOLOGY_TEXT,
                kind=ResponseKind.PROVIDER_ERROR,
                raw={"provider": provider.value, "model": provider_cfg.model},
            )

        # 6) Success
        return GatewayResult(
            text=text,
            kind=ResponseKind.OK,
            raw={"provider": provider.value, "model": provider_cfg.model},
        )
