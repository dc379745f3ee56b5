# yovo_server/core/config.py
# -*- coding: utf-8 -*-
"""
Yovo Voice Chat Server — Configuration
--------------------------------------
Central configuration for the server, including:

- app metadata and environment mode
- API host/port
- logs directory
- LLM provider selection (DeepSeek or OpenAI, both chat-completion APIs)
- per-provider base URL, API key and default model
- generation limits and conversation history size

Values are read once from the environment / .env at import time and are
treated as immutable afterwards.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

# This file is: <root>/yovo_server/core/config.py
PACKAGE_DIR: Path = Path(__file__).resolve().parents[1]   # .../yovo_server
ROOT_DIR: Path = PACKAGE_DIR.parent                       # repository root

LOGS_DIR: Path = ROOT_DIR / "logs"


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """
    Global configuration for the voice chat server.

    This class is instantiated once at import time as `settings`.
    Tests build their own instances (e.g. `Settings(_env_file=None, ...)`)
    and pass them into the app factory / gateway explicitly.
    """

    model_config = SettingsConfigDict(
        env_file=ROOT_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App / server basics -----------------------------------------------
    app_name: str = "Yovo Voice Chat Server"
    environment: Literal["development", "production", "test"] = "development"
    debug: bool = True

    api_host: str = "0.0.0.0"
    api_port: int = 3000

    logs_dir: Optional[Path] = LOGS_DIR

    # --- LLM provider selection --------------------------------------------
    # Plain string on purpose: an unrecognized value must reach the gateway
    # so it can answer with the "unknown provider" fallback.
    llm_provider: str = Field(
        default="deepseek",
        description="Which chat-completion backend to use: deepseek | openai (env: LLM_PROVIDER).",
    )

    # --- DeepSeek -----------------------------------------------------------
    # ENV: DEEPSEEK_API_KEY=sk-...
    deepseek_api_key: Optional[str] = Field(
        default=None,
        description="API key for DeepSeek (env: DEEPSEEK_API_KEY).",
    )
    deepseek_api_url: str = "https://api.deepseek.com/v1"
    deepseek_model: str = "deepseek-chat"

    # --- OpenAI -------------------------------------------------------------
    # ENV: OPENAI_API_KEY=sk-...
    openai_api_key: Optional[str] = Field(
        default=None,
        description="API key for OpenAI (env: OPENAI_API_KEY).",
    )
    openai_api_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-3.5-turbo"

    # --- Generation ---------------------------------------------------------
    llm_timeout_s: float = 30.0
    llm_max_tokens: int = 350
    llm_temperature: float = 0.7

    # --- Conversation history ----------------------------------------------
    # Once the history grows past max_history_messages it is rewritten to
    # the system message + the keep_recent_messages newest entries.
    max_history_messages: int = 15
    keep_recent_messages: int = 16


# Single global settings instance used by the rest of the app.
settings = Settings()


if __name__ == "__main__":
    # Minimal self-test so you can quickly verify config loading.
    print("Yovo — Settings self-test")
    print(f"ROOT_DIR        : {ROOT_DIR}")
    print(f"LOGS_DIR        : {settings.logs_dir}")
    print(f"Environment     : {settings.environment} (debug={settings.debug})")
    print(f"Listen          : {settings.api_host}:{settings.api_port}")
    print(f"Provider        : {settings.llm_provider}")
    print(f"DeepSeek        : url={settings.deepseek_api_url!r}, model={settings.deepseek_model!r}, "
          f"API key set: {bool(settings.deepseek_api_key)}")
    print(f"OpenAI          : url={settings.openai_api_url!r}, model={settings.openai_model!r}, "
          f"API key set: {bool(settings.openai_api_key)}")
    print(f"Generation      : max_tokens={settings.llm_max_tokens}, temperature={settings.llm_temperature}, "
          f"timeout={settings.llm_timeout_s}s")
    print(f"History         : cap={settings.max_history_messages}, keep={settings.keep_recent_messages}")
