# yovo_server/main.py
# -*- coding: utf-8 -*-
"""
Yovo Voice Chat Server — FastAPI application entrypoint
-------------------------------------------------------
This file wires everything together:

- Sets up central logging (console + logs/combined.log + logs/error.log).
- Creates the FastAPI app.
- Adds middleware (CORS outside production).
- Builds the LLMGateway + SessionOrchestrator and keeps them on app.state.
- Mounts routers:
    * /ws/voice   (WebSocket) → speech / change-topic events
- Meta endpoints: /, /health, /api/version

Typical run command (dev):

    uvicorn yovo_server.main:app --host 0.0.0.0 --port 3000 --reload

"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from yovo_server import __version__
from yovo_server.core.config import Settings, settings as default_settings
from yovo_server.core.gateway import LLMGateway
from yovo_server.core.orchestrator import SessionOrchestrator
from yovo_server.routers.ws import router as ws_router
from yovo_server.runtime_state import SessionRegistry
from yovo_server.utils import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[LLMGateway] = None,
) -> FastAPI:
    """
    Application factory.

    `settings` and `gateway` can be injected (tests use a fake gateway);
    by default the module-level settings and a real LLMGateway are used.
    """
    cfg = settings or default_settings
    setup_logging(debug=cfg.debug, logs_dir=cfg.logs_dir)

    app = FastAPI(
        title=cfg.app_name,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # ------------------------------------------------------------------
    # CORS: the browser front-end may be served from another origin in dev.
    # ------------------------------------------------------------------
    if cfg.environment != "production":
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    # ------------------------------------------------------------------
    # Conversation core
    # ------------------------------------------------------------------
    app.state.settings = cfg
    app.state.orchestrator = SessionOrchestrator(
        gateway=gateway or LLMGateway(settings=cfg),
        registry=SessionRegistry(
            max_messages=cfg.max_history_messages,
            keep_recent=cfg.keep_recent_messages,
        ),
    )

    app.include_router(ws_router)

    # ------------------------------------------------------------------
    # Meta / health endpoints
    # ------------------------------------------------------------------

    @app.get("/", tags=["meta"])
    async def root():
        return {
            "name": cfg.app_name,
            "environment": cfg.environment,
            "message": "Yovo voice chat server is running.",
        }

    @app.get("/health", tags=["meta"])
    async def health_check():
        """
        Lightweight health check for monitoring scripts.
        """
        logger.debug("Health check requested")
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": cfg.environment,
            "provider": cfg.llm_provider,
            "active_sessions": len(app.state.orchestrator.registry),
        }

    @app.get("/api/version", tags=["meta"])
    async def version():
        return {"version": __version__}

    logger.info(
        "Yovo server created (env=%s, provider=%s)",
        cfg.environment,
        cfg.llm_provider,
    )
    return app


# ASGI app for uvicorn
app = create_app()


if __name__ == "__main__":
    """
    Allow `python3 -m yovo_server.main` during development.
    """
    import uvicorn

    uvicorn.run(
        "yovo_server.main:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        reload=(default_settings.environment != "production"),
    )
