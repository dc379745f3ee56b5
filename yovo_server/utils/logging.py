# -*- coding: utf-8 -*-
"""
Yovo Voice Chat Server — logging utilities
------------------------------------------
Central logging configuration for the server.

We try to:
- Use a consistent format across all modules.
- Honour settings.debug (more verbose in development).
- Keep a combined.log and an error.log when a logs directory is configured.
- Play nice with Uvicorn/FastAPI logs.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _add_file_handlers(root: logging.Logger, logs_dir: Path, base_level: int) -> None:
    """Attach combined.log / error.log handlers once per path."""
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        root.warning("Could not create logs dir %s: %s; file logging disabled.", logs_dir, exc)
        return

    existing = {
        getattr(h, "baseFilename", None)
        for h in root.handlers
        if isinstance(h, logging.FileHandler)
    }
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    for filename, level in (("combined.log", base_level), ("error.log", logging.ERROR)):
        path = str((logs_dir / filename).resolve())
        if path in existing:
            continue
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)


def setup_logging(
    *,
    debug: bool = False,
    level: Optional[int] = None,
    logs_dir: Optional[Path] = None,
) -> None:
    """
    Configure root logging for the process.

    Parameters
    ----------
    debug:
        If True, default log level becomes DEBUG, otherwise INFO.
        This is typically wired from settings.debug.
    level:
        Optional explicit logging level (overrides debug flag).
    logs_dir:
        Optional directory for combined.log / error.log.

    This function is idempotent: calling it multiple times is safe.
    """
    if level is not None:
        base_level = level
    else:
        base_level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger()
    if root.handlers:
        # Already configured (uvicorn, pytest, a previous call): adjust levels.
        root.setLevel(base_level)
        for h in root.handlers:
            if isinstance(h, logging.FileHandler) and h.level == logging.ERROR:
                continue
            h.setLevel(base_level)
    else:
        logging.basicConfig(
            level=base_level,
            format=LOG_FORMAT,
            datefmt=DATE_FORMAT,
        )

    if logs_dir is not None:
        _add_file_handlers(root, Path(logs_dir), base_level)

    # Tweak noisy loggers
    for noisy in ("uvicorn.access", "httpx", "urllib3"):
        logging.getLogger(noisy).setLevel(os.getenv("YOVO_NOISY_LOG_LEVEL", "WARNING"))


def get_logger(name: str) -> logging.Logger:
    """
    Small convenience wrapper around logging.getLogger.

        from yovo_server.utils import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)
