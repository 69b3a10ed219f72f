"""Logging setup: console always, file when LOG_FILE is set. Configured once at startup."""
from __future__ import annotations

import logging
import os

from voicebridge.config import Settings, get_settings

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_CONFIGURED = False


def configure_logging(settings: Settings | None = None) -> logging.Logger:
    """Install handlers on the root logger once. Safe to call again (no-op)."""
    global _CONFIGURED

    root = logging.getLogger()
    if _CONFIGURED:
        return root

    settings = settings or get_settings()
    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    root.setLevel(level)
    formatter = logging.Formatter(_LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    log_file = (settings.LOG_FILE or "").strip()
    if log_file:
        try:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        except OSError as e:
            root.warning("Log file %s unavailable, console only: %s", log_file, e)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    _CONFIGURED = True
    return root
