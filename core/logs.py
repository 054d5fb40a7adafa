from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from core.settings import LOGGING

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return ``daygrid.<name>`` with the shared rotating file handler attached."""

    logger = logging.getLogger(f"daygrid.{name}")
    if not logger.handlers:
        LOGGING.path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            LOGGING.path,
            maxBytes=LOGGING.max_bytes,
            backupCount=LOGGING.backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(LOGGING.level)
    return logger


def read_log_tail(max_lines: int = 200) -> str:
    try:
        lines = LOGGING.path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return ""
    return "\n".join(lines[-max_lines:])


__all__ = ["get_logger", "read_log_tail"]
