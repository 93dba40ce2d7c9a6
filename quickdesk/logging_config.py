"""
logging_config.py — Console logging for the quickdesk package
=============================================================
Every module asks get_logger(__name__) for its logger. All of them hang
off the "quickdesk" logger, which gets one stderr handler and the level
from QUICKDESK_LOG_LEVEL.
"""

import logging
import sys

from quickdesk.config import LOG_LEVEL

ROOT_LOGGER_NAME = "quickdesk"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def _normalize_level(level_name) -> int:
    if isinstance(level_name, int):
        return level_name
    s = str(level_name).strip().upper()
    if s in ("CRITICAL", "FATAL"):
        return logging.CRITICAL
    if s == "ERROR":
        return logging.ERROR
    if s in ("WARN", "WARNING"):
        return logging.WARNING
    if s == "DEBUG":
        return logging.DEBUG
    return logging.INFO


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(_normalize_level(LOG_LEVEL))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Returns a module-specific logger under the package root logger.
    The console handler is installed once, on first use.
    """
    _configure_root()
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
