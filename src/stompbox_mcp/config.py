"""Settings for reaching the device, read from environment variables.

Blank or unparsable values fall back to the defaults below.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .transport.tcp_connection import DIAL_TIMEOUT, MAX_BYTES, READ_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 24639
DEFAULT_LOG_LEVEL = "INFO"


def _env(key: str, default: str) -> str:
    value = os.environ.get(key, "").strip()
    return value or default


def _env_int(key: str, default: int) -> int:
    value = os.environ.get(key, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid %s=%r; using %d", key, value, default)
        return default


def _env_float(key: str, default: float) -> float:
    value = os.environ.get(key, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Invalid %s=%r; using %s", key, value, default)
        return default


@dataclass(frozen=True)
class Settings:
    """Connection parameters for the device control port."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    dial_timeout: float = DIAL_TIMEOUT
    read_timeout: float = READ_TIMEOUT
    max_bytes: int = MAX_BYTES
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from ``STOMPBOX_*`` environment variables."""
        return cls(
            host=_env("STOMPBOX_HOST", DEFAULT_HOST),
            port=_env_int("STOMPBOX_PORT", DEFAULT_PORT),
            dial_timeout=_env_float("STOMPBOX_DIAL_TIMEOUT", DIAL_TIMEOUT),
            read_timeout=_env_float("STOMPBOX_READ_TIMEOUT", READ_TIMEOUT),
            max_bytes=_env_int("STOMPBOX_MAX_BYTES", MAX_BYTES),
            log_level=_env("STOMPBOX_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )
