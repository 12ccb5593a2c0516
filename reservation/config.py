"""
Console configuration.

Values come from the environment, optionally seeded from a `.env` file.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "http://localhost:8080/api"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_TOAST_DURATION_MS = 3000


@dataclass(frozen=True)
class Settings:
    api_base: str = DEFAULT_API_BASE
    base_url: str = ""
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    toast_duration_ms: int = DEFAULT_TOAST_DURATION_MS
    log_level: str = "INFO"


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %s", name, raw, default)
        return default
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from environment variables.

    Args:
        env: Mapping to read instead of os.environ (a `.env` file is only
             loaded when reading the real environment)

    Returns:
        Settings with defaults applied for anything missing or malformed
    """
    if env is None:
        load_dotenv()
        env = os.environ

    base_url = env.get("RESERVATION_BASE_URL", "").strip().rstrip("/")
    return Settings(
        api_base=env.get("RESERVATION_API_BASE", DEFAULT_API_BASE).strip().rstrip("/"),
        base_url=base_url,
        request_timeout=_number(env, "RESERVATION_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT, float),
        toast_duration_ms=_number(env, "RESERVATION_TOAST_DURATION_MS", DEFAULT_TOAST_DURATION_MS, int),
        log_level=env.get("RESERVATION_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
