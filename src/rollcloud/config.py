"""
Runtime configuration.

Values come from the environment (optionally a ``.env`` file):

- ``ROLLCLOUD_API_BASE``: DiceCloud REST base URL
- ``ROLLCLOUD_HTTP_TIMEOUT``: request timeout in seconds
- ``ROLLCLOUD_LOG_LEVEL``: level used by :func:`configure_logging`
"""

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://dicecloud.com/api"
DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "INFO"


class Settings(BaseModel):
    """Configuration for fetching and logging."""

    api_base: str = Field(default=DEFAULT_API_BASE, description="DiceCloud REST base URL")
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0, description="Request timeout in seconds")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Logging level name")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        value = 0.0
    if value <= 0:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    return value


def load_settings(dotenv: bool = True) -> Settings:
    """Build settings from the environment, reading ``.env`` first when asked."""
    if dotenv and not load_dotenv():
        logger.debug(".env file not found, using process environment only")

    return Settings(
        api_base=(os.getenv("ROLLCLOUD_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
        http_timeout=_float_env("ROLLCLOUD_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        log_level=(os.getenv("ROLLCLOUD_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging for applications embedding the library."""
    settings = settings or load_settings()
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level)
    logger.debug("Logging configured at %s", settings.log_level)
