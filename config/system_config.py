# -*- coding: utf-8 -*-
"""
system_config.py - broker connection and runtime settings

Values are read once at startup (config.env, then .env, then the process
environment) and passed into each component as an immutable object.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfigError(ValueError):
    """Startup configuration is unusable (missing credentials etc.)."""


def load_env_files() -> None:
    """Load config.env first, then .env; already-set variables win."""
    load_dotenv("config.env")
    load_dotenv()


def env_value(name: str, default: T, cast: Callable[[str], T]) -> T:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except (ValueError, ArithmeticError):
        logger.warning("Ignoring malformed %s=%r, using default %r", name, raw, default)
        return default


@dataclass(frozen=True)
class SystemConfig:
    ALPACA_API_KEY: str = ""
    ALPACA_SECRET_KEY: str = ""
    ALPACA_BASE_URL: str = "https://paper-api.alpaca.markets"
    ALPACA_DATA_URL: str = "https://data.alpaca.markets"

    HTTP_TIMEOUT: float = 10.0
    MAX_CONNECTIONS: int = 8

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILE: str = "trading_bot.log"

    @classmethod
    def from_env(cls, load_files: bool = True) -> "SystemConfig":
        if load_files:
            load_env_files()
        return cls(
            ALPACA_API_KEY=os.getenv("ALPACA_API_KEY", "").strip(),
            ALPACA_SECRET_KEY=os.getenv("ALPACA_SECRET_KEY", "").strip(),
            ALPACA_BASE_URL=env_value("ALPACA_BASE_URL", cls.ALPACA_BASE_URL, str).rstrip("/"),
            ALPACA_DATA_URL=env_value("ALPACA_DATA_URL", cls.ALPACA_DATA_URL, str).rstrip("/"),
            HTTP_TIMEOUT=env_value("HTTP_TIMEOUT", cls.HTTP_TIMEOUT, float),
            MAX_CONNECTIONS=env_value("MAX_CONNECTIONS", cls.MAX_CONNECTIONS, int),
            LOG_LEVEL=env_value("LOG_LEVEL", cls.LOG_LEVEL, str).upper(),
            LOG_DIR=env_value("LOG_DIR", cls.LOG_DIR, str),
            LOG_FILE=env_value("LOG_FILE", cls.LOG_FILE, str),
        )

    def validate(self) -> None:
        missing = [
            name for name, value in (
                ("ALPACA_API_KEY", self.ALPACA_API_KEY),
                ("ALPACA_SECRET_KEY", self.ALPACA_SECRET_KEY),
            )
            if not value
        ]
        if missing:
            raise ConfigError(
                "Alpaca API credentials not found! Please set "
                + " and ".join(missing)
                + " (environment, config.env or .env)"
            )

    def masked_key(self) -> Optional[str]:
        if not self.ALPACA_API_KEY:
            return None
        return self.ALPACA_API_KEY[:4] + "..."
