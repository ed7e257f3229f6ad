"""Application configuration and logging setup.

This module defines the application settings loaded from environment
variables, provides a cached accessor for them, and configures the
standard library logging used across the registry.
"""

import logging
import re
import sys
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Attributes:
        DATABASE_URL: Database connection string.
        RESET_ON_STARTUP: Drop and recreate all tables when the store opens.
        SQL_ECHO: Echo emitted SQL through the engine logger.
        LOG_LEVEL: Root level for the registry loggers.
        ALLOWED_ORIGINS: Allowed origins for CORS.
    """

    DATABASE_URL: str = "sqlite:///./PersonalDetailsDB.db"
    RESET_ON_STARTUP: bool = True
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = ["*"]

    class Config:
        """Pydantic configuration for loading environment variables."""

        env_file = ".env"
        extra = "allow"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    The settings object is cached to prevent reloading environment
    variables multiple times during application lifetime.
    """

    return Settings()


class SensitiveDataFilter(logging.Filter):
    """Mask plaintext passwords in log messages."""

    PATTERNS = [
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)[^"\'\s,}&]+', re.IGNORECASE), r"\1***"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        for pattern, replacement in self.PATTERNS:
            message = pattern.sub(replacement, message)
        record.msg = message
        record.args = ()
        return True


def configure_logging(settings: Settings | None = None) -> None:
    """Install a stream handler on the ``registry`` logger.

    Calling it more than once replaces the previously installed handler
    instead of stacking duplicates.

    Args:
        settings (Settings | None): Settings providing ``LOG_LEVEL``;
            defaults to the cached application settings.
    """

    settings = settings or get_settings()
    logger = logging.getLogger("registry")
    logger.setLevel(settings.LOG_LEVEL.upper())

    for handler in list(logger.handlers):
        if getattr(handler, "_registry_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    )
    handler.addFilter(SensitiveDataFilter())
    handler._registry_handler = True
    logger.addHandler(handler)

    if settings.SQL_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
