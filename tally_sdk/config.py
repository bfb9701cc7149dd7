"""
Configuration management for the Tally SDK.

Loads settings from environment variables (and a local .env file) with
sensible defaults.
"""
from __future__ import annotations
import os
import sys
from dataclasses import dataclass, field
from datetime import date
from typing import Optional
from dotenv import load_dotenv
from loguru import logger
from .xml_utils import parse_tally_date

load_dotenv()


def _parse_books_from_date() -> Optional[date]:
    """Parse TALLY_BOOKS_FROM (YYYY-MM-DD or YYYYMMDD) to a date."""
    return parse_tally_date(os.getenv("TALLY_BOOKS_FROM"))


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass
class TallyConfig:
    """Configuration settings for the Tally SDK."""

    # Tally connection settings
    tally_url: str = field(
        default_factory=lambda: os.getenv("TALLY_URL", "http://localhost:9000")
    )
    # Company injected into import requests. None lets Tally use whichever
    # company is currently active.
    tally_company: Optional[str] = field(
        default_factory=lambda: _optional_env("TALLY_COMPANY")
    )

    request_timeout: int = field(
        default_factory=lambda: _int_env("TALLY_REQUEST_TIMEOUT", 30)
    )
    retry_attempts: int = field(
        default_factory=lambda: _int_env("TALLY_RETRY_ATTEMPTS", 3)
    )

    # Books from date - default start of report periods
    # Set via TALLY_BOOKS_FROM env var (format: YYYY-MM-DD or YYYYMMDD)
    books_from: Optional[date] = field(default_factory=_parse_books_from_date)

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(
        default_factory=lambda: _optional_env("TALLY_SDK_LOG_FILE")
    )

    @classmethod
    def from_env(cls) -> "TallyConfig":
        """Create config from environment variables."""
        return cls()

    @property
    def base_url(self) -> str:
        return self.tally_url.rstrip("/")

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []
        if not self.tally_url:
            errors.append("TALLY_URL is required")
        elif not self.tally_url.startswith(("http://", "https://")):
            errors.append("TALLY_URL must start with http:// or https://")
        if self.request_timeout <= 0:
            errors.append("TALLY_REQUEST_TIMEOUT must be positive")
        if self.retry_attempts < 1:
            errors.append("TALLY_RETRY_ATTEMPTS must be at least 1")
        return errors


def configure_logging(config: TallyConfig, level: Optional[str] = None) -> None:
    """Install loguru sinks according to the config."""
    logger.remove()
    logger.add(sys.stderr, level=(level or config.log_level).upper())
    if config.log_file:
        logger.add(config.log_file, level="DEBUG", rotation="10 MB", retention=5)
