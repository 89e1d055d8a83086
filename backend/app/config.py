import logging
import math

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_TIMEOUT_SECONDS = 15.0
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Env vars map by name: YOUTUBE_API_KEY, YOUTUBE_TIMEOUT_SECONDS, LOG_LEVEL."""

    youtube_api_key: str | None = None
    youtube_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"

    @field_validator("youtube_api_key", mode="before")
    @classmethod
    def blank_key_is_missing(cls, value):
        if isinstance(value, str):
            value = value.strip()
        return value or None

    @field_validator("youtube_timeout_seconds", mode="before")
    @classmethod
    def fallback_timeout(cls, value):
        try:
            parsed = float(value)
        except (TypeError, ValueError):
            return DEFAULT_TIMEOUT_SECONDS
        if not math.isfinite(parsed) or parsed <= 0:
            return DEFAULT_TIMEOUT_SECONDS
        return parsed

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, value):
        return str(value or "INFO").strip().upper() or "INFO"


def load_settings() -> Settings:
    """
    Read settings from the process environment (and backend/.env if present).
    A missing YOUTUBE_API_KEY is not an error here; requests fail with 500 instead.
    """
    load_dotenv()
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
