"""Application settings powered by Pydantic BaseSettings."""

from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.fetch.config import FetchConfig
from src.fetch.constants import (
    DEFAULT_MAX_REDIRECT_HOPS,
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


class AppSettings(BaseSettings):
    """Centralized environment configuration.

    Every field can be set through an ``RSSSS_``-prefixed environment
    variable or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="RSSSS_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = DEFAULT_HOST
    port: Annotated[int, Field(ge=0, le=65535)] = DEFAULT_PORT
    json_logs: bool = True
    log_level: str = "INFO"

    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_response_size_bytes: int = DEFAULT_MAX_RESPONSE_SIZE_BYTES
    max_redirect_hops: int = DEFAULT_MAX_REDIRECT_HOPS

    def fetch_config(self) -> FetchConfig:
        """Build the fetch configuration from these settings."""
        return FetchConfig(
            user_agent=self.user_agent,
            timeout_seconds=self.timeout_seconds,
            max_response_size_bytes=self.max_response_size_bytes,
            max_redirect_hops=self.max_redirect_hops,
        )


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
