"""Environment configuration and validation.

Settings are loaded from environment variables (optionally via a local `.env` file) and decide the
field matching policy used when callers do not pass one explicitly.
"""

from __future__ import annotations

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Parser settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    strict_parsing: bool = Field(default=False, alias="QUERY_PARSE_STRICT")
    allow_camel_case: bool = Field(default=True, alias="QUERY_ALLOW_CAMEL_CASE")


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
