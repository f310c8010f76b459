"""
Application configuration with environment-driven settings.

Values are read from the OS environment and from a local ``.env`` file.
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MESSAGE = "Mensagem padrão: configure a variável MESSAGE no .env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    # Dispatch
    send_delay_ms: int = Field(
        default=2000,
        ge=0,
        description="Pause between consecutive contacts, in milliseconds",
    )
    csv_path: str = Field(
        default="contacts.csv",
        description="Contact list location",
    )
    headless: bool = Field(
        default=True,
        description="Run the browser without a visible window",
    )
    message: str = Field(
        default=DEFAULT_MESSAGE,
        description="Message template with {name} and {horario} placeholders",
    )

    @field_validator("headless", mode="before")
    @classmethod
    def parse_headless(cls, v: object) -> bool:
        """Only an explicit "false" turns headless mode off."""
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() != "false"

    @field_validator("message", mode="before")
    @classmethod
    def default_when_blank(cls, v: object) -> object:
        if v is None or (isinstance(v, str) and not v):
            return DEFAULT_MESSAGE
        return v


@lru_cache
def _get_settings_cached() -> Settings:
    return Settings()


def get_settings() -> Settings:
    # Under pytest the environment is monkeypatched per test: never reuse.
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return Settings()
    return _get_settings_cached()
