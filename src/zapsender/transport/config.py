"""
Chat transport configuration.
"""

from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransportType(str, Enum):
    """Supported transport implementations."""

    WHATSAPP_WEB = "whatsapp_web"
    MOCK = "mock"


class TransportConfig(BaseSettings):
    """Transport configuration from environment."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    transport_type: TransportType = Field(default=TransportType.WHATSAPP_WEB)

    # Session persistence: one browser profile per client id
    client_id: str = Field(default="zap-sender")
    session_dir: str = Field(default=".wwebjs_auth")

    web_url: str = Field(default="https://web.whatsapp.com")

    # Timeouts
    ready_timeout_seconds: float = Field(default=180.0, gt=0)
    lookup_timeout_seconds: float = Field(default=20.0, gt=0)
    poll_interval_seconds: float = Field(default=1.0, gt=0, le=30)

    @property
    def profile_dir(self) -> Path:
        return Path(self.session_dir).resolve() / f"session-{self.client_id}"

    def get_chat_url(self, raw_number: str) -> str:
        base = self.web_url.rstrip("/")
        return f"{base}/send?phone={raw_number}"


def get_transport_config() -> TransportConfig:
    return TransportConfig()
