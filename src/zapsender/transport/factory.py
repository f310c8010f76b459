"""
Chat transport factory.

Single source of truth for configuration: TransportConfig (pydantic
settings) plus the headless flag from the application settings.
"""

from __future__ import annotations

from zapsender.shared.logging import get_logger
from zapsender.transport.config import TransportConfig, TransportType, get_transport_config
from zapsender.transport.interface import ChatTransport

logger = get_logger(__name__)


def get_transport(
    config: TransportConfig | None = None,
    headless: bool = True,
    force_mock: bool = False,
) -> ChatTransport:
    """Build the configured transport.

    Args:
        config: Transport settings; read from the environment when omitted.
        headless: Run the browser without a window (WhatsApp Web only).
        force_mock: Use the in-memory transport regardless of configuration.
    """
    config = config or get_transport_config()
    transport_type = TransportType.MOCK if force_mock else config.transport_type

    logger.info(
        "Transport config resolved",
        extra={
            "transport_type": transport_type.value,
            "client_id": config.client_id,
            "headless": headless,
        },
    )

    if transport_type == TransportType.MOCK:
        from zapsender.transport.mock_adapter import MockChatTransport

        return MockChatTransport()

    if transport_type == TransportType.WHATSAPP_WEB:
        from zapsender.transport.whatsapp_web import WhatsAppWebTransport

        return WhatsAppWebTransport(config=config, headless=headless)

    raise ValueError(f"Unsupported transport_type: {transport_type}")
