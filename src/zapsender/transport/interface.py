"""
Chat transport interface definition.

The dispatch core consumes a transport through three capabilities only:
waiting for readiness, resolving a number to a recipient, and sending a
message. Session lifecycle notifications (QR code, auth failure,
disconnect) are delivered out of band to registered listeners.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import anyio

from zapsender.shared.logging import get_logger

logger = get_logger(__name__)


class TransportEventType(str, Enum):
    """Out-of-band session notifications."""

    QR = "qr"
    READY = "ready"
    AUTH_FAILURE = "auth_failure"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class TransportEvent:
    """Session notification emitted by a transport."""

    event_type: TransportEventType
    detail: str = ""
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class RecipientHandle:
    """Opaque recipient reference returned by a successful lookup."""

    number: str
    serialized: str

    @classmethod
    def for_number(cls, number: str) -> "RecipientHandle":
        return cls(number=number, serialized=f"{number}@c.us")


TransportListener = Callable[[TransportEvent], None]


class TransportError(Exception):
    """Base exception for chat transport errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class TransportNotReadyError(TransportError):
    """The transport could not reach the ready state."""


class RecipientLookupError(TransportError):
    """A recipient lookup could not be completed."""


class SendMessageError(TransportError):
    """A message could not be sent."""


class ChatTransport(ABC):
    """Abstract interface for chat transports.

    The async entrypoints delegate to the ``*_sync`` methods in a worker
    thread, so blocking adapters only implement the sync side. A transport is
    a single-owner resource: callers never issue overlapping calls.
    """

    def __init__(self) -> None:
        self._listeners: list[TransportListener] = []

    def add_listener(self, listener: TransportListener) -> None:
        self._listeners.append(listener)

    def emit(self, event: TransportEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Transport listener failed",
                    extra={"event_type": event.event_type.value},
                )

    async def wait_until_ready(self) -> None:
        """Suspend until the session is authenticated and usable."""
        await anyio.to_thread.run_sync(self.wait_until_ready_sync)

    async def lookup_recipient(self, raw_number: str) -> RecipientHandle | None:
        """Resolve a digits-only number; None when it has no account."""
        return await anyio.to_thread.run_sync(self.lookup_recipient_sync, raw_number)

    async def send_message(self, recipient: RecipientHandle, text: str) -> None:
        """Send ``text``; raises on failure."""
        await anyio.to_thread.run_sync(self.send_message_sync, recipient, text)

    async def close(self) -> None:
        await anyio.to_thread.run_sync(self.close_sync)

    @abstractmethod
    def wait_until_ready_sync(self) -> None:
        ...

    @abstractmethod
    def lookup_recipient_sync(self, raw_number: str) -> RecipientHandle | None:
        ...

    @abstractmethod
    def send_message_sync(self, recipient: RecipientHandle, text: str) -> None:
        ...

    def close_sync(self) -> None:
        """Release transport resources. No-op by default."""
