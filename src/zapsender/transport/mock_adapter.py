"""
Mock chat transport for testing and dry runs.

Nothing leaves the process: lookups resolve every number not marked as
unknown, sends are recorded in memory.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

import anyio

from zapsender.shared.logging import get_logger
from zapsender.transport.interface import (
    ChatTransport,
    RecipientHandle,
    SendMessageError,
    TransportEvent,
    TransportEventType,
    TransportNotReadyError,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class SentMessage:
    recipient: RecipientHandle
    text: str
    sent_at: datetime


class MockChatTransport(ChatTransport):
    """In-memory chat transport."""

    def __init__(self) -> None:
        super().__init__()
        self._sent: list[SentMessage] = []
        self._lookups: list[str] = []
        self._unknown_numbers: set[str] = set()
        self._failing_numbers: dict[str, str] = {}
        self._ready_error: str | None = None
        self._ready = False
        self._closed = False
        self._in_flight = 0
        self.max_in_flight = 0

    def reset(self) -> None:
        self._sent.clear()
        self._lookups.clear()
        self._unknown_numbers.clear()
        self._failing_numbers.clear()
        self._ready_error = None
        self._ready = False
        self._closed = False
        self._in_flight = 0
        self.max_in_flight = 0

    def configure_unknown(self, *numbers: str) -> None:
        """Numbers that resolve to "not present"."""
        self._unknown_numbers.update(numbers)

    def configure_send_failure(self, number: str, error_message: str = "Mock send failure") -> None:
        self._failing_numbers[number] = error_message

    def configure_ready_failure(self, error_message: str = "Mock authentication failure") -> None:
        self._ready_error = error_message

    @property
    def sent(self) -> list[SentMessage]:
        return self._sent.copy()

    @property
    def lookups(self) -> list[str]:
        return self._lookups.copy()

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def closed(self) -> bool:
        return self._closed

    def _enter(self) -> None:
        self._in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self._in_flight)

    def _leave(self) -> None:
        self._in_flight -= 1

    # Calls yield to the event loop while counted as in flight.

    async def wait_until_ready(self) -> None:
        self._enter()
        try:
            await anyio.sleep(0)
            self.wait_until_ready_sync()
        finally:
            self._leave()

    async def lookup_recipient(self, raw_number: str) -> RecipientHandle | None:
        self._enter()
        try:
            await anyio.sleep(0)
            return self.lookup_recipient_sync(raw_number)
        finally:
            self._leave()

    async def send_message(self, recipient: RecipientHandle, text: str) -> None:
        self._enter()
        try:
            await anyio.sleep(0)
            self.send_message_sync(recipient, text)
        finally:
            self._leave()

    async def close(self) -> None:
        self.close_sync()

    def wait_until_ready_sync(self) -> None:
        if self._ready_error:
            self.emit(TransportEvent(TransportEventType.AUTH_FAILURE, detail=self._ready_error))
            raise TransportNotReadyError(self._ready_error, error_code="MOCK_AUTH_FAILURE")
        self._ready = True
        self.emit(TransportEvent(TransportEventType.READY))

    def lookup_recipient_sync(self, raw_number: str) -> RecipientHandle | None:
        self._lookups.append(raw_number)
        if raw_number in self._unknown_numbers:
            return None
        return RecipientHandle.for_number(raw_number)

    def send_message_sync(self, recipient: RecipientHandle, text: str) -> None:
        logger.info("Mock: sending message", extra={"to": recipient.serialized})
        error = self._failing_numbers.get(recipient.number)
        if error is not None:
            raise SendMessageError(error, error_code="MOCK_ERROR")
        self._sent.append(
            SentMessage(recipient=recipient, text=text, sent_at=datetime.now(timezone.utc))
        )

    def close_sync(self) -> None:
        self._closed = True
