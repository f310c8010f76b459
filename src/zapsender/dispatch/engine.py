"""
Dispatch engine: the sequential, paced send loop.
"""

import uuid
from collections.abc import Awaitable, Callable

import anyio

from zapsender.contacts.loader import ContactLoader
from zapsender.contacts.models import ContactRecord
from zapsender.contacts.phone import to_raw_number
from zapsender.dispatch.models import DispatchConfig, DispatchState, DispatchTally
from zapsender.messages.renderer import render_message
from zapsender.shared.logging import get_logger, run_id_var
from zapsender.transport.interface import ChatTransport

logger = get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class DispatchEngine:
    """Sends one templated message per contact, strictly in order.

    States move ``idle -> loading -> sending -> done``. Errors raised by the
    transport while handling a single contact are logged and counted; they
    never stop the run. Only send outcomes count as sent or failed. Failures
    while waiting for the transport or loading contacts propagate to the
    caller.
    """

    def __init__(
        self,
        transport: ChatTransport,
        config: DispatchConfig,
        loader: ContactLoader | None = None,
        sleep: Sleeper = anyio.sleep,
    ) -> None:
        self._transport = transport
        self._config = config
        self._loader = loader or ContactLoader()
        self._sleep = sleep
        self._state = DispatchState.IDLE
        self._current_index: int | None = None

    @property
    def state(self) -> DispatchState:
        return self._state

    @property
    def current_index(self) -> int | None:
        return self._current_index

    async def run(self) -> DispatchTally:
        """Run a complete dispatch and return its tally.

        Raises:
            RuntimeError: The engine already ran.
            ContactSourceError: The contact file cannot be read.
            TransportError: The transport never became ready.
        """
        if self._state != DispatchState.IDLE:
            raise RuntimeError(f"Dispatch already {self._state.value}")

        token = run_id_var.set(uuid.uuid4().hex[:12])
        try:
            await self._transport.wait_until_ready()

            self._state = DispatchState.LOADING
            logger.info("Transport ready, reading contacts", extra={"source": str(self._config.source_path)})
            result = await anyio.to_thread.run_sync(self._loader.load_file, self._config.source_path)
            contacts = result.contacts
            logger.info(
                "%d valid contact(s), starting dispatch",
                len(contacts),
                extra={"contacts": len(contacts)},
            )

            tally = DispatchTally()
            self._state = DispatchState.SENDING
            for index, contact in enumerate(contacts):
                self._current_index = index
                await self._dispatch_one(contact, tally)
                await self._sleep(self._config.pacing_delay_seconds)

            self._state = DispatchState.DONE
            logger.info(
                "Dispatch finished. Sent: %d | Failed: %d",
                tally.sent,
                tally.failed,
                extra={
                    "sent": tally.sent,
                    "failed": tally.failed,
                    "skipped": tally.skipped,
                    "lookup_errors": tally.lookup_errors,
                },
            )
            return tally
        finally:
            run_id_var.reset(token)

    async def _dispatch_one(self, contact: ContactRecord, tally: DispatchTally) -> None:
        message = render_message(self._config.template, contact.name, contact.schedule_label)
        raw_number = to_raw_number(contact.phone)

        try:
            recipient = await self._transport.lookup_recipient(raw_number)
        except Exception as e:
            tally.lookup_errors += 1
            logger.error(
                "Lookup failed for %s: %s",
                contact.name,
                e,
                extra={"phone": contact.phone, "error": str(e)},
            )
            return

        if recipient is None:
            tally.skipped += 1
            logger.warning(
                "Number %s is not on WhatsApp",
                contact.phone,
                extra={"phone": contact.phone},
            )
            return

        try:
            await self._transport.send_message(recipient, message)
        except Exception as e:
            tally.failed += 1
            logger.error(
                "Failed for %s: %s",
                contact.name,
                e,
                extra={"phone": contact.phone, "error": str(e)},
            )
            return

        tally.sent += 1
        logger.info(
            "Sent to %s (%s) - %s",
            contact.name,
            contact.phone,
            contact.schedule_label,
            extra={"phone": contact.phone},
        )
