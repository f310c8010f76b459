"""
Command line entry point.

Waits for the chat session, loads the contact list and dispatches one
message per contact. Exit status is 0 on completion and non-zero when the
run aborts.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any

import anyio

from zapsender.config import Settings, get_settings
from zapsender.dispatch.engine import DispatchEngine
from zapsender.dispatch.models import DispatchConfig, DispatchTally, dispatch_config_from_settings
from zapsender.shared.exceptions import ContactSourceError
from zapsender.shared.logging import get_logger, setup_logging
from zapsender.transport.factory import get_transport
from zapsender.transport.interface import (
    ChatTransport,
    TransportError,
    TransportEvent,
    TransportEventType,
)

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="zapsender",
        description="Send a templated WhatsApp message to every contact of a CSV file",
    )
    ap.add_argument("--csv", dest="csv_path", help="Contact CSV (default: CSV_PATH or contacts.csv)")
    ap.add_argument("--delay-ms", dest="send_delay_ms", type=int, help="Pause between contacts in ms")
    ap.add_argument("--message", help="Message template with {name} and {horario}")
    ap.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run the browser without a window",
    )
    ap.add_argument("--dry-run", action="store_true", help="Use the in-memory transport, send nothing")
    ap.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    return ap


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return settings with explicitly given CLI values applied."""
    update: dict[str, Any] = {}
    for key in ("csv_path", "send_delay_ms", "message", "headless", "log_level"):
        value = getattr(args, key, None)
        if value is not None:
            update[key] = value
    if not update:
        return settings
    return Settings.model_validate({**settings.model_dump(), **update})


def log_transport_event(event: TransportEvent) -> None:
    if event.event_type == TransportEventType.QR:
        logger.info(
            "Scan the QR code with WhatsApp to log in",
            extra={"qr_image": event.payload.get("image_path"), "qr_code": event.payload.get("code")},
        )
    elif event.event_type == TransportEventType.READY:
        logger.info("WhatsApp session ready")
    elif event.event_type == TransportEventType.AUTH_FAILURE:
        logger.error("Authentication failure: %s", event.detail)
    elif event.event_type == TransportEventType.DISCONNECTED:
        logger.warning("Disconnected: %s", event.detail)


async def run(transport: ChatTransport, config: DispatchConfig) -> DispatchTally:
    """Run one dispatch and always release the transport."""
    engine = DispatchEngine(transport=transport, config=config)
    try:
        return await engine.run()
    finally:
        await transport.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = apply_overrides(get_settings(), args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(settings.log_level, settings.log_format)
    config = dispatch_config_from_settings(settings)

    transport = get_transport(headless=config.headless, force_mock=args.dry_run)
    transport.add_listener(log_transport_event)

    try:
        anyio.run(run, transport, config)
    except ContactSourceError as e:
        logger.error("Fatal error: %s", e, extra={"path": str(e.path) if e.path else None})
        return EXIT_FAILURE
    except TransportError as e:
        logger.error("Fatal error: %s", e, extra={"error_code": e.error_code})
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_INTERRUPTED
    except Exception:
        logger.exception("Fatal error")
        return EXIT_FAILURE

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
