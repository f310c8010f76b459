"""
Dispatch configuration and run state.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from zapsender.config import DEFAULT_MESSAGE, Settings


class DispatchState(str, Enum):
    """Lifecycle of a dispatch run."""

    IDLE = "idle"
    LOADING = "loading"
    SENDING = "sending"
    DONE = "done"


@dataclass(frozen=True)
class DispatchConfig:
    """Everything a dispatch run needs from the outside world."""

    pacing_delay_ms: int = 2000
    source_path: Path = Path("contacts.csv")
    headless: bool = True
    template: str = DEFAULT_MESSAGE

    def __post_init__(self) -> None:
        if self.pacing_delay_ms < 0:
            raise ValueError("pacing_delay_ms must be >= 0")

    @property
    def pacing_delay_seconds(self) -> float:
        return self.pacing_delay_ms / 1000


def dispatch_config_from_settings(settings: Settings) -> DispatchConfig:
    """Build DispatchConfig from application settings."""
    return DispatchConfig(
        pacing_delay_ms=settings.send_delay_ms,
        source_path=Path(settings.csv_path),
        headless=settings.headless,
        template=settings.message,
    )


@dataclass
class DispatchTally:
    """Per-run counters.

    Only attempted sends count as sent or failed. Lookup misses and lookup
    errors never reach a send and are tracked apart.
    """

    sent: int = 0
    failed: int = 0
    skipped: int = 0
    lookup_errors: int = 0

    @property
    def attempted(self) -> int:
        return self.sent + self.failed
