"""
Contact loading: field aliasing, validation and deduplication.
"""

from collections.abc import Iterable, Mapping
from pathlib import Path

from zapsender.contacts.csv_parser import ContactFileReader
from zapsender.contacts.models import ContactRecord, LoadResult
from zapsender.contacts.phone import normalize_phone
from zapsender.shared.logging import get_logger

logger = get_logger(__name__)

NAME_FIELD = "name"
SCHEDULE_FIELD = "horario"

# Probed in order; the first column present with a value wins, even if empty.
PHONE_FIELD_ALIASES: tuple[str, ...] = (
    "Whatsapp",
    "WhatsApp",
    "whatsapp",
    "Phone",
    "number",
    "phone",
)


def get_field(row: Mapping[str, str | None], key: str) -> str | None:
    """Return a column value, or None when the column is absent."""
    return row.get(key)


def extract_phone_field(row: Mapping[str, str | None]) -> str:
    """Return the raw value of the first phone alias present in the row."""
    for alias in PHONE_FIELD_ALIASES:
        value = get_field(row, alias)
        if value is not None:
            return value
    return ""


class ContactLoader:
    """Turns raw CSV rows into an ordered, deduplicated contact list."""

    def __init__(self, reader: ContactFileReader | None = None) -> None:
        self._reader = reader or ContactFileReader()

    def load_file(self, path: str | Path) -> LoadResult:
        """Read and load a contact file.

        Raises:
            ContactSourceError: The file cannot be opened or read.
        """
        rows = self._reader.read(path)
        result = self.load(rows)
        if result.rejected_total > 0:
            logger.info(
                "Contacts ignored: %d without a valid phone, %d without a schedule",
                result.rejected_no_phone,
                result.rejected_no_schedule,
                extra={
                    "rejected_no_phone": result.rejected_no_phone,
                    "rejected_no_schedule": result.rejected_no_schedule,
                },
            )
        return result

    def load(self, rows: Iterable[Mapping[str, str | None]]) -> LoadResult:
        """Validate and deduplicate rows, keeping input order.

        A row is rejected when no phone can be derived from it, or when its
        schedule label is empty. Rows whose phone was already seen are
        dropped silently; the first one wins.
        """
        contacts: dict[str, ContactRecord] = {}
        rejected_no_phone = 0
        rejected_no_schedule = 0

        for row in rows:
            name = get_field(row, NAME_FIELD) or ""
            schedule_label = get_field(row, SCHEDULE_FIELD) or ""
            raw_phone = extract_phone_field(row)

            phone = normalize_phone(raw_phone)
            if phone is None:
                rejected_no_phone += 1
                logger.warning(
                    "Ignoring contact without a valid phone: %s",
                    name,
                    extra={"contact_name": name, "raw": raw_phone},
                )
                continue

            if not schedule_label.strip():
                rejected_no_schedule += 1
                logger.warning(
                    "Ignoring contact without a schedule: %s",
                    name,
                    extra={"contact_name": name, "raw": schedule_label},
                )
                continue

            if phone in contacts:
                continue

            contacts[phone] = ContactRecord(
                name=name.strip(),
                phone=phone,
                schedule_label=schedule_label.strip(),
            )

        return LoadResult(
            contacts=list(contacts.values()),
            rejected_no_phone=rejected_no_phone,
            rejected_no_schedule=rejected_no_schedule,
        )
