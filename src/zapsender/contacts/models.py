"""
Contact domain models.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContactRecord(BaseModel):
    """A validated, deduplicated contact ready for dispatch."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="", description="Display name, may be empty")
    phone: str = Field(
        ...,
        pattern=r"^\+[0-9]+$",
        description="Canonical phone: '+' followed by digits",
    )
    schedule_label: str = Field(
        default="",
        description="Value substituted for the {horario} placeholder",
    )


@dataclass
class LoadResult:
    """Outcome of loading a contact list."""

    contacts: list[ContactRecord] = field(default_factory=list)
    rejected_no_phone: int = 0
    rejected_no_schedule: int = 0

    @property
    def rejected_total(self) -> int:
        return self.rejected_no_phone + self.rejected_no_schedule

    def __iter__(self) -> Iterator[Any]:
        """Unpack as ``contacts, no_phone, no_schedule``."""
        yield self.contacts
        yield self.rejected_no_phone
        yield self.rejected_no_schedule
