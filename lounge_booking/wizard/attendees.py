"""
Attendee roster for the attendee-info step.

Holds one main attendee plus ``people_count - 1`` additional attendees and
tracks which required fields are still blank. Resizing keeps whatever was
already entered for the positions that survive.

Usage:
    roster = AttendeeRoster()
    roster.resize(3)
    roster.set_field(0, "first_name", "Thandi")
    if not roster.all_filled():
        print(roster.missing_fields())
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from lounge_booking.schemas.booking_schema import Attendee
from lounge_booking.utils import normalize_phone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendeeField:
    """Schema for a single attendee field to collect."""

    name: str
    display_name: str
    normalizer: Optional[Callable[[str], str]] = None


ATTENDEE_FIELDS: list[AttendeeField] = [
    AttendeeField(name="first_name", display_name="first name"),
    AttendeeField(name="last_name", display_name="last name"),
    AttendeeField(name="email", display_name="email", normalizer=str.lower),
    AttendeeField(name="phone", display_name="phone number", normalizer=normalize_phone),
    AttendeeField(name="therapy", display_name="therapy"),
]

_FIELDS_BY_NAME: dict[str, AttendeeField] = {f.name: f for f in ATTENDEE_FIELDS}


def attendee_label(index: int) -> str:
    return "Main attendee" if index == 0 else f"Attendee {index + 1}"


class AttendeeRoster:
    """Main attendee at index 0, additional attendees after it."""

    def __init__(self) -> None:
        self.main = Attendee()
        self.additional: list[Attendee] = []

    @property
    def people_count(self) -> int:
        return 1 + len(self.additional)

    def all_attendees(self) -> list[Attendee]:
        return [self.main, *self.additional]

    def get(self, index: int) -> Attendee:
        if index == 0:
            return self.main
        if 1 <= index <= len(self.additional):
            return self.additional[index - 1]
        raise IndexError(f"No attendee at position {index} (party of {self.people_count})")

    def resize(self, people_count: int) -> None:
        """Truncate or pad the additional attendees to ``people_count - 1``."""
        if people_count < 1:
            raise ValueError(f"people_count must be >= 1, got {people_count}")
        wanted = people_count - 1
        if wanted < len(self.additional):
            del self.additional[wanted:]
        else:
            self.additional.extend(Attendee() for _ in range(wanted - len(self.additional)))
        logger.debug("Roster resized to %d attendee(s)", people_count)

    def set_field(self, index: int, name: str, value: str) -> str:
        """Store a normalized field value and return what was stored."""
        defn = _FIELDS_BY_NAME.get(name)
        if defn is None:
            valid = ", ".join(_FIELDS_BY_NAME)
            raise ValueError(f"Unknown attendee field '{name}'. Valid: {valid}.")
        attendee = self.get(index)
        cleaned = value.strip()
        if defn.normalizer and cleaned:
            cleaned = defn.normalizer(cleaned)
        setattr(attendee, name, cleaned)
        return cleaned

    def update(self, index: int, **values: str) -> None:
        for name, value in values.items():
            self.set_field(index, name, value)

    def missing_fields(self) -> list[str]:
        """Human-readable list of blank required fields, e.g. "Attendee 2: email"."""
        missing = []
        for index, attendee in enumerate(self.all_attendees()):
            for defn in ATTENDEE_FIELDS:
                if not getattr(attendee, defn.name):
                    missing.append(f"{attendee_label(index)}: {defn.display_name}")
        return missing

    def all_filled(self) -> bool:
        return not self.missing_fields()

    def to_dict(self) -> dict[str, Any]:
        return {
            "main_attendee": self.main.model_dump(),
            "additional_attendees": [a.model_dump() for a in self.additional],
        }
