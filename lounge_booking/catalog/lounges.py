"""Lounge directory, therapy options, and destination choices."""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

BOOKING_DURATION_MINUTES = 30


@dataclass(frozen=True)
class Lounge:
    """A physical treatment location mapped to one Cal.com event type."""

    id: str
    name: str
    cal_link: str
    event_type_id: Optional[int]


LOUNGES: list[Lounge] = [
    Lounge("table_bay", "Table Bay Mall",
           "https://cal.com/thys123/table-bay-mall-bookings", 2230830),
    Lounge("camps_bay", "Camps Bay",
           "https://cal.com/thys123/camps-bay-bookings", 2231011),
    Lounge("durbanville", "Durbanville",
           "https://cal.com/thys123/durbanville-bookings", 2231049),
    Lounge("paarl", "Paarl",
           "https://cal.com/thys123/paarl-bookings", 2231140),
    Lounge("somerset_west", "Somerset West",
           "https://cal.com/thys123/somerset-west-bookings", 2231026),
    Lounge("stellenbosch", "Stellenbosch",
           "https://cal.com/thys123/stellenbosch-bookings", 2231061),
]

LOUNGE_DATA_MAP: dict[str, Lounge] = {lounge.id: lounge for lounge in LOUNGES}

THERAPY_OPTIONS: dict[str, str] = {
    "therapy_1": "Immune Boost IV",
    "therapy_2": "Energy Recharge IV",
    "therapy_3": "Hydration Deluxe IV",
}

DESTINATION_LOUNGE = "lounge"
DESTINATION_MOBILE = "mobile"

DESTINATIONS: dict[str, str] = {
    DESTINATION_LOUNGE: "Our treatment lounge",
    DESTINATION_MOBILE: "Your home, office...",
}


def get_lounge(lounge_id: Optional[str]) -> Optional[Lounge]:
    """Look up a lounge by ID. Returns None for unknown or empty IDs."""
    if not lounge_id:
        return None
    return LOUNGE_DATA_MAP.get(lounge_id)


def resolve_event_type_id(lounge_id: Optional[str]) -> Optional[int]:
    """Map a lounge ID to its Cal.com event type ID."""
    lounge = get_lounge(lounge_id)
    if lounge is None:
        logger.debug("Unknown lounge id: %r", lounge_id)
        return None
    return lounge.event_type_id


def get_all_lounges() -> list[dict]:
    """Return all lounges with the fields the booking form needs."""
    return [
        {"id": lounge.id, "name": lounge.name, "event_type_id": lounge.event_type_id}
        for lounge in LOUNGES
    ]


def get_all_therapies() -> list[dict]:
    """Return all therapy options as id/name pairs."""
    return [{"id": tid, "name": name} for tid, name in THERAPY_OPTIONS.items()]


def get_therapy_name(therapy_id: str) -> Optional[str]:
    """Resolve a therapy ID to its display name."""
    return THERAPY_OPTIONS.get(therapy_id)
