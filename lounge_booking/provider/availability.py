"""
Availability resolution against Cal.com.

Cross-references the event type's seat capacity with the v1 slot listing
and keeps only slots with enough remaining seats for the party.

Usage:
    client = CalClient.from_settings()
    slots = await resolve_availability(
        client, "2230830", "2025-05-01T00:00:00Z", "2025-05-01T23:59:59Z", requested_seats=2
    )
"""

from typing import Any, Optional

from lounge_booking.errors import UpstreamError
from lounge_booking.logging_context import get_request_logger
from lounge_booking.provider.cal_client import CalClient
from lounge_booking.provider.capacity import (
    CapacityLookup,
    default_lookups,
    resolve_capacity,
)
from lounge_booking.schemas.booking_schema import TimeSlot
from lounge_booking.utils import date_part

logger = get_request_logger(__name__)


def _attendee_count(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        return 0
    return raw


def slots_for_date(payload: Any, date: str) -> list[Any]:
    """Pick the raw slot list for ``date`` out of a v1 ``/slots`` payload.

    Anything malformed (no ``slots`` map, no entry for the date, a
    non-list entry) yields an empty list.
    """
    if not isinstance(payload, dict):
        return []
    slot_map = payload.get("slots")
    if not isinstance(slot_map, dict):
        return []
    entries = slot_map.get(date)
    if not isinstance(entries, list):
        return []
    return entries


def filter_slots(
    raw_slots: list[Any], seats_per_time_slot: int, requested_seats: int
) -> list[TimeSlot]:
    """Annotate raw slots with remaining seats and drop those that cannot fit the party.

    Raises:
        ValueError: If ``requested_seats`` is below 1.
    """
    if requested_seats < 1:
        raise ValueError(f"requested_seats must be >= 1, got {requested_seats}")
    available: list[TimeSlot] = []
    for raw in raw_slots:
        if not isinstance(raw, dict) or not isinstance(raw.get("time"), str):
            logger.debug("Skipping malformed slot entry: %r", raw)
            continue
        attendees = _attendee_count(raw.get("attendees"))
        remaining = seats_per_time_slot - attendees
        if remaining >= requested_seats:
            available.append(TimeSlot(time=raw["time"], remaining_seats=remaining))
        else:
            logger.debug(
                "Filtered out slot %s: %d seats left, %d requested",
                raw["time"], remaining, requested_seats,
            )
    return available


async def fetch_raw_slots(
    client: CalClient, event_type_id: str, start_time: str, end_time: str
) -> Any:
    """Fetch the full v1 slot map for the window.

    Raises:
        UpstreamError: If the provider answers with a non-success status.
    """
    response = await client.list_slots(event_type_id, start_time, end_time)
    if not response.ok:
        payload = response.payload if isinstance(response.payload, dict) else {}
        message = payload.get("message") or (
            f"Failed to fetch v1 availability: {response.reason}"
        )
        logger.error("Cal.com v1 slots error (%s): %s", response.status_code, payload)
        raise UpstreamError(
            str(message), status_code=response.status_code, cal_error=response.payload
        )
    return response.payload


async def resolve_availability(
    client: CalClient,
    event_type_id: str,
    start_time: str,
    end_time: str,
    requested_seats: int = 1,
    lookups: Optional[list[CapacityLookup]] = None,
) -> list[TimeSlot]:
    """
    Return the slots on ``start_time``'s date with at least ``requested_seats`` free.

    Raises:
        ConfigurationError: If seat capacity cannot be determined.
        UpstreamError: If the slot listing fails.
    """
    seats_per_time_slot = await resolve_capacity(
        event_type_id, lookups if lookups is not None else default_lookups(client)
    )
    payload = await fetch_raw_slots(client, event_type_id, start_time, end_time)

    requested_date = date_part(start_time)
    raw_slots = slots_for_date(payload, requested_date)
    available = filter_slots(raw_slots, seats_per_time_slot, requested_seats)
    logger.info(
        "Event type %s on %s: %d of %d slots fit %d seat(s)",
        event_type_id, requested_date, len(available), len(raw_slots), requested_seats,
    )
    return available
