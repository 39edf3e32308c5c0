"""
Seat-capacity lookup with a fixed-priority fallback across API generations.

The v1 event-type endpoint is tried first and v2 is the fallback.
Capacity is never guessed: if no lookup yields a positive integer the
whole resolution fails with a ConfigurationError.
"""

import logging
from typing import Any, Optional, Protocol

from lounge_booking.errors import ConfigurationError, UpstreamError
from lounge_booking.provider.cal_client import CalClient
from lounge_booking.utils import dig

logger = logging.getLogger(__name__)


class CapacityLookupFailed(Exception):
    """One capacity source could not produce a usable seat count."""


class CapacityLookup(Protocol):
    """A source of ``seatsPerTimeSlot`` for an event type."""

    name: str

    async def seats_per_time_slot(self, event_type_id: str) -> int:
        """Return the per-slot capacity or raise CapacityLookupFailed."""
        ...


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value > 0:
        return value
    return None


class V1EventTypeLookup:
    """Reads ``event_type.seatsPerTimeSlot`` from the v1 event-type endpoint."""

    name = "v1"

    def __init__(self, client: CalClient) -> None:
        self._client = client

    async def seats_per_time_slot(self, event_type_id: str) -> int:
        response = await self._client.get_event_type_v1(event_type_id)
        if not response.ok:
            raise CapacityLookupFailed(
                f"v1 event type {event_type_id} returned status {response.status_code}"
            )
        seats = _positive_int(dig(response.payload, "event_type", "seatsPerTimeSlot"))
        if seats is None:
            logger.debug("v1 event type payload without seats: %s", response.payload)
            raise CapacityLookupFailed(
                f"v1 event type {event_type_id} has no valid seatsPerTimeSlot"
            )
        return seats


class V2EventTypeLookup:
    """Reads ``eventType.seats.seatsPerTimeSlot`` from the v2 event-type endpoint."""

    name = "v2"

    def __init__(self, client: CalClient) -> None:
        self._client = client

    async def seats_per_time_slot(self, event_type_id: str) -> int:
        response = await self._client.get_event_type_v2(event_type_id)
        if not response.ok:
            raise CapacityLookupFailed(
                f"v2 event type {event_type_id} returned status {response.status_code}"
            )
        seats = _positive_int(
            dig(response.payload, "eventType", "seats", "seatsPerTimeSlot")
        )
        if seats is None:
            logger.debug("v2 event type payload without seats: %s", response.payload)
            raise CapacityLookupFailed(
                f"v2 event type {event_type_id} has no valid seatsPerTimeSlot"
            )
        return seats


def default_lookups(client: CalClient) -> list[CapacityLookup]:
    """Lookups in priority order: v1 first, v2 as fallback."""
    return [V1EventTypeLookup(client), V2EventTypeLookup(client)]


async def resolve_capacity(event_type_id: str, lookups: list[CapacityLookup]) -> int:
    """
    Return the first usable seat capacity from ``lookups``.

    Raises:
        ConfigurationError: If every lookup fails. ``details`` lists one
            reason per lookup.
    """
    failures: list[str] = []
    for lookup in lookups:
        try:
            seats = await lookup.seats_per_time_slot(event_type_id)
        except (CapacityLookupFailed, UpstreamError) as exc:
            logger.warning("Capacity lookup %s failed: %s", lookup.name, exc)
            failures.append(f"{lookup.name}: {exc}")
            continue
        logger.info(
            "seatsPerTimeSlot for event type %s is %d (via %s)",
            event_type_id, seats, lookup.name,
        )
        return seats

    logger.error("Could not determine seat capacity for event type %s", event_type_id)
    raise ConfigurationError(
        f"Configuration error: Could not determine seat capacity for event type {event_type_id}.",
        details=failures,
    )
