from lounge_booking.provider.availability import resolve_availability
from lounge_booking.provider.booking import submit_booking
from lounge_booking.provider.cal_client import CalClient, ProviderResponse
from lounge_booking.provider.capacity import (
    CapacityLookup,
    V1EventTypeLookup,
    V2EventTypeLookup,
    resolve_capacity,
)

__all__ = [
    "CalClient",
    "ProviderResponse",
    "CapacityLookup",
    "V1EventTypeLookup",
    "V2EventTypeLookup",
    "resolve_capacity",
    "resolve_availability",
    "submit_booking",
]
