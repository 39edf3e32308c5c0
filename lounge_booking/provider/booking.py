"""
Booking submission to Cal.com v2.

Validation happens locally before any network call. The provider is the
system of record: a booking either exists there after one POST or it
does not, so nothing is stored or retried here.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from lounge_booking.catalog.lounges import (
    BOOKING_DURATION_MINUTES,
    DESTINATION_LOUNGE,
    resolve_event_type_id,
)
from lounge_booking.config import settings
from lounge_booking.errors import ClientInputError, UpstreamError
from lounge_booking.logging_context import get_request_logger
from lounge_booking.provider.cal_client import CalClient
from lounge_booking.schemas.booking_schema import BookingConfirmation, BookingRequest
from lounge_booking.utils import dig, full_name

logger = get_request_logger(__name__)

CAPACITY_KEYWORDS = ("full", "capacity")
CAPACITY_MESSAGE = (
    "Sorry, the selected time slot just became full or does not have enough seats. "
    "Please choose another time."
)


def validate_booking_request(request: BookingRequest) -> Optional[int]:
    """
    Check the request and resolve the event type to book against.

    Returns:
        The event type ID, or None for a mobile booking with no
        mobile event type configured.

    Raises:
        ClientInputError: If a required field is missing or the lounge is unknown.
    """
    main = request.main_attendee
    if not (
        request.appointment_slot
        and main.email
        and main.first_name
        and main.last_name
        and main.therapy
    ):
        raise ClientInputError("Missing required fields for main attendee or appointment slot")

    if request.destination == DESTINATION_LOUNGE:
        if not request.lounge_id:
            raise ClientInputError("Missing lounge ID for lounge booking")
        event_type_id = resolve_event_type_id(request.lounge_id)
        if not event_type_id:
            raise ClientInputError("Invalid lounge selection or missing event type ID")
        return event_type_id

    return settings.cal.mobile_event_type_id


def build_booking_payload(
    request: BookingRequest, event_type_id: Optional[int], timezone: str
) -> dict[str, Any]:
    """Build the v2 booking body.

    Phones and therapies have no field in the v2 attendee schema, so they
    travel in ``metadata``.
    """
    main = request.main_attendee
    payload: dict[str, Any] = {
        "start": request.appointment_slot,
        "attendee": {
            "name": full_name(main.first_name, main.last_name),
            "email": main.email,
            "timeZone": timezone,
        },
        "guests": [a.email for a in request.additional_attendees if a.email],
        "metadata": {
            "primaryPhone": main.phone,
            "primaryTherapy": main.therapy,
            "destination": request.destination,
            "additionalAttendeeDetails": json.dumps([
                {
                    "name": full_name(a.first_name, a.last_name),
                    "therapy": a.therapy,
                    "phone": a.phone,
                }
                for a in request.additional_attendees
            ]),
        },
    }
    if event_type_id is not None:
        payload["eventTypeId"] = event_type_id
    return payload


def _error_text(payload: Any, reason: str) -> str:
    if isinstance(payload, dict):
        for candidate in (
            payload.get("message"),
            dig(payload, "error", "message"),
            payload.get("details"),
        ):
            if candidate:
                return candidate if isinstance(candidate, str) else json.dumps(candidate)
    return reason


def user_message_for(error_text: str) -> str:
    """Map provider error text to the message shown on the attendee step."""
    lowered = error_text.lower()
    if any(word in lowered for word in CAPACITY_KEYWORDS):
        return CAPACITY_MESSAGE
    return f"Failed to create booking: {error_text}"


def _end_time_from(start_time: Optional[str]) -> Optional[str]:
    if not start_time:
        return None
    try:
        start = datetime.fromisoformat(start_time.replace("Z", "+00:00"))
    except ValueError:
        return None
    end = start + timedelta(minutes=BOOKING_DURATION_MINUTES)
    return end.isoformat().replace("+00:00", "Z")


def _confirmation_from(payload: Any, request: BookingRequest) -> BookingConfirmation:
    booking = dig(payload, "booking")
    if not isinstance(booking, dict):
        booking = {}
    booking_id = booking.get("uid") or dig(payload, "uid")
    start_time = booking.get("startTime") or request.appointment_slot
    end_time = booking.get("endTime") or _end_time_from(start_time)
    return BookingConfirmation(
        booking_id=str(booking_id) if booking_id is not None else None,
        start_time=start_time,
        end_time=end_time,
    )


async def submit_booking(client: CalClient, request: BookingRequest) -> BookingConfirmation:
    """
    Validate and submit a booking.

    Raises:
        ClientInputError: Before any network call, on invalid input.
        UpstreamError: If Cal.com rejects the booking; status mirrors Cal.com's.
    """
    event_type_id = validate_booking_request(request)
    payload = build_booking_payload(request, event_type_id, client.timezone)
    logger.debug("Cal.com v2 booking payload: %s", payload)

    response = await client.create_booking(payload)
    if not response.ok:
        error_text = _error_text(response.payload, response.reason)
        logger.error(
            "Cal.com v2 booking rejected (%s): %s", response.status_code, response.payload
        )
        raise UpstreamError(
            user_message_for(error_text),
            status_code=response.status_code,
            details=error_text,
            cal_error=response.payload,
        )

    confirmation = _confirmation_from(response.payload, request)
    logger.info(
        "Booking confirmed: %s at %s", confirmation.booking_id, confirmation.start_time
    )
    return confirmation
