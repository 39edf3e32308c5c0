"""Booking and availability data models.

Field names are snake_case in Python and camelCase on the wire, matching
what the booking form sends and expects.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Attendee(CamelModel):
    """One person being treated. Blank strings mean not yet entered."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    therapy: str = ""


class BookingRequest(CamelModel):
    """Booking submission as posted by the booking form.

    Everything is optional at parse time so that missing fields are
    reported by ``validate_booking_request`` with the form's own messages.
    """
    destination: str = ""
    lounge_id: Optional[str] = None
    appointment_slot: Optional[str] = None
    main_attendee: Attendee = Field(default_factory=Attendee)
    additional_attendees: list[Attendee] = Field(default_factory=list)


class BookingConfirmation(CamelModel):
    """Provider-confirmed booking."""
    booking_id: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class BookingResponse(BookingConfirmation):
    """Success body returned by POST /api/bookings."""
    message: str = "Booking confirmed successfully"


class TimeSlot(CamelModel):
    """A bookable start time annotated with its remaining capacity."""
    time: str
    remaining_seats: int


class AvailabilityResponse(CamelModel):
    """Body returned by GET /api/availability."""
    available_slots: list[TimeSlot] = Field(default_factory=list)


class ErrorResponse(CamelModel):
    """Error body; ``cal_error`` carries the raw provider payload when present."""
    message: str
    details: Optional[Any] = None
    cal_error: Optional[Any] = None
