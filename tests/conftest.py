"""Shared test fixtures and helpers."""

from typing import Any, Callable, Optional, Union

import httpx
import pytest

from lounge_booking.provider.cal_client import CalClient
from lounge_booking.schemas.booking_schema import Attendee, BookingRequest
from lounge_booking.wizard.attendees import AttendeeRoster
from lounge_booking.wizard.state_machine import BookingWizard

Route = Union[tuple[int, Any], Exception, Callable[[httpx.Request], httpx.Response]]


class FakeCal:
    """Routes Cal.com paths to canned responses and records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.requests: list[httpx.Request] = []

    def on(self, path: str, status: int = 200, json: Any = None) -> "FakeCal":
        self.routes[path] = (status, json if json is not None else {})
        return self

    def fail(self, path: str, exc: Exception) -> "FakeCal":
        self.routes[path] = exc
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        status, body = route
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def client(self) -> CalClient:
        return CalClient(api_key="test-key", transport=httpx.MockTransport(self.handler))

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def last(self, path: str) -> Optional[httpx.Request]:
        for request in reversed(self.requests):
            if request.url.path == path:
                return request
        return None


def v1_event_type(seats: Any) -> dict:
    return {"event_type": {"id": 2230830, "seatsPerTimeSlot": seats}}


def v2_event_type(seats: Any) -> dict:
    return {"eventType": {"id": 2230830, "seats": {"seatsPerTimeSlot": seats}}}


def slots_payload(date: str, attendees: list[Optional[int]]) -> dict:
    """A v1 /slots payload with one slot per entry; None omits the attendees field."""
    entries = []
    for hour, count in enumerate(attendees, start=8):
        entry: dict[str, Any] = {"time": f"{date}T{hour:02d}:00:00+02:00"}
        if count is not None:
            entry["attendees"] = count
        entries.append(entry)
    return {"slots": {date: entries}}


def make_attendee(first: str = "Thandi", last: str = "Nkosi", **kwargs: str) -> Attendee:
    return Attendee(
        first_name=first,
        last_name=last,
        email=kwargs.get("email", f"{first.lower()}@example.com"),
        phone=kwargs.get("phone", "0821234567"),
        therapy=kwargs.get("therapy", "therapy_1"),
    )


def make_booking_request(**overrides: Any) -> BookingRequest:
    """A valid lounge booking for Paarl unless overridden."""
    fields: dict[str, Any] = {
        "destination": "lounge",
        "lounge_id": "paarl",
        "appointment_slot": "2025-05-01T10:00:00.000Z",
        "main_attendee": make_attendee(),
        "additional_attendees": [],
    }
    fields.update(overrides)
    return BookingRequest(**fields)


@pytest.fixture
def fake_cal():
    return FakeCal()


@pytest.fixture
def wizard():
    return BookingWizard()


@pytest.fixture
def roster():
    return AttendeeRoster()
