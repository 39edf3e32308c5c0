"""
Console booking form: walks the booking wizard in the terminal.

Uses the real wizard, availability resolver and booking submitter. With
--offline the Cal.com API is replaced by canned responses served through
httpx.MockTransport, so no API key or network is needed.

Usage:
    python console_demo.py --offline
    python console_demo.py --offline --scenario mobile
    CAL_API_KEY=... python console_demo.py
"""

import argparse
import asyncio
import json
from datetime import date, timedelta
from typing import Callable, Iterator, Optional

import httpx

from lounge_booking.catalog.lounges import (
    DESTINATIONS,
    LOUNGES,
    THERAPY_OPTIONS,
)
from lounge_booking.errors import BookingServiceError
from lounge_booking.provider.availability import resolve_availability
from lounge_booking.provider.booking import CAPACITY_MESSAGE, submit_booking
from lounge_booking.provider.cal_client import CalClient
from lounge_booking.schemas.booking_schema import BookingConfirmation, BookingRequest
from lounge_booking.wizard.attendees import ATTENDEE_FIELDS, attendee_label
from lounge_booking.wizard.state_machine import (
    BookingWizard,
    InvalidTransitionError,
    WizardStep,
)

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

OFFLINE_CAPACITY = 4
OFFLINE_MOBILE_EVENT_TYPE_ID = 2231999


def offline_transport() -> httpx.MockTransport:
    """Canned Cal.com responses: capacity 4, three slots a day with 0, 2 and 3 attendees."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/v1/event-types/"):
            return httpx.Response(
                200, json={"event_type": {"seatsPerTimeSlot": OFFLINE_CAPACITY}}
            )
        if path == "/v1/slots":
            day = request.url.params["startTime"].split("T")[0]
            return httpx.Response(200, json={"slots": {day: [
                {"time": f"{day}T08:00:00+02:00"},
                {"time": f"{day}T10:00:00+02:00", "attendees": 2},
                {"time": f"{day}T14:00:00+02:00", "attendees": 3},
            ]}})
        if path == "/v2/bookings":
            body = json.loads(request.content)
            return httpx.Response(200, json={"booking": {
                "uid": "offline-booking-1",
                "startTime": body["start"],
            }})
        return httpx.Response(404, json={"message": f"No offline fixture for {path}"})

    return httpx.MockTransport(handler)


class ConsoleSession:
    """Drives one BookingWizard from terminal input."""

    def __init__(self, client: CalClient, mobile_event_type_id: Optional[int] = None) -> None:
        self.wizard = BookingWizard()
        self.client = client
        self._mobile_event_type_id = mobile_event_type_id
        self._read: Callable[[str], str] = input

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def ask(self, prompt: str) -> str:
        return self._read(f"{BLUE}{prompt}{RESET} ").strip()

    def _scripted_reader(self, steps: list[str]) -> Callable[[str], str]:
        answers: Iterator[str] = iter(steps)

        def read(prompt: str) -> str:
            answer = next(answers, "quit")
            print(f"{prompt}{answer}")
            return answer

        return read

    # Pre-scripted scenarios for --scenario flag; "+1" means tomorrow's date.
    SCENARIOS: dict[str, list[str]] = {
        "lounge": [
            "lounge", "2", "paarl", "+1", "2",
            "Thandi", "Nkosi", "thandi@example.com", "082 123 4567", "therapy_1",
            "Pieter", "Botha", "pieter@example.com", "083 765 4321", "therapy_3",
        ],
        "mobile": [
            "mobile", "1", "+1", "1",
            "Lerato", "Mokoena", "lerato@example.com", "084 000 1111", "therapy_2",
        ],
    }

    def run_scenario(self, scenario: str) -> None:
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return
        self._read = self._scripted_reader(steps)
        self.run()

    def run(self) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  LOUNGE BOOKING - Console{RESET}")
        print(f"{BOLD}  Type 'quit' to exit, 'back' to go back{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        handlers = {
            WizardStep.DESTINATION: self._handle_destination,
            WizardStep.LOUNGE_SELECT: self._handle_lounge,
            WizardStep.TIME_SLOT: self._handle_time_slot,
            WizardStep.ATTENDEE_INFO: self._handle_attendees,
        }
        try:
            while not self.wizard.is_terminal():
                self.system_log(f"Step: {self.wizard.current_step.value}")
                handlers[self.wizard.current_step]()
        except _Quit:
            print(f"\n{DIM}Session ended.{RESET}")
            return

        confirmation = self.wizard.confirmation
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        self.say("Thank you! Your booking request has been received.")
        if confirmation:
            self.say(f"Booking {confirmation.booking_id}: "
                     f"{confirmation.start_time} to {confirmation.end_time}")
        print(f"{DIM}  Step trace: {' -> '.join(self.wizard.get_state_trace())}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def _read_or_back(self, prompt: str) -> Optional[str]:
        answer = self.ask(prompt)
        if answer.lower() in ("quit", "exit", "q"):
            raise _Quit()
        if answer.lower() == "back":
            try:
                self.wizard.back()
            except InvalidTransitionError as exc:
                print(f"{YELLOW}{exc}{RESET}")
            return None
        return answer

    def _advance(self) -> None:
        try:
            self.wizard.next()
        except InvalidTransitionError as exc:
            print(f"{YELLOW}{exc}{RESET}")

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def _handle_destination(self) -> None:
        options = " / ".join(f"{k} ({v})" for k, v in DESTINATIONS.items())
        answer = self._read_or_back(f"Destination? {options}:")
        if answer is None:
            return
        try:
            self.wizard.set_destination(answer.lower())
            count = self._read_or_back("How many people will be treated?")
            if count is None:
                return
            self.wizard.set_people_count(int(count or "1"))
        except ValueError as exc:
            print(f"{YELLOW}{exc}{RESET}")
            return
        self._advance()

    def _handle_lounge(self) -> None:
        for lounge in LOUNGES:
            print(f"  {lounge.id:<15} {lounge.name}")
        answer = self._read_or_back("Which lounge?")
        if answer is None:
            return
        try:
            self.wizard.select_lounge(answer)
        except ValueError as exc:
            print(f"{YELLOW}{exc}{RESET}")
            return
        self._advance()

    def _handle_time_slot(self) -> None:
        answer = self._read_or_back("Date (YYYY-MM-DD, or +N for N days from today):")
        if answer is None:
            return
        if answer.startswith("+") and answer[1:].isdigit():
            answer = (date.today() + timedelta(days=int(answer[1:]))).isoformat()
        try:
            start, end = self.wizard.select_date(answer)
        except ValueError:
            print(f"{YELLOW}'{answer}' is not a date{RESET}")
            return

        event_type_id = self.wizard.event_type_id() or self._mobile_event_type_id
        if event_type_id is None:
            print(f"{RED}No event type configured for this destination{RESET}")
            return
        try:
            slots = asyncio.run(resolve_availability(
                self.client, str(event_type_id), start, end, self.wizard.data.people_count
            ))
        except BookingServiceError as exc:
            print(f"{RED}{exc.message}{RESET}")
            return
        self.wizard.set_available_slots(slots)
        if not slots:
            self.say("No available slots found for this date. Please select another date.")
            return

        self.say(f"Showing times with at least {self.wizard.data.people_count} seat(s) available.")
        for i, slot in enumerate(slots, 1):
            print(f"  {i}. {slot.time}  ({slot.remaining_seats} seats left)")
        choice = self._read_or_back("Pick a slot number:")
        if choice is None:
            return
        if not choice.isdigit() or not 1 <= int(choice) <= len(slots):
            print(f"{YELLOW}Choose 1-{len(slots)}{RESET}")
            return
        self.wizard.select_slot(slots[int(choice) - 1].time)
        self._advance()

    def _handle_attendees(self) -> None:
        roster = self.wizard.data.roster
        print(f"{DIM}  Therapies: {', '.join(f'{k}={v}' for k, v in THERAPY_OPTIONS.items())}{RESET}")
        for index in range(roster.people_count):
            for defn in ATTENDEE_FIELDS:
                if getattr(roster.get(index), defn.name):
                    continue
                answer = self._read_or_back(f"{attendee_label(index)} {defn.display_name}:")
                if answer is None:
                    return
                roster.set_field(index, defn.name, answer)

        try:
            asyncio.run(self.wizard.submit(self._submit))
        except InvalidTransitionError as exc:
            print(f"{YELLOW}{exc}{RESET}")
            return
        if self.wizard.error:
            print(f"{RED}{self.wizard.error}{RESET}")
            if self.wizard.error == CAPACITY_MESSAGE:
                self.wizard.back()
            else:
                self._read_or_back("Press Enter to retry, or type 'back' to pick another time:")

    async def _submit(self, request: BookingRequest) -> BookingConfirmation:
        return await submit_booking(self.client, request)


class _Quit(Exception):
    """Raised when the user types quit."""


def main() -> None:
    parser = argparse.ArgumentParser(description="Console booking form")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted booking instead of interactive mode",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Serve canned Cal.com responses instead of calling the real API",
    )
    args = parser.parse_args()

    if args.offline:
        client = CalClient(api_key="offline", transport=offline_transport())
        session = ConsoleSession(client, mobile_event_type_id=OFFLINE_MOBILE_EVENT_TYPE_ID)
    else:
        try:
            client = CalClient.from_settings()
        except BookingServiceError as exc:
            print(f"{RED}{exc.message} Set CAL_API_KEY or use --offline.{RESET}")
            return
        session = ConsoleSession(client)

    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
