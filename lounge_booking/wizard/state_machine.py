"""
Finite step sequencer for the booking form.

Steps run Destination -> [LoungeSelect] -> TimeSlot -> AttendeeInfo ->
Confirmation. The ordered step list is rebuilt whenever the destination
changes, so next/back simply index into it and the mobile path never
sees LoungeSelect in either direction.

Usage:
    wizard = BookingWizard()
    wizard.set_destination("mobile")
    wizard.next()
    assert wizard.current_step == WizardStep.TIME_SLOT
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from lounge_booking.catalog.lounges import (
    DESTINATION_LOUNGE,
    DESTINATIONS,
    get_lounge,
    resolve_event_type_id,
)
from lounge_booking.config import settings
from lounge_booking.errors import BookingServiceError
from lounge_booking.schemas.booking_schema import (
    BookingConfirmation,
    BookingRequest,
    TimeSlot,
)
from lounge_booking.wizard.attendees import AttendeeRoster

logger = logging.getLogger(__name__)

SubmitFn = Callable[[BookingRequest], Awaitable[BookingConfirmation]]


class WizardStep(str, Enum):
    """Every step of the booking form."""
    DESTINATION = "destination"
    LOUNGE_SELECT = "lounge_select"
    TIME_SLOT = "time_slot"
    ATTENDEE_INFO = "attendee_info"
    CONFIRMATION = "confirmation"


class InvalidTransitionError(Exception):
    """Raised when a move is not valid from the current step."""


class StepIncompleteError(InvalidTransitionError):
    """Raised when the current step's required input is missing."""

    def __init__(self, step: WizardStep, missing: list[str]) -> None:
        self.step = step
        self.missing = missing
        super().__init__(f"Cannot leave '{step.value}': missing {', '.join(missing)}")


class SubmissionInProgressError(InvalidTransitionError):
    """Raised when a submission is attempted while one is in flight."""


def steps_for(destination: str) -> list[WizardStep]:
    """Ordered steps for a destination; LoungeSelect only on the lounge path."""
    steps = [WizardStep.DESTINATION]
    if destination == DESTINATION_LOUNGE:
        steps.append(WizardStep.LOUNGE_SELECT)
    steps += [WizardStep.TIME_SLOT, WizardStep.ATTENDEE_INFO, WizardStep.CONFIRMATION]
    return steps


def day_window(date: str) -> tuple[str, str]:
    """UTC start and end of a YYYY-MM-DD date, as the time-slot step queries it."""
    datetime.strptime(date, "%Y-%m-%d")
    return f"{date}T00:00:00Z", f"{date}T23:59:59Z"


@dataclass
class StepEntry:
    """Recorded history entry for a step visit."""
    step: WizardStep
    entered_at: datetime


@dataclass
class WizardData:
    """Everything the form has collected so far."""
    destination: str = ""
    lounge_id: str = ""
    selected_date: Optional[str] = None
    available_slots: list[TimeSlot] = field(default_factory=list)
    appointment_slot: Optional[str] = None
    roster: AttendeeRoster = field(default_factory=AttendeeRoster)

    @property
    def people_count(self) -> int:
        return self.roster.people_count


class BookingWizard:
    """
    Booking form state with guarded forward/backward navigation.

    Leaving AttendeeInfo forward is done by ``submit``, which calls the
    booking submitter and only moves to Confirmation on success.
    """

    def __init__(self) -> None:
        self.data = WizardData()
        self._steps = steps_for(self.data.destination)
        self._current_step = WizardStep.DESTINATION
        self._history: list[StepEntry] = [
            StepEntry(step=WizardStep.DESTINATION, entered_at=datetime.now(timezone.utc))
        ]
        self._submitting = False
        self.error: Optional[str] = None
        self.confirmation: Optional[BookingConfirmation] = None

    @property
    def current_step(self) -> WizardStep:
        return self._current_step

    @property
    def steps(self) -> list[WizardStep]:
        return list(self._steps)

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def is_terminal(self) -> bool:
        return self._current_step == WizardStep.CONFIRMATION

    # ------------------------------------------------------------------ #
    # Field updates
    # ------------------------------------------------------------------ #

    def set_destination(self, destination: str) -> None:
        if self._current_step != WizardStep.DESTINATION:
            raise InvalidTransitionError("Destination can only change on the destination step")
        if destination and destination not in DESTINATIONS:
            raise ValueError(f"Unknown destination '{destination}'. Valid: {list(DESTINATIONS)}")
        self.data.destination = destination
        if destination != DESTINATION_LOUNGE:
            self.data.lounge_id = ""
        self._steps = steps_for(destination)

    def set_people_count(self, count: int) -> None:
        """Resize the party. A changed count drops the slot picked for the old size."""
        if self._current_step != WizardStep.DESTINATION:
            raise InvalidTransitionError("People count can only change on the destination step")
        if count > settings.booking.max_people:
            raise ValueError(f"At most {settings.booking.max_people} people per booking")
        changed = count != self.data.people_count
        self.data.roster.resize(count)
        if changed:
            self.data.appointment_slot = None
            self.data.available_slots = []

    def select_lounge(self, lounge_id: str) -> None:
        if get_lounge(lounge_id) is None:
            raise ValueError(f"Unknown lounge '{lounge_id}'")
        self.data.lounge_id = lounge_id

    def select_date(self, date: str) -> tuple[str, str]:
        """Choose a date, clearing any slot picked for the previous one.

        Returns the (start, end) window to query availability with.
        """
        window = day_window(date)
        self.data.selected_date = date
        self.data.appointment_slot = None
        self.data.available_slots = []
        return window

    def set_available_slots(self, slots: list[TimeSlot]) -> None:
        self.data.available_slots = list(slots)

    def select_slot(self, time: Optional[str]) -> None:
        self.data.appointment_slot = time

    def event_type_id(self) -> Optional[int]:
        """Event type the time-slot step should query."""
        if self.data.destination == DESTINATION_LOUNGE:
            return resolve_event_type_id(self.data.lounge_id)
        return settings.cal.mobile_event_type_id

    # ------------------------------------------------------------------ #
    # Navigation
    # ------------------------------------------------------------------ #

    def _missing_for(self, step: WizardStep) -> list[str]:
        if step == WizardStep.DESTINATION:
            return [] if self.data.destination else ["destination"]
        if step == WizardStep.LOUNGE_SELECT:
            return [] if self.data.lounge_id else ["lounge"]
        if step == WizardStep.TIME_SLOT:
            return [] if self.data.appointment_slot else ["time slot"]
        if step == WizardStep.ATTENDEE_INFO:
            return self.data.roster.missing_fields()
        return []

    def _move_to(self, step: WizardStep) -> WizardStep:
        old = self._current_step
        self._current_step = step
        self._history.append(StepEntry(step=step, entered_at=datetime.now(timezone.utc)))
        logger.debug("Wizard step: %s -> %s", old.value, step.value)
        return step

    def _index(self) -> int:
        return self._steps.index(self._current_step)

    def next(self) -> WizardStep:
        """
        Advance one step.

        Raises:
            StepIncompleteError: If the current step's input is missing.
            InvalidTransitionError: From AttendeeInfo (use ``submit``) or Confirmation.
        """
        step = self._current_step
        if step == WizardStep.CONFIRMATION:
            raise InvalidTransitionError("Booking is confirmed; no further steps")
        if step == WizardStep.ATTENDEE_INFO:
            raise InvalidTransitionError("Attendee details are submitted with submit()")
        missing = self._missing_for(step)
        if missing:
            raise StepIncompleteError(step, missing)
        self.error = None
        return self._move_to(self._steps[self._index() + 1])

    def back(self) -> WizardStep:
        """
        Go back one step.

        Raises:
            InvalidTransitionError: From the first step or from Confirmation.
        """
        step = self._current_step
        if step == WizardStep.CONFIRMATION:
            raise InvalidTransitionError("Booking is confirmed; no further steps")
        index = self._index()
        if index == 0:
            raise InvalidTransitionError("Already at the first step")
        if step == WizardStep.ATTENDEE_INFO:
            self.data.appointment_slot = None
        self.error = None
        return self._move_to(self._steps[index - 1])

    def build_request(self) -> BookingRequest:
        return BookingRequest(
            destination=self.data.destination,
            lounge_id=self.data.lounge_id or None,
            appointment_slot=self.data.appointment_slot,
            main_attendee=self.data.roster.main.model_copy(),
            additional_attendees=[a.model_copy() for a in self.data.roster.additional],
        )

    async def submit(self, submit_fn: SubmitFn) -> Optional[BookingConfirmation]:
        """
        Submit the booking from AttendeeInfo.

        On success moves to Confirmation and returns the confirmation. On a
        BookingServiceError stays on AttendeeInfo, sets ``error`` to the
        user-facing message, and returns None.

        Raises:
            InvalidTransitionError: If not on AttendeeInfo.
            StepIncompleteError: If any attendee field is blank.
            SubmissionInProgressError: If a submission is already in flight.
        """
        if self._current_step != WizardStep.ATTENDEE_INFO:
            raise InvalidTransitionError(
                f"Cannot submit from '{self._current_step.value}'"
            )
        if self._submitting:
            raise SubmissionInProgressError("A submission is already in progress")
        missing = self._missing_for(WizardStep.ATTENDEE_INFO)
        if missing:
            raise StepIncompleteError(WizardStep.ATTENDEE_INFO, missing)

        self._submitting = True
        self.error = None
        try:
            confirmation = await submit_fn(self.build_request())
        except BookingServiceError as exc:
            self.error = exc.message
            logger.info("Booking submission failed: %s", exc.message)
            return None
        finally:
            self._submitting = False

        self.confirmation = confirmation
        self._move_to(WizardStep.CONFIRMATION)
        return confirmation

    # ------------------------------------------------------------------ #
    # History
    # ------------------------------------------------------------------ #

    def get_history(self) -> list[StepEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of step names visited."""
        return [entry.step.value for entry in self._history]
