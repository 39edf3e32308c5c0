from lounge_booking.wizard.attendees import AttendeeRoster
from lounge_booking.wizard.state_machine import (
    BookingWizard,
    InvalidTransitionError,
    StepIncompleteError,
    SubmissionInProgressError,
    WizardStep,
    day_window,
    steps_for,
)

__all__ = [
    "BookingWizard",
    "WizardStep",
    "InvalidTransitionError",
    "StepIncompleteError",
    "SubmissionInProgressError",
    "AttendeeRoster",
    "day_window",
    "steps_for",
]
