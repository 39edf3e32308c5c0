"""Tests for the booking wizard step sequencer."""

import asyncio

import pytest

from lounge_booking.errors import UpstreamError
from lounge_booking.schemas.booking_schema import BookingConfirmation
from lounge_booking.wizard.state_machine import (
    BookingWizard,
    InvalidTransitionError,
    StepIncompleteError,
    SubmissionInProgressError,
    WizardStep,
    day_window,
    steps_for,
)

SLOT = "2025-05-01T10:00:00+02:00"


def fill_roster(wizard: BookingWizard) -> None:
    for index in range(wizard.data.people_count):
        wizard.data.roster.update(
            index,
            first_name=f"Guest{index}",
            last_name="Nkosi",
            email=f"guest{index}@example.com",
            phone="082 123 4567",
            therapy="therapy_1",
        )


def to_attendee_info(wizard: BookingWizard, destination: str = "lounge") -> None:
    wizard.set_destination(destination)
    wizard.next()
    if destination == "lounge":
        wizard.select_lounge("paarl")
        wizard.next()
    wizard.select_date("2025-05-01")
    wizard.select_slot(SLOT)
    wizard.next()


async def confirm_ok(request):
    return BookingConfirmation(booking_id="bk_1", start_time=request.appointment_slot)


class TestStepLists:
    def test_lounge_steps(self):
        assert steps_for("lounge") == [
            WizardStep.DESTINATION, WizardStep.LOUNGE_SELECT, WizardStep.TIME_SLOT,
            WizardStep.ATTENDEE_INFO, WizardStep.CONFIRMATION,
        ]

    def test_mobile_steps_skip_lounge(self):
        assert WizardStep.LOUNGE_SELECT not in steps_for("mobile")
        assert len(steps_for("mobile")) == 4

    def test_day_window(self):
        assert day_window("2025-05-01") == ("2025-05-01T00:00:00Z", "2025-05-01T23:59:59Z")

    def test_day_window_rejects_bad_date(self):
        with pytest.raises(ValueError):
            day_window("01/05/2025")


class TestInitialState:
    def test_starts_on_destination(self, wizard):
        assert wizard.current_step == WizardStep.DESTINATION

    def test_one_attendee(self, wizard):
        assert wizard.data.people_count == 1

    def test_not_terminal(self, wizard):
        assert not wizard.is_terminal()

    def test_back_from_first_step_rejected(self, wizard):
        with pytest.raises(InvalidTransitionError):
            wizard.back()


class TestForwardGuards:
    def test_destination_required(self, wizard):
        with pytest.raises(StepIncompleteError) as exc_info:
            wizard.next()
        assert exc_info.value.missing == ["destination"]

    def test_unknown_destination_rejected(self, wizard):
        with pytest.raises(ValueError):
            wizard.set_destination("moon")

    def test_lounge_required(self, wizard):
        wizard.set_destination("lounge")
        wizard.next()
        with pytest.raises(StepIncompleteError, match="lounge"):
            wizard.next()

    def test_unknown_lounge_rejected(self, wizard):
        with pytest.raises(ValueError):
            wizard.select_lounge("atlantis")

    def test_slot_required(self, wizard):
        wizard.set_destination("mobile")
        wizard.next()
        with pytest.raises(StepIncompleteError, match="time slot"):
            wizard.next()

    def test_next_from_attendee_info_rejected(self, wizard):
        to_attendee_info(wizard)
        fill_roster(wizard)
        with pytest.raises(InvalidTransitionError, match="submit"):
            wizard.next()

    def test_destination_locked_after_first_step(self, wizard):
        wizard.set_destination("lounge")
        wizard.next()
        with pytest.raises(InvalidTransitionError):
            wizard.set_destination("mobile")


class TestLoungePath:
    def test_visits_lounge_select(self, wizard):
        wizard.set_destination("lounge")
        assert wizard.next() == WizardStep.LOUNGE_SELECT
        wizard.select_lounge("camps_bay")
        assert wizard.next() == WizardStep.TIME_SLOT

    def test_back_returns_to_lounge_select(self, wizard):
        to_attendee_info(wizard, "lounge")
        assert wizard.back() == WizardStep.TIME_SLOT
        assert wizard.back() == WizardStep.LOUNGE_SELECT
        assert wizard.back() == WizardStep.DESTINATION

    def test_event_type_from_lounge(self, wizard):
        wizard.set_destination("lounge")
        wizard.next()
        wizard.select_lounge("paarl")
        assert wizard.event_type_id() == 2231140


class TestMobilePath:
    def test_forward_skips_lounge_select(self, wizard):
        wizard.set_destination("mobile")
        assert wizard.next() == WizardStep.TIME_SLOT

    @pytest.mark.asyncio
    async def test_full_mobile_flow_never_visits_lounge(self, wizard):
        to_attendee_info(wizard, "mobile")
        wizard.back()
        wizard.back()
        to_attendee_info(wizard, "mobile")
        fill_roster(wizard)
        await wizard.submit(confirm_ok)
        assert wizard.current_step == WizardStep.CONFIRMATION
        assert WizardStep.LOUNGE_SELECT.value not in wizard.get_state_trace()

    def test_back_from_time_slot_goes_to_destination(self, wizard):
        wizard.set_destination("mobile")
        wizard.next()
        assert wizard.back() == WizardStep.DESTINATION

    def test_switching_to_mobile_clears_lounge(self, wizard):
        wizard.set_destination("lounge")
        wizard.next()
        wizard.select_lounge("paarl")
        wizard.back()
        wizard.set_destination("mobile")
        assert wizard.data.lounge_id == ""
        assert wizard.next() == WizardStep.TIME_SLOT


class TestSlotClearing:
    def test_new_date_clears_slot(self, wizard):
        wizard.set_destination("mobile")
        wizard.next()
        wizard.select_date("2025-05-01")
        wizard.select_slot(SLOT)
        wizard.select_date("2025-05-02")
        assert wizard.data.appointment_slot is None

    def test_select_date_returns_window(self, wizard):
        assert wizard.select_date("2025-05-01") == ("2025-05-01T00:00:00Z", "2025-05-01T23:59:59Z")

    def test_back_from_attendee_info_clears_slot(self, wizard):
        to_attendee_info(wizard)
        wizard.back()
        assert wizard.current_step == WizardStep.TIME_SLOT
        assert wizard.data.appointment_slot is None

    def test_back_from_time_slot_keeps_slot(self, wizard):
        wizard.set_destination("mobile")
        wizard.next()
        wizard.select_slot(SLOT)
        wizard.back()
        assert wizard.data.appointment_slot == SLOT


class TestPeopleCount:
    def test_resize_up(self, wizard):
        wizard.set_people_count(3)
        assert len(wizard.data.roster.additional) == 2

    def test_three_to_one_keeps_main_attendee(self, wizard):
        wizard.set_people_count(3)
        fill_roster(wizard)
        wizard.set_people_count(1)
        assert wizard.data.roster.additional == []
        assert wizard.data.roster.main.first_name == "Guest0"
        assert wizard.data.roster.main.email == "guest0@example.com"

    def test_zero_rejected(self, wizard):
        with pytest.raises(ValueError):
            wizard.set_people_count(0)

    def test_above_max_rejected(self, wizard):
        with pytest.raises(ValueError):
            wizard.set_people_count(1000)


class TestSubmit:
    @pytest.mark.asyncio
    async def test_success_moves_to_confirmation(self, wizard):
        to_attendee_info(wizard)
        fill_roster(wizard)
        confirmation = await wizard.submit(confirm_ok)
        assert confirmation.booking_id == "bk_1"
        assert wizard.confirmation == confirmation
        assert wizard.is_terminal()

    @pytest.mark.asyncio
    async def test_request_built_from_wizard_data(self, wizard):
        seen = []

        async def capture(request):
            seen.append(request)
            return BookingConfirmation(booking_id="x")

        wizard.set_people_count(2)
        to_attendee_info(wizard)
        fill_roster(wizard)
        await wizard.submit(capture)
        request = seen[0]
        assert request.destination == "lounge"
        assert request.lounge_id == "paarl"
        assert request.appointment_slot == SLOT
        assert request.main_attendee.phone == "0821234567"
        assert len(request.additional_attendees) == 1

    @pytest.mark.asyncio
    async def test_incomplete_attendees_rejected(self, wizard):
        wizard.set_people_count(2)
        to_attendee_info(wizard)
        wizard.data.roster.update(0, first_name="Only", last_name="Main")
        with pytest.raises(StepIncompleteError) as exc_info:
            await wizard.submit(confirm_ok)
        assert "Attendee 2: email" in exc_info.value.missing
        assert wizard.current_step == WizardStep.ATTENDEE_INFO

    @pytest.mark.asyncio
    async def test_failure_stays_and_surfaces_message(self, wizard):
        async def reject(request):
            raise UpstreamError("Sorry, the selected time slot just became full", status_code=409)

        to_attendee_info(wizard)
        fill_roster(wizard)
        result = await wizard.submit(reject)
        assert result is None
        assert wizard.current_step == WizardStep.ATTENDEE_INFO
        assert "just became full" in wizard.error
        assert wizard.data.roster.main.first_name == "Guest0"
        assert wizard.data.appointment_slot == SLOT
        assert not wizard.is_submitting

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, wizard):
        attempts = []

        async def flaky(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise UpstreamError("Failed to create booking: timeout", status_code=504)
            return BookingConfirmation(booking_id="bk_2")

        to_attendee_info(wizard)
        fill_roster(wizard)
        await wizard.submit(flaky)
        await wizard.submit(flaky)
        assert wizard.is_terminal()
        assert wizard.error is None

    @pytest.mark.asyncio
    async def test_duplicate_submission_rejected(self, wizard):
        release = asyncio.Event()

        async def slow(request):
            await release.wait()
            return BookingConfirmation(booking_id="bk_3")

        to_attendee_info(wizard)
        fill_roster(wizard)
        first = asyncio.create_task(wizard.submit(slow))
        await asyncio.sleep(0)
        assert wizard.is_submitting
        with pytest.raises(SubmissionInProgressError):
            await wizard.submit(slow)
        release.set()
        await first
        assert wizard.is_terminal()

    @pytest.mark.asyncio
    async def test_submit_from_wrong_step(self, wizard):
        with pytest.raises(InvalidTransitionError):
            await wizard.submit(confirm_ok)


class TestConfirmationIsTerminal:
    @pytest.mark.asyncio
    async def test_no_transitions_leave_confirmation(self, wizard):
        to_attendee_info(wizard)
        fill_roster(wizard)
        await wizard.submit(confirm_ok)
        with pytest.raises(InvalidTransitionError):
            wizard.next()
        with pytest.raises(InvalidTransitionError):
            wizard.back()
        with pytest.raises(InvalidTransitionError):
            await wizard.submit(confirm_ok)


class TestHistory:
    def test_trace_records_visits(self, wizard):
        wizard.set_destination("lounge")
        wizard.next()
        wizard.back()
        assert wizard.get_state_trace() == ["destination", "lounge_select", "destination"]

    def test_history_is_a_copy(self, wizard):
        history = wizard.get_history()
        history.clear()
        assert len(wizard.get_history()) == 1


class TestPeopleCountAfterSlotChosen:
    def test_count_locked_after_destination(self, wizard):
        wizard.set_destination("mobile")
        wizard.next()
        wizard.select_slot("2025-05-01T14:00:00+02:00")
        wizard.next()
        with pytest.raises(InvalidTransitionError):
            wizard.set_people_count(4)
        assert wizard.data.people_count == 1
        assert wizard.data.appointment_slot == "2025-05-01T14:00:00+02:00"

    def test_changed_count_drops_slot(self, wizard):
        wizard.set_destination("mobile")
        wizard.next()
        wizard.select_slot("2025-05-01T14:00:00+02:00")
        wizard.back()
        wizard.set_people_count(4)
        assert wizard.data.appointment_slot is None
        assert wizard.data.available_slots == []
        wizard.next()
        with pytest.raises(StepIncompleteError, match="time slot"):
            wizard.next()

    def test_same_count_keeps_slot(self, wizard):
        wizard.set_destination("mobile")
        wizard.next()
        wizard.select_slot(SLOT)
        wizard.back()
        wizard.set_people_count(1)
        assert wizard.data.appointment_slot == SLOT
