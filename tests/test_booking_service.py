import asyncio
from datetime import date, datetime, timedelta

import pytest

from appointlive.exceptions import DuplicateSubmission, NotFound, ValidationError
from appointlive.application.services.booking_service import (
    TIME_SLOTS,
    BookingForm,
    BookingService,
    booking_dates,
    date_label,
    validate_booking_form,
)

TODAY = date(2026, 3, 2)


def _form(**overrides):
    data = dict(
        doctor_id=1,
        selected_date="2026-03-03",
        selected_time="10:30 AM",
        patient_name="Alice",
        patient_phone="+15550001",
        symptoms="  chest pain ",
        reason="",
        form_id="form-1",
    )
    data.update(overrides)
    return BookingForm(**data)


def test_slots_and_dates():
    assert len(TIME_SLOTS) == 16
    assert TIME_SLOTS[0] == "09:00 AM" and TIME_SLOTS[-1] == "05:30 PM"
    assert "01:00 PM" not in TIME_SLOTS
    dates = booking_dates(TODAY)
    assert len(dates) == 7
    assert dates[0] == TODAY and dates[-1] == TODAY + timedelta(days=6)


def test_date_labels():
    assert date_label(TODAY, TODAY) == "Today"
    assert date_label(TODAY + timedelta(days=1), TODAY) == "Tomorrow"
    assert date_label(date(2026, 3, 5), TODAY) == "Thu, Mar 05"


def test_validation_reports_every_missing_field():
    with pytest.raises(ValidationError) as exc:
        validate_booking_form(BookingForm(doctor_id=1, patient_name="  "), TODAY)
    assert set(exc.value.field_errors) == {"selected_date", "selected_time", "patient_name", "patient_phone"}
    assert exc.value.message == "Please fill in all required fields"


def test_validation_rejects_dates_outside_window_and_unknown_slots():
    with pytest.raises(ValidationError) as exc:
        validate_booking_form(_form(selected_date="2026-03-09", selected_time="01:00 PM"), TODAY)
    assert set(exc.value.field_errors) == {"selected_date", "selected_time"}

    with pytest.raises(ValidationError):
        validate_booking_form(_form(selected_date="03/03/2026"), TODAY)


def test_validation_builds_slot_time():
    booking = validate_booking_form(_form(selected_time="02:30 PM"), TODAY)
    assert booking.slot_time == datetime(2026, 3, 3, 14, 30)
    assert booking.symptoms == "chest pain"
    assert booking.reason is None


@pytest.mark.asyncio
async def test_submit_creates_booked_appointment(repo, notifier):
    svc = BookingService(repo=repo, notifier=notifier)
    appt = await svc.submit(_form(patient_name="Carol", patient_phone="+15550003"), user_id="u-carol", today=TODAY)

    assert appt.status == "booked"
    assert appt.slot_time == datetime(2026, 3, 3, 10, 30)
    assert repo.patients[appt.patient_id].user_id == "u-carol"
    assert notifier.events[0].kind == "insert"
    assert notifier.events[0].doctor_id == 1
    assert not svc.is_submitting("form-1")


@pytest.mark.asyncio
async def test_submit_reuses_existing_patient(repo, notifier):
    svc = BookingService(repo=repo, notifier=notifier)
    appt = await svc.submit(_form(), user_id="patient-user", today=TODAY)
    assert appt.patient_id == 10


@pytest.mark.asyncio
async def test_submit_with_new_phone_updates_account_profile(repo, notifier):
    svc = BookingService(repo=repo, notifier=notifier)
    appt = await svc.submit(_form(patient_phone="+15559999"), user_id="patient-user", today=TODAY)
    assert appt.patient_id == 10
    assert repo.patients[10].phone == "+15559999"
    assert len([p for p in repo.patients.values() if p.user_id == "patient-user"]) == 1


@pytest.mark.asyncio
async def test_invalid_form_writes_nothing(repo, notifier):
    svc = BookingService(repo=repo, notifier=notifier)
    with pytest.raises(ValidationError):
        await svc.submit(_form(patient_phone=None), today=TODAY)
    assert repo.appts == {}
    assert notifier.events == []


@pytest.mark.asyncio
async def test_unknown_or_unavailable_doctor(repo, notifier):
    repo.add_doctor(2, is_available=False)
    svc = BookingService(repo=repo, notifier=notifier)

    with pytest.raises(NotFound):
        await svc.submit(_form(doctor_id=42), today=TODAY)
    with pytest.raises(ValidationError) as exc:
        await svc.submit(_form(doctor_id=2), today=TODAY)
    assert "doctor_id" in exc.value.field_errors
    # guard released after each failure
    assert not svc.is_submitting("form-1")


class GatedNotifier:
    def __init__(self):
        self.gate = asyncio.Event()
        self.entered = asyncio.Event()
        self.events = []

    async def publish(self, event):
        self.entered.set()
        await self.gate.wait()
        self.events.append(event)


@pytest.mark.asyncio
async def test_second_submission_while_first_in_flight_is_rejected(repo):
    notifier = GatedNotifier()
    svc = BookingService(repo=repo, notifier=notifier)

    first = asyncio.create_task(svc.submit(_form(), today=TODAY))
    await notifier.entered.wait()
    assert svc.is_submitting("form-1")

    with pytest.raises(DuplicateSubmission):
        await svc.submit(_form(), today=TODAY)

    notifier.gate.set()
    appt = await first
    assert appt.id == 1
    assert len(repo.appts) == 1
    assert not svc.is_submitting("form-1")

    # a fresh attempt after completion is accepted
    await svc.submit(_form(), today=TODAY)
    assert len(repo.appts) == 2


@pytest.mark.asyncio
async def test_shared_in_flight_set(repo, notifier):
    shared = {"form-9"}
    svc = BookingService(repo=repo, notifier=notifier, in_flight=shared)
    with pytest.raises(DuplicateSubmission):
        await svc.submit(_form(form_id="form-9"), today=TODAY)
    assert "form-9" in shared
