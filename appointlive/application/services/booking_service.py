import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Set

from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from ..ports.queue_notifier import QueueEvent, QueueNotifier
from .status_engine import INITIAL_STATUS
from ...exceptions import DuplicateSubmission, NotFound, ValidationError

logger = logging.getLogger(__name__)

# Half-hour slots, lunch gap between 12:30 PM and 02:00 PM
TIME_SLOTS: List[str] = [
    "09:00 AM", "09:30 AM", "10:00 AM", "10:30 AM",
    "11:00 AM", "11:30 AM", "12:00 PM", "12:30 PM",
    "02:00 PM", "02:30 PM", "03:00 PM", "03:30 PM",
    "04:00 PM", "04:30 PM", "05:00 PM", "05:30 PM",
]

SLOT_FORMAT = "%I:%M %p"


def booking_dates(today: date, days: int = 7) -> List[date]:
    return [today + timedelta(days=i) for i in range(days)]


def date_label(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    return day.strftime("%a, %b %d")


@dataclass
class BookingForm:
    doctor_id: int
    selected_date: Optional[str] = None  # YYYY-MM-DD
    selected_time: Optional[str] = None  # one of TIME_SLOTS
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    symptoms: Optional[str] = None
    reason: Optional[str] = None
    form_id: Optional[str] = None


@dataclass
class ValidatedBooking:
    doctor_id: int
    slot_time: datetime
    patient_name: str
    patient_phone: str
    symptoms: Optional[str]
    reason: Optional[str]


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def validate_booking_form(form: BookingForm, today: date, window_days: int = 7) -> ValidatedBooking:
    """Check every required field and report all problems at once."""
    errors: Dict[str, str] = {}

    selected_day: Optional[date] = None
    if _blank(form.selected_date):
        errors["selected_date"] = "Please select a date"
    else:
        try:
            selected_day = datetime.strptime(form.selected_date.strip(), "%Y-%m-%d").date()
        except ValueError:
            errors["selected_date"] = "Invalid date format. Use YYYY-MM-DD"
        else:
            if selected_day not in booking_dates(today, window_days):
                errors["selected_date"] = f"Date must be within the next {window_days} days"

    slot = None
    if _blank(form.selected_time):
        errors["selected_time"] = "Please select a time slot"
    elif form.selected_time.strip() not in TIME_SLOTS:
        errors["selected_time"] = "Please select one of the available time slots"
    else:
        slot = datetime.strptime(form.selected_time.strip(), SLOT_FORMAT).time()

    if _blank(form.patient_name):
        errors["patient_name"] = "Patient name is required"
    if _blank(form.patient_phone):
        errors["patient_phone"] = "Phone number is required"

    if errors:
        raise ValidationError(errors)

    symptoms = form.symptoms.strip() if form.symptoms and form.symptoms.strip() else None
    reason = form.reason.strip() if form.reason and form.reason.strip() else None
    return ValidatedBooking(
        doctor_id=form.doctor_id,
        slot_time=datetime.combine(selected_day, slot),
        patient_name=form.patient_name.strip(),
        patient_phone=form.patient_phone.strip(),
        symptoms=symptoms,
        reason=reason,
    )


@dataclass
class BookingService:
    repo: AppointmentsRepository
    notifier: QueueNotifier
    window_days: int = 7
    in_flight: Set[str] = field(default_factory=set, repr=False)

    def is_submitting(self, form_id: str) -> bool:
        return form_id in self.in_flight

    async def submit(self, form: BookingForm, user_id: Optional[str] = None, today: Optional[date] = None) -> AppointmentDto:
        booking = validate_booking_form(form, today or date.today(), self.window_days)

        form_id = form.form_id
        if form_id:
            if form_id in self.in_flight:
                raise DuplicateSubmission(form_id)
            self.in_flight.add(form_id)
        try:
            doctor = self.repo.get_doctor(booking.doctor_id)
            if not doctor:
                raise NotFound("Doctor not found")
            if not doctor.is_available:
                raise ValidationError({"doctor_id": "Doctor is not available"}, message="Doctor is not available")

            patient = self.repo.find_or_create_patient(booking.patient_name, booking.patient_phone, user_id)
            appt = self.repo.create(patient.id, doctor.id, booking.slot_time, booking.symptoms, booking.reason)
            logger.info(f"Booked appointment {appt.id} with doctor {doctor.id} at {booking.slot_time.isoformat()}")
            await self.notifier.publish(QueueEvent(doctor_id=doctor.id, appointment_id=appt.id, kind="insert", status=INITIAL_STATUS.value))
            return appt
        finally:
            if form_id:
                self.in_flight.discard(form_id)
