"""
Doctor queue read model.

The queue is never stored. Every read filters the doctor's appointments to
``slot_time >= start of today``, orders them by slot time (appointment id
breaks ties), drops completed visits from the displayed list and numbers the
rest 1..N.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional

from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto, TrackingDto
from .status_engine import ActorRole, AppointmentStatus, allowed_targets

logger = logging.getLogger(__name__)


@dataclass
class QueueEntry:
    appointment_id: int
    queue_position: int
    patient_id: int
    patient_name: Optional[str]
    patient_phone: Optional[str]
    slot_time: datetime
    status: str
    symptoms: Optional[str] = None
    reason: Optional[str] = None
    eta_minutes: Optional[int] = None
    available_actions: List[str] = field(default_factory=list)

    @property
    def appointment_time(self) -> str:
        return self.slot_time.strftime("%I:%M %p")


@dataclass
class DoctorQueue:
    doctor_id: int
    since: datetime
    entries: List[QueueEntry]
    total_today: int
    on_way_count: int
    arrived_count: int
    current_patient: Optional[QueueEntry] = None


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def derive_queue(doctor_id: int, appointments: Iterable[AppointmentDto], tracking: Dict[int, TrackingDto], since: datetime) -> DoctorQueue:
    filtered = [a for a in appointments if a.slot_time >= since]
    ordered = sorted(filtered, key=lambda a: (a.slot_time, a.id))

    entries: List[QueueEntry] = []
    for appt in ordered:
        if appt.status == AppointmentStatus.COMPLETED.value:
            continue
        track = tracking.get(appt.id)
        entries.append(QueueEntry(
            appointment_id=appt.id,
            queue_position=len(entries) + 1,
            patient_id=appt.patient_id,
            patient_name=appt.patient_name,
            patient_phone=appt.patient_phone,
            slot_time=appt.slot_time,
            status=appt.status,
            symptoms=appt.symptoms,
            reason=appt.reason,
            eta_minutes=track.eta_minutes if track else None,
            available_actions=[s.value for s in allowed_targets(AppointmentStatus(appt.status), ActorRole.DOCTOR)],
        ))

    in_progress = [e for e in entries if e.status == AppointmentStatus.IN_PROGRESS.value]
    if len(in_progress) > 1:
        logger.warning(
            f"Doctor {doctor_id} has {len(in_progress)} in-progress appointments "
            f"({[e.appointment_id for e in in_progress]}); showing the earliest"
        )

    return DoctorQueue(
        doctor_id=doctor_id,
        since=since,
        entries=entries,
        total_today=len(filtered),
        on_way_count=sum(1 for a in filtered if a.status == AppointmentStatus.ON_WAY.value),
        arrived_count=sum(1 for a in filtered if a.status == AppointmentStatus.ARRIVED.value),
        current_patient=in_progress[0] if in_progress else None,
    )


@dataclass
class QueueService:
    repo: AppointmentsRepository

    def today_queue(self, doctor_id: int, today: Optional[date] = None) -> DoctorQueue:
        since = start_of_day(today or date.today())
        appointments = self.repo.list_for_doctor_since(doctor_id, since)
        tracking = self.repo.tracking_for([a.id for a in appointments])
        return derive_queue(doctor_id, appointments, tracking, since)
