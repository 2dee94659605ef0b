import logging
from dataclasses import dataclass
from typing import List, Optional

from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto, DoctorDto, TrackingDto
from ..ports.audit_logger import AuditLogger
from ..ports.queue_notifier import QueueEvent, QueueNotifier
from .status_engine import ActorRole, AppointmentStatus, check_transition
from ...exceptions import InvalidTransition, NotFound, PermissionDenied, StoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Who is acting: a role plus the patient or doctor profile id behind it."""
    role: ActorRole
    party_id: int
    user_id: Optional[str] = None


@dataclass
class AppointmentsService:
    repo: AppointmentsRepository
    notifier: QueueNotifier
    audit: AuditLogger

    def get(self, appointment_id: int) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        return appt

    def get_for_actor(self, appointment_id: int, actor: Actor) -> AppointmentDto:
        appt = self.get(appointment_id)
        owner = appt.patient_id if actor.role == ActorRole.PATIENT else appt.doctor_id
        if owner != actor.party_id:
            raise PermissionDenied("You don't have access to this appointment")
        return appt

    def doctor_for(self, appt: AppointmentDto) -> DoctorDto:
        doctor = self.repo.get_doctor(appt.doctor_id)
        if not doctor:
            raise NotFound("Doctor not found")
        return doctor

    def tracking(self, appointment_id: int) -> Optional[TrackingDto]:
        return self.repo.get_tracking(appointment_id)

    def list_for_patient(self, patient_id: int) -> List[AppointmentDto]:
        return self.repo.list_for_patient(patient_id)

    def ensure_can_depart(self, appt: AppointmentDto, actor: Actor) -> None:
        """Departure is the booked -> on-way edge, or its idempotent repeat while on-way."""
        current = AppointmentStatus(appt.status)
        if current == AppointmentStatus.ON_WAY and actor.role == ActorRole.PATIENT:
            return
        check_transition(current, AppointmentStatus.ON_WAY, actor.role)

    async def transition(self, appointment_id: int, target: AppointmentStatus, actor: Actor) -> AppointmentDto:
        appt = self.get_for_actor(appointment_id, actor)
        current = AppointmentStatus(appt.status)
        if AppointmentStatus(target) == AppointmentStatus.ON_WAY:
            # Needs a location and an ETA, see record_departure
            raise InvalidTransition(current.value, AppointmentStatus.ON_WAY.value, actor.role.value)
        try:
            target = check_transition(current, target, actor.role)
        except InvalidTransition:
            self.audit.log("status_change", actor.role.value, actor.party_id, appointment_id, success=False,
                           details={"from": current.value, "to": AppointmentStatus(target).value, "reason": "invalid_transition"})
            raise

        try:
            updated = self.repo.update_status(appointment_id, target.value)
        except StoreError:
            self.audit.log("status_change", actor.role.value, actor.party_id, appointment_id, success=False,
                           details={"from": current.value, "to": target.value, "reason": "store_error"})
            raise

        self.audit.log("status_change", actor.role.value, actor.party_id, appointment_id,
                       details={"from": current.value, "to": target.value})
        logger.info(f"Appointment {appointment_id} moved {current.value} -> {target.value} by {actor.role.value}")
        await self.notifier.publish(QueueEvent(doctor_id=updated.doctor_id, appointment_id=appointment_id, kind="update", status=target.value))
        return updated

    async def record_departure(self, appointment_id: int, actor: Actor, lat: float, lng: float, eta_minutes: int) -> TrackingDto:
        appt = self.get_for_actor(appointment_id, actor)
        self.ensure_can_depart(appt, actor)
        previous = appt.status
        try:
            tracking = self.repo.record_departure(appointment_id, lat, lng, eta_minutes, AppointmentStatus.ON_WAY.value)
        except StoreError:
            self.audit.log("departure", actor.role.value, actor.party_id, appointment_id, success=False,
                           details={"eta_minutes": eta_minutes, "reason": "store_error"})
            raise

        self.audit.log("departure", actor.role.value, actor.party_id, appointment_id,
                       details={"from": previous, "to": AppointmentStatus.ON_WAY.value, "eta_minutes": eta_minutes})
        logger.info(f"Appointment {appointment_id} on the way, ETA {eta_minutes} min")
        await self.notifier.publish(QueueEvent(doctor_id=appt.doctor_id, appointment_id=appointment_id, kind="tracking", status=AppointmentStatus.ON_WAY.value))
        return tracking

    async def mark_arrived(self, appointment_id: int, actor: Actor) -> AppointmentDto:
        return await self.transition(appointment_id, AppointmentStatus.ARRIVED, actor)

    async def mark_no_show(self, appointment_id: int, actor: Actor) -> AppointmentDto:
        return await self.transition(appointment_id, AppointmentStatus.NO_SHOW, actor)

    async def mark_late(self, appointment_id: int, actor: Actor) -> AppointmentDto:
        return await self.transition(appointment_id, AppointmentStatus.LATE, actor)

    async def start_consultation(self, appointment_id: int, actor: Actor) -> AppointmentDto:
        return await self.transition(appointment_id, AppointmentStatus.IN_PROGRESS, actor)

    async def complete(self, appointment_id: int, actor: Actor) -> AppointmentDto:
        return await self.transition(appointment_id, AppointmentStatus.COMPLETED, actor)
