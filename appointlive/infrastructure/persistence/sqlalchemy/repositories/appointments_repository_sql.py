import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .....models import Appointment, Doctor, Patient, RealtimeTracking
from .....exceptions import NotFound, StoreError
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    DoctorDto,
    PatientDto,
    TrackingDto,
)

logger = logging.getLogger(__name__)


def doctor_to_dto(d: Doctor) -> DoctorDto:
    return DoctorDto(
        id=d.id,
        name=d.name,
        specialization=d.specialization,
        location=d.location,
        is_available=bool(d.is_available),
        address=d.address,
        user_id=d.user_id,
        experience=d.experience,
        rating=d.rating,
        fees=d.fees,
        latitude=d.latitude,
        longitude=d.longitude,
        profile_image=d.profile_image,
        created_at=d.created_at,
    )


def patient_to_dto(p: Patient) -> PatientDto:
    return PatientDto(id=p.id, name=p.name, phone=p.phone, user_id=p.user_id)


def tracking_to_dto(t: RealtimeTracking) -> TrackingDto:
    return TrackingDto(
        appointment_id=t.appointment_id,
        patient_location_lat=t.patient_location_lat,
        patient_location_lng=t.patient_location_lng,
        eta_minutes=t.eta_minutes,
        last_updated=t.last_updated,
    )


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _appt_to_dto(self, a: Appointment, patient: Optional[Patient] = None) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            slot_time=a.slot_time,
            status=a.status,
            symptoms=a.symptoms,
            reason=a.reason,
            patient_name=patient.name if patient else None,
            patient_phone=patient.phone if patient else None,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )

    def _fail(self, operation: str, exc: SQLAlchemyError) -> StoreError:
        self.session.rollback()
        logger.error(f"Appointment store failed during {operation}: {exc}")
        return StoreError(f"Failed to {operation}")

    def get_doctor(self, doctor_id: int) -> Optional[DoctorDto]:
        try:
            d = self.session.exec(select(Doctor).where(Doctor.id == doctor_id)).first()
        except SQLAlchemyError as e:
            raise self._fail("load doctor", e)
        return doctor_to_dto(d) if d else None

    def find_or_create_patient(self, name: str, phone: str, user_id: Optional[str] = None) -> PatientDto:
        try:
            if user_id:
                # One profile per account; the latest booking's contact details win
                p = self.session.exec(
                    select(Patient).where(Patient.user_id == user_id).order_by(Patient.id)
                ).first()
                if p and (p.name != name or p.phone != phone):
                    p.name = name
                    p.phone = phone
                    self.session.add(p)
                    self.session.commit()
                    self.session.refresh(p)
            else:
                p = self.session.exec(
                    select(Patient).where(Patient.phone == phone, Patient.user_id.is_(None))
                ).first()
            if not p:
                p = Patient(name=name, phone=phone, user_id=user_id)
                self.session.add(p)
                self.session.commit()
                self.session.refresh(p)
        except SQLAlchemyError as e:
            raise self._fail("save patient", e)
        return patient_to_dto(p)

    def create(self, patient_id: int, doctor_id: int, slot_time: datetime, symptoms: Optional[str], reason: Optional[str]) -> AppointmentDto:
        appt = Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            slot_time=slot_time,
            status="booked",
            symptoms=symptoms,
            reason=reason,
        )
        try:
            self.session.add(appt)
            self.session.commit()
            self.session.refresh(appt)
            patient = self.session.get(Patient, patient_id)
        except SQLAlchemyError as e:
            raise self._fail("book appointment", e)
        return self._appt_to_dto(appt, patient)

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        try:
            row = self.session.exec(
                select(Appointment, Patient)
                .join(Patient, Patient.id == Appointment.patient_id)
                .where(Appointment.id == appointment_id)
            ).first()
        except SQLAlchemyError as e:
            raise self._fail("load appointment", e)
        if not row:
            return None
        appt, patient = row
        return self._appt_to_dto(appt, patient)

    def list_for_patient(self, patient_id: int) -> List[AppointmentDto]:
        try:
            rows = self.session.exec(
                select(Appointment, Patient)
                .join(Patient, Patient.id == Appointment.patient_id)
                .where(Appointment.patient_id == patient_id)
                .order_by(Appointment.slot_time.desc())
            ).all()
        except SQLAlchemyError as e:
            raise self._fail("list appointments", e)
        return [self._appt_to_dto(a, p) for a, p in rows]

    def list_for_doctor_since(self, doctor_id: int, since: datetime) -> List[AppointmentDto]:
        try:
            rows = self.session.exec(
                select(Appointment, Patient)
                .join(Patient, Patient.id == Appointment.patient_id)
                .where(Appointment.doctor_id == doctor_id)
                .where(Appointment.slot_time >= since)
                .order_by(Appointment.slot_time, Appointment.id)
            ).all()
        except SQLAlchemyError as e:
            raise self._fail("load queue", e)
        return [self._appt_to_dto(a, p) for a, p in rows]

    def update_status(self, appointment_id: int, status: str) -> AppointmentDto:
        try:
            a = self.session.get(Appointment, appointment_id)
            if not a:
                raise NotFound("Appointment not found")
            a.status = status
            a.updated_at = datetime.utcnow()
            self.session.add(a)
            self.session.commit()
            self.session.refresh(a)
            patient = self.session.get(Patient, a.patient_id)
        except SQLAlchemyError as e:
            raise self._fail("update appointment status", e)
        return self._appt_to_dto(a, patient)

    def record_departure(self, appointment_id: int, lat: float, lng: float, eta_minutes: int, status: str) -> TrackingDto:
        now = datetime.utcnow()
        try:
            a = self.session.get(Appointment, appointment_id)
            if not a:
                raise NotFound("Appointment not found")
            t = self.session.exec(
                select(RealtimeTracking).where(RealtimeTracking.appointment_id == appointment_id)
            ).first()
            if not t:
                t = RealtimeTracking(appointment_id=appointment_id, patient_location_lat=lat, patient_location_lng=lng, eta_minutes=eta_minutes)
            t.patient_location_lat = lat
            t.patient_location_lng = lng
            t.eta_minutes = eta_minutes
            t.last_updated = now
            a.status = status
            a.updated_at = now
            self.session.add(t)
            self.session.add(a)
            self.session.commit()
            self.session.refresh(t)
        except SQLAlchemyError as e:
            raise self._fail("save tracking", e)
        return tracking_to_dto(t)

    def get_tracking(self, appointment_id: int) -> Optional[TrackingDto]:
        try:
            t = self.session.exec(
                select(RealtimeTracking).where(RealtimeTracking.appointment_id == appointment_id)
            ).first()
        except SQLAlchemyError as e:
            raise self._fail("load tracking", e)
        return tracking_to_dto(t) if t else None

    def tracking_for(self, appointment_ids: Iterable[int]) -> Dict[int, TrackingDto]:
        ids = list(appointment_ids)
        if not ids:
            return {}
        try:
            rows = self.session.exec(
                select(RealtimeTracking).where(RealtimeTracking.appointment_id.in_(ids))
            ).all()
        except SQLAlchemyError as e:
            raise self._fail("load tracking", e)
        return {t.appointment_id: tracking_to_dto(t) for t in rows}
