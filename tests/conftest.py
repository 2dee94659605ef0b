import os
import itertools
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import pytest

# Settings are read at import time
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-appointlive")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "")

from appointlive.exceptions import StoreError
from appointlive.application.ports.appointments_repo import AppointmentDto, DoctorDto, PatientDto, TrackingDto
from appointlive.application.services.appointments_service import Actor, AppointmentsService
from appointlive.application.services.status_engine import ActorRole


class FakeAppointmentsRepo:
    def __init__(self):
        self._ids = itertools.count(1)
        self._patient_ids = itertools.count(100)
        self.doctors: Dict[int, DoctorDto] = {}
        self.patients: Dict[int, PatientDto] = {}
        self.appts: Dict[int, AppointmentDto] = {}
        self.tracking: Dict[int, TrackingDto] = {}
        self.fail_writes = False

    # seeding helpers
    def add_doctor(self, doctor_id: int, name: str = "Dr. Sarah Johnson", is_available: bool = True, address: Optional[str] = "221 Baker Street, London", user_id: Optional[str] = None) -> DoctorDto:
        d = DoctorDto(id=doctor_id, name=name, specialization="Cardiologist", location="Downtown", is_available=is_available, address=address, user_id=user_id)
        self.doctors[doctor_id] = d
        return d

    def add_patient(self, patient_id: int, name: str = "Alice", phone: str = "+15550001", user_id: Optional[str] = None) -> PatientDto:
        p = PatientDto(id=patient_id, name=name, phone=phone, user_id=user_id)
        self.patients[patient_id] = p
        return p

    def add_appointment(self, patient_id: int, doctor_id: int, slot_time: datetime, status: str = "booked") -> AppointmentDto:
        patient = self.patients.get(patient_id)
        a = AppointmentDto(
            id=next(self._ids),
            patient_id=patient_id,
            doctor_id=doctor_id,
            slot_time=slot_time,
            status=status,
            patient_name=patient.name if patient else None,
            patient_phone=patient.phone if patient else None,
            created_at=datetime.utcnow(),
        )
        self.appts[a.id] = a
        return replace(a)

    # AppointmentsRepository
    def get_doctor(self, doctor_id: int) -> Optional[DoctorDto]:
        return self.doctors.get(doctor_id)

    def find_or_create_patient(self, name: str, phone: str, user_id: Optional[str] = None) -> PatientDto:
        for p in sorted(self.patients.values(), key=lambda p: p.id):
            if user_id and p.user_id == user_id:
                return self.add_patient(p.id, name, phone, user_id)
            if not user_id and p.phone == phone and p.user_id is None:
                return p
        return self.add_patient(next(self._patient_ids), name, phone, user_id)

    def create(self, patient_id: int, doctor_id: int, slot_time: datetime, symptoms: Optional[str], reason: Optional[str]) -> AppointmentDto:
        if self.fail_writes:
            raise StoreError("Failed to book appointment")
        a = self.add_appointment(patient_id, doctor_id, slot_time)
        self.appts[a.id].symptoms = symptoms
        self.appts[a.id].reason = reason
        return replace(self.appts[a.id])

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        a = self.appts.get(appointment_id)
        return replace(a) if a else None

    def list_for_patient(self, patient_id: int) -> List[AppointmentDto]:
        return [replace(a) for a in self.appts.values() if a.patient_id == patient_id]

    def list_for_doctor_since(self, doctor_id: int, since: datetime) -> List[AppointmentDto]:
        return [replace(a) for a in self.appts.values() if a.doctor_id == doctor_id and a.slot_time >= since]

    def update_status(self, appointment_id: int, status: str) -> AppointmentDto:
        if self.fail_writes:
            raise StoreError("Failed to update appointment status")
        a = self.appts[appointment_id]
        a.status = status
        a.updated_at = datetime.utcnow()
        return replace(a)

    def record_departure(self, appointment_id: int, lat: float, lng: float, eta_minutes: int, status: str) -> TrackingDto:
        if self.fail_writes:
            raise StoreError("Failed to save tracking")
        t = TrackingDto(appointment_id, lat, lng, eta_minutes, datetime.utcnow())
        self.tracking[appointment_id] = t
        self.appts[appointment_id].status = status
        return t

    def get_tracking(self, appointment_id: int) -> Optional[TrackingDto]:
        return self.tracking.get(appointment_id)

    def tracking_for(self, appointment_ids: Iterable[int]) -> Dict[int, TrackingDto]:
        return {i: self.tracking[i] for i in appointment_ids if i in self.tracking}


class FakeNotifier:
    def __init__(self):
        self.events = []

    async def publish(self, event):
        self.events.append(event)


class FakeAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, actor_role, actor_id=None, appointment_id=None, success=True, details=None):
        self.entries.append({
            "action": action,
            "actor_role": actor_role,
            "actor_id": actor_id,
            "appointment_id": appointment_id,
            "success": success,
            "details": details or {},
        })


@pytest.fixture
def repo():
    r = FakeAppointmentsRepo()
    r.add_doctor(1)
    r.add_patient(10, user_id="patient-user")
    r.add_patient(11, name="Bob", phone="+15550002")
    return r


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def audit():
    return FakeAudit()


@pytest.fixture
def appointments_service(repo, notifier, audit):
    return AppointmentsService(repo=repo, notifier=notifier, audit=audit)


@pytest.fixture
def patient():
    return Actor(role=ActorRole.PATIENT, party_id=10, user_id="patient-user")


@pytest.fixture
def doctor():
    return Actor(role=ActorRole.DOCTOR, party_id=1, user_id="doctor-user")
