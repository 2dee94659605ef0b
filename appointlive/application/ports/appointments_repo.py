from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
from datetime import datetime


@dataclass
class DoctorDto:
    id: int
    name: str
    specialization: str
    location: str
    is_available: bool
    address: Optional[str] = None
    user_id: Optional[str] = None
    experience: int = 0
    rating: float = 0.0
    fees: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def routing_address(self) -> str:
        return self.address or self.location


@dataclass
class PatientDto:
    id: int
    name: str
    phone: str
    user_id: Optional[str] = None


@dataclass
class AppointmentDto:
    id: int
    patient_id: int
    doctor_id: int
    slot_time: datetime
    status: str
    symptoms: Optional[str] = None
    reason: Optional[str] = None
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class TrackingDto:
    appointment_id: int
    patient_location_lat: float
    patient_location_lng: float
    eta_minutes: int
    last_updated: datetime


class AppointmentsRepository:
    """Appointment record store. Implementations raise StoreError on read/write failures."""

    def get_doctor(self, doctor_id: int) -> Optional[DoctorDto]:
        ...

    def find_or_create_patient(self, name: str, phone: str, user_id: Optional[str] = None) -> PatientDto:
        ...

    def create(self, patient_id: int, doctor_id: int, slot_time: datetime, symptoms: Optional[str], reason: Optional[str]) -> AppointmentDto:
        ...

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        ...

    def list_for_patient(self, patient_id: int) -> List[AppointmentDto]:
        ...

    def list_for_doctor_since(self, doctor_id: int, since: datetime) -> List[AppointmentDto]:
        ...

    def update_status(self, appointment_id: int, status: str) -> AppointmentDto:
        ...

    def record_departure(self, appointment_id: int, lat: float, lng: float, eta_minutes: int, status: str) -> TrackingDto:
        """Upsert tracking keyed by appointment id and set the status in one write."""
        ...

    def get_tracking(self, appointment_id: int) -> Optional[TrackingDto]:
        ...

    def tracking_for(self, appointment_ids: Iterable[int]) -> Dict[int, TrackingDto]:
        ...
