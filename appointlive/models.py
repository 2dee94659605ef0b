# appointlive/models.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime


class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, max_length=64, index=True)
    name: str = Field(max_length=100)
    specialization: str = Field(max_length=100, index=True)
    experience: int = Field(default=0)  # Years of experience
    rating: float = Field(default=0.0)  # Average rating (0-5)
    fees: int = Field(default=0)
    location: str = Field(max_length=255)  # Area label shown in search
    address: Optional[str] = Field(default=None, max_length=255)  # Routing destination
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    profile_image: Optional[str] = None
    is_available: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    appointments: List["Appointment"] = Relationship(back_populates="doctor")


class Patient(SQLModel, table=True):
    __tablename__ = "patients"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, max_length=64, index=True)
    name: str = Field(max_length=100)
    phone: str = Field(max_length=20, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    appointments: List["Appointment"] = Relationship(back_populates="patient")


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"

    id: Optional[int] = Field(default=None, primary_key=True)
    patient_id: int = Field(foreign_key="patients.id", index=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    slot_time: datetime = Field(index=True)
    status: str = Field(default="booked", max_length=20)  # see AppointmentStatus
    symptoms: Optional[str] = None
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    patient: Optional[Patient] = Relationship(back_populates="appointments")
    doctor: Optional[Doctor] = Relationship(back_populates="appointments")


class RealtimeTracking(SQLModel, table=True):
    __tablename__ = "realtime_tracking"

    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointments.id", unique=True, index=True)
    patient_location_lat: float
    patient_location_lng: float
    eta_minutes: int
    last_updated: datetime = Field(default_factory=datetime.utcnow)
