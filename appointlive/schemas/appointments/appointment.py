# appointlive/schemas/appointments/appointment.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class AppointmentCreate(BaseModel):
    doctor_id: int
    selected_date: Optional[str] = None  # YYYY-MM-DD
    selected_time: Optional[str] = None  # e.g. "09:30 AM"
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    symptoms: Optional[str] = None
    reason: Optional[str] = None
    form_id: Optional[str] = Field(default=None, max_length=64)


class TrackingResponse(BaseModel):
    patient_location_lat: float
    patient_location_lng: float
    eta_minutes: int
    last_updated: datetime


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    doctor_name: Optional[str] = None
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    appointment_date: str
    appointment_time: str
    status: str
    symptoms: Optional[str] = None
    reason: Optional[str] = None
    tracking: Optional[TrackingResponse] = None
    created_at: Optional[datetime] = None


class BookingDate(BaseModel):
    date: str
    label: str


class BookingOptionsResponse(BaseModel):
    dates: List[BookingDate]
    time_slots: List[str]


class OnMyWayRequest(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    error: Optional[str] = None  # permission_denied, unsupported, timeout, position_unavailable


class OnMyWayResponse(BaseModel):
    appointment_id: int
    status: str
    eta_minutes: int
    estimated: bool
    distance: Optional[str] = None
    duration: Optional[str] = None
