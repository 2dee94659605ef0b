# appointlive/schemas/doctors/doctor.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class DoctorResponse(BaseModel):
    id: int
    name: str
    specialization: str
    experience: int
    rating: float = Field(ge=0, le=5)
    fees: int
    location: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    profile_image: Optional[str] = None
    is_available: bool = True
    created_at: Optional[datetime] = None

