from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from ..schemas.doctors.doctor import DoctorResponse
from ..application.ports.appointments_repo import DoctorDto
from ..application.ports.doctors_repo import DoctorFilters
from ..application.services.doctors_service import DoctorsService
from .dependencies import AuthContext, get_current_auth, get_doctors_service

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def to_doctor_response(d: DoctorDto) -> DoctorResponse:
    return DoctorResponse(
        id=d.id,
        name=d.name,
        specialization=d.specialization,
        experience=d.experience,
        rating=d.rating,
        fees=d.fees,
        location=d.location,
        address=d.address,
        latitude=d.latitude,
        longitude=d.longitude,
        profile_image=d.profile_image,
        is_available=d.is_available,
        created_at=d.created_at,
    )


@router.get("", response_model=List[DoctorResponse])
def list_doctors(
    q: Optional[str] = Query(None, description="Search by name or specialization"),
    specialization: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    available: Optional[bool] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    auth: AuthContext = Depends(get_current_auth),
    doctors: DoctorsService = Depends(get_doctors_service),
):
    filters = DoctorFilters(query=q, specialization=specialization, location=location, min_rating=min_rating, available=available)
    return [to_doctor_response(d) for d in doctors.search(filters, skip=skip, limit=limit)]


@router.get("/{doctor_id}", response_model=DoctorResponse)
def get_doctor(
    doctor_id: int,
    auth: AuthContext = Depends(get_current_auth),
    doctors: DoctorsService = Depends(get_doctors_service),
):
    return to_doctor_response(doctors.get(doctor_id))
