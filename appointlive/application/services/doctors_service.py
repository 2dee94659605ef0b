from dataclasses import dataclass
from typing import List

from ..ports.appointments_repo import DoctorDto
from ..ports.doctors_repo import DoctorFilters, DoctorsRepository
from ...exceptions import NotFound

# Picker values that mean "no filter"
ALL_SPECIALISTS = "All Specialists"
NEAR_ME = "Near Me"


@dataclass
class DoctorsService:
    repo: DoctorsRepository

    def search(self, filters: DoctorFilters, skip: int = 0, limit: int = 100) -> List[DoctorDto]:
        normalized = DoctorFilters(
            query=filters.query.strip() if filters.query and filters.query.strip() else None,
            specialization=None if filters.specialization in (None, "", ALL_SPECIALISTS) else filters.specialization,
            location=None if filters.location in (None, "", NEAR_ME) else filters.location,
            min_rating=filters.min_rating,
            available=filters.available,
        )
        return self.repo.search(normalized, skip=skip, limit=limit)

    def get(self, doctor_id: int) -> DoctorDto:
        doctor = self.repo.get(doctor_id)
        if not doctor:
            raise NotFound("Doctor not found")
        return doctor
