from dataclasses import dataclass
from typing import List, Optional, Protocol

from .appointments_repo import DoctorDto


@dataclass
class DoctorFilters:
    query: Optional[str] = None
    specialization: Optional[str] = None
    location: Optional[str] = None
    min_rating: Optional[float] = None
    available: Optional[bool] = None


class DoctorsRepository(Protocol):
    def search(self, filters: DoctorFilters, skip: int = 0, limit: int = 100) -> List[DoctorDto]:
        ...

    def get(self, doctor_id: int) -> Optional[DoctorDto]:
        ...
