from typing import Protocol, Optional

from .appointments_repo import DoctorDto, PatientDto


class ProfilesRepository(Protocol):
    def patient_for_user(self, user_id: str) -> Optional[PatientDto]:
        ...

    def doctor_for_user(self, user_id: str) -> Optional[DoctorDto]:
        ...
