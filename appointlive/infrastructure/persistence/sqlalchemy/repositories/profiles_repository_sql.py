import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .....models import Doctor, Patient
from .....exceptions import StoreError
from .....application.ports.appointments_repo import DoctorDto, PatientDto
from .....application.ports.profiles_repo import ProfilesRepository
from .appointments_repository_sql import doctor_to_dto, patient_to_dto

logger = logging.getLogger(__name__)


class SqlProfilesRepository(ProfilesRepository):
    def __init__(self, session: Session):
        self.session = session

    def _fail(self, operation: str, exc: SQLAlchemyError) -> StoreError:
        self.session.rollback()
        logger.error(f"Profile store failed during {operation}: {exc}")
        return StoreError(f"Failed to {operation}")

    def patient_for_user(self, user_id: str) -> Optional[PatientDto]:
        try:
            p = self.session.exec(
                select(Patient).where(Patient.user_id == user_id).order_by(Patient.id)
            ).first()
        except SQLAlchemyError as e:
            raise self._fail("load patient profile", e)
        return patient_to_dto(p) if p else None

    def doctor_for_user(self, user_id: str) -> Optional[DoctorDto]:
        try:
            d = self.session.exec(select(Doctor).where(Doctor.user_id == user_id)).first()
        except SQLAlchemyError as e:
            raise self._fail("load doctor profile", e)
        return doctor_to_dto(d) if d else None
