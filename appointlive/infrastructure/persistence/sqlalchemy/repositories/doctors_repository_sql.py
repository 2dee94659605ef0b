import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, or_

from .....models import Doctor
from .....exceptions import StoreError
from .....application.ports.appointments_repo import DoctorDto
from .....application.ports.doctors_repo import DoctorFilters, DoctorsRepository
from .appointments_repository_sql import doctor_to_dto

logger = logging.getLogger(__name__)


class SqlDoctorsRepository(DoctorsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _fail(self, operation: str, exc: SQLAlchemyError) -> StoreError:
        self.session.rollback()
        logger.error(f"Doctor store failed during {operation}: {exc}")
        return StoreError(f"Failed to {operation}")

    def search(self, filters: DoctorFilters, skip: int = 0, limit: int = 100) -> List[DoctorDto]:
        query = select(Doctor)

        if filters.query:
            term = f"%{filters.query}%"
            query = query.where(or_(Doctor.name.ilike(term), Doctor.specialization.ilike(term)))
        if filters.specialization:
            query = query.where(Doctor.specialization.ilike(filters.specialization))
        if filters.location:
            query = query.where(Doctor.location.ilike(f"%{filters.location}%"))
        if filters.min_rating is not None:
            query = query.where(Doctor.rating >= filters.min_rating)
        if filters.available is not None:
            query = query.where(Doctor.is_available == filters.available)

        query = query.order_by(Doctor.rating.desc(), Doctor.name).offset(skip).limit(limit)
        try:
            rows = self.session.exec(query).all()
        except SQLAlchemyError as e:
            raise self._fail("search doctors", e)
        return [doctor_to_dto(d) for d in rows]

    def get(self, doctor_id: int) -> Optional[DoctorDto]:
        try:
            d = self.session.get(Doctor, doctor_id)
        except SQLAlchemyError as e:
            raise self._fail("load doctor", e)
        return doctor_to_dto(d) if d else None
