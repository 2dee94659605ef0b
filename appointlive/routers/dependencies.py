# Shared FastAPI dependencies: auth, role-scoped actors and service wiring
from dataclasses import dataclass
from functools import lru_cache
from typing import Set

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from ..config import settings
from ..database import get_session
from ..utils import decode_jwt_token, session_id_for_token
from ..application.ports.active_role_store import ActiveRoleStore
from ..application.ports.eta_provider import EtaProvider
from ..application.services.appointments_service import Actor, AppointmentsService
from ..application.services.booking_service import BookingService
from ..application.services.doctors_service import DoctorsService
from ..application.services.eta_service import EtaService
from ..application.services.queue_service import QueueService
from ..application.services.role_service import RoleService
from ..application.services.status_engine import ActorRole
from ..infrastructure.audit.std_logger import StdAuditLogger
from ..infrastructure.maps.distance_matrix import GoogleDistanceMatrixProvider
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.doctors_repository_sql import SqlDoctorsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.profiles_repository_sql import SqlProfilesRepository
from ..infrastructure.realtime.queue_broadcaster import InMemoryQueueBroadcaster
from ..infrastructure.sessions.memory_role_store import InMemoryActiveRoleStore
from ..infrastructure.sessions.redis_role_store import RedisActiveRoleStore

oauth2_scheme = HTTPBearer()

# Form ids of bookings currently being submitted, shared by all requests
_booking_in_flight: Set[str] = set()


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    session_id: str


def authenticate_token(token: str) -> AuthContext:
    payload = decode_jwt_token(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")
    return AuthContext(user_id=str(user_id), session_id=session_id_for_token(token, payload))


def get_current_auth(credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme)) -> AuthContext:
    return authenticate_token(credentials.credentials)


@lru_cache()
def get_queue_broadcaster() -> InMemoryQueueBroadcaster:
    return InMemoryQueueBroadcaster()


@lru_cache()
def get_role_store() -> ActiveRoleStore:
    if settings.REDIS_URL:
        return RedisActiveRoleStore(settings.REDIS_URL)
    return InMemoryActiveRoleStore()


@lru_cache()
def get_audit_logger() -> StdAuditLogger:
    return StdAuditLogger()


def get_eta_provider() -> EtaProvider:
    return GoogleDistanceMatrixProvider(
        api_key=settings.GOOGLE_MAPS_API_KEY,
        url=settings.DISTANCE_MATRIX_URL,
        timeout_seconds=settings.ETA_TIMEOUT_SECONDS,
    )


def get_appointments_repo(session: Session = Depends(get_session)) -> SqlAppointmentsRepository:
    return SqlAppointmentsRepository(session)


def get_role_service(
    session: Session = Depends(get_session),
    store: ActiveRoleStore = Depends(get_role_store),
) -> RoleService:
    return RoleService(SqlProfilesRepository(session), store, session_ttl_seconds=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)


def get_doctors_service(session: Session = Depends(get_session)) -> DoctorsService:
    return DoctorsService(SqlDoctorsRepository(session))


def get_appointments_service(
    repo: SqlAppointmentsRepository = Depends(get_appointments_repo),
    notifier: InMemoryQueueBroadcaster = Depends(get_queue_broadcaster),
    audit: StdAuditLogger = Depends(get_audit_logger),
) -> AppointmentsService:
    return AppointmentsService(repo, notifier, audit)


def get_booking_service(
    repo: SqlAppointmentsRepository = Depends(get_appointments_repo),
    notifier: InMemoryQueueBroadcaster = Depends(get_queue_broadcaster),
) -> BookingService:
    return BookingService(repo, notifier, window_days=settings.BOOKING_WINDOW_DAYS, in_flight=_booking_in_flight)


def get_queue_service(repo: SqlAppointmentsRepository = Depends(get_appointments_repo)) -> QueueService:
    return QueueService(repo)


def get_eta_service(
    appointments: AppointmentsService = Depends(get_appointments_service),
    provider: EtaProvider = Depends(get_eta_provider),
) -> EtaService:
    return EtaService(appointments, provider)


def require_patient(
    auth: AuthContext = Depends(get_current_auth),
    roles: RoleService = Depends(get_role_service),
) -> Actor:
    return roles.actor_for(auth.user_id, auth.session_id, ActorRole.PATIENT)


def require_doctor(
    auth: AuthContext = Depends(get_current_auth),
    roles: RoleService = Depends(get_role_service),
) -> Actor:
    return roles.actor_for(auth.user_id, auth.session_id, ActorRole.DOCTOR)
