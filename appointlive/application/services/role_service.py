from dataclasses import dataclass, field
from typing import List, Optional

from ..ports.active_role_store import ActiveRoleStore
from ..ports.profiles_repo import ProfilesRepository
from .appointments_service import Actor
from .status_engine import ActorRole
from ...exceptions import PermissionDenied, ValidationError


@dataclass
class RoleResolution:
    user_id: str
    available_roles: List[str]
    active_role: Optional[str] = None
    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None

    @property
    def needs_selection(self) -> bool:
        return self.active_role is None and len(self.available_roles) > 1

    @property
    def needs_onboarding(self) -> bool:
        return not self.available_roles


@dataclass
class RoleService:
    profiles: ProfilesRepository
    store: ActiveRoleStore
    session_ttl_seconds: int = 3600

    def resolve(self, user_id: str, session_id: str) -> RoleResolution:
        patient = self.profiles.patient_for_user(user_id)
        doctor = self.profiles.doctor_for_user(user_id)

        roles: List[str] = []
        if patient:
            roles.append(ActorRole.PATIENT.value)
        if doctor:
            roles.append(ActorRole.DOCTOR.value)

        active = None
        if len(roles) == 1:
            active = roles[0]
        elif len(roles) > 1:
            chosen = self.store.get(session_id)
            if chosen in roles:
                active = chosen

        return RoleResolution(
            user_id=user_id,
            available_roles=roles,
            active_role=active,
            patient_id=patient.id if patient else None,
            doctor_id=doctor.id if doctor else None,
        )

    def select(self, user_id: str, session_id: str, role: str) -> RoleResolution:
        resolution = self.resolve(user_id, session_id)
        if role not in resolution.available_roles:
            raise ValidationError({"role": f"Role '{role}' is not available for this account"}, message="Invalid role selection")
        self.store.set(session_id, role, self.session_ttl_seconds)
        resolution.active_role = role
        return resolution

    def clear(self, session_id: str) -> None:
        self.store.clear(session_id)

    def actor_for(self, user_id: str, session_id: str, required: ActorRole) -> Actor:
        resolution = self.resolve(user_id, session_id)
        if resolution.active_role != required.value:
            if resolution.needs_onboarding:
                raise PermissionDenied("No patient or doctor profile is linked to this account")
            raise PermissionDenied(f"This action requires the {required.value} view")
        party_id = resolution.patient_id if required == ActorRole.PATIENT else resolution.doctor_id
        return Actor(role=required, party_id=party_id, user_id=user_id)
