"""
Appointment status graph.

Holds the allowed transitions, which role may trigger each of them, and the
terminal states. Everything here is pure; persistence and side effects live
in ``AppointmentsService``.
"""

import enum
from typing import Dict, FrozenSet, List, Tuple

from ...exceptions import InvalidTransition


class AppointmentStatus(str, enum.Enum):
    """Appointment status enumeration"""
    BOOKED = "booked"
    ON_WAY = "on-way"
    ARRIVED = "arrived"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    NO_SHOW = "no-show"
    LATE = "late"
    CANCELLED = "cancelled"


class ActorRole(str, enum.Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"


INITIAL_STATUS = AppointmentStatus.BOOKED

TERMINAL_STATUSES: FrozenSet[AppointmentStatus] = frozenset({
    AppointmentStatus.COMPLETED,
    AppointmentStatus.NO_SHOW,
    AppointmentStatus.CANCELLED,
})

# (from, to) -> role allowed to trigger it
TRANSITIONS: Dict[Tuple[AppointmentStatus, AppointmentStatus], ActorRole] = {
    (AppointmentStatus.BOOKED, AppointmentStatus.ON_WAY): ActorRole.PATIENT,
    (AppointmentStatus.BOOKED, AppointmentStatus.NO_SHOW): ActorRole.DOCTOR,
    (AppointmentStatus.BOOKED, AppointmentStatus.LATE): ActorRole.DOCTOR,
    (AppointmentStatus.ON_WAY, AppointmentStatus.ARRIVED): ActorRole.PATIENT,
    (AppointmentStatus.ON_WAY, AppointmentStatus.LATE): ActorRole.DOCTOR,
    (AppointmentStatus.ARRIVED, AppointmentStatus.IN_PROGRESS): ActorRole.DOCTOR,
    (AppointmentStatus.IN_PROGRESS, AppointmentStatus.COMPLETED): ActorRole.DOCTOR,
}


def is_terminal(status: AppointmentStatus) -> bool:
    return AppointmentStatus(status) in TERMINAL_STATUSES


def can_transition(current: AppointmentStatus, target: AppointmentStatus, actor: ActorRole) -> bool:
    try:
        key = (AppointmentStatus(current), AppointmentStatus(target))
    except ValueError:
        return False
    return TRANSITIONS.get(key) == ActorRole(actor)


def check_transition(current: AppointmentStatus, target: AppointmentStatus, actor: ActorRole) -> AppointmentStatus:
    """Return ``target`` when the edge exists for ``actor``, else raise InvalidTransition."""
    if not can_transition(current, target, actor):
        raise InvalidTransition(
            getattr(current, "value", str(current)),
            getattr(target, "value", str(target)),
            getattr(actor, "value", str(actor)),
        )
    return AppointmentStatus(target)


def allowed_targets(current: AppointmentStatus, actor: ActorRole) -> List[AppointmentStatus]:
    """Statuses ``actor`` may move an appointment to from ``current``, in table order."""
    current = AppointmentStatus(current)
    if is_terminal(current):
        return []
    return [to for (frm, to), role in TRANSITIONS.items() if frm == current and role == ActorRole(actor)]
