import logging
from fastapi import APIRouter, Depends

from ..schemas.roles.role import ActiveRoleRequest, RolesResponse
from ..application.services.role_service import RoleResolution, RoleService
from .dependencies import AuthContext, get_current_auth, get_role_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me", tags=["Roles"])


def _to_response(resolution: RoleResolution) -> RolesResponse:
    return RolesResponse(
        user_id=resolution.user_id,
        available_roles=resolution.available_roles,
        active_role=resolution.active_role,
        needs_selection=resolution.needs_selection,
        needs_onboarding=resolution.needs_onboarding,
        patient_id=resolution.patient_id,
        doctor_id=resolution.doctor_id,
    )


@router.get("/roles", response_model=RolesResponse)
def get_roles(
    auth: AuthContext = Depends(get_current_auth),
    roles: RoleService = Depends(get_role_service),
):
    return _to_response(roles.resolve(auth.user_id, auth.session_id))


@router.put("/active-role", response_model=RolesResponse)
def set_active_role(
    body: ActiveRoleRequest,
    auth: AuthContext = Depends(get_current_auth),
    roles: RoleService = Depends(get_role_service),
):
    resolution = roles.select(auth.user_id, auth.session_id, body.role)
    logger.info(f"User {auth.user_id} switched to the {body.role} view")
    return _to_response(resolution)


@router.delete("/active-role", response_model=RolesResponse)
def clear_active_role(
    auth: AuthContext = Depends(get_current_auth),
    roles: RoleService = Depends(get_role_service),
):
    """Forget this session's view choice; a single-role account keeps its only role."""
    roles.clear(auth.session_id)
    logger.info(f"User {auth.user_id} cleared the active view")
    return _to_response(roles.resolve(auth.user_id, auth.session_id))
