# appointlive/schemas/roles/role.py
from pydantic import BaseModel
from typing import List, Optional


class RolesResponse(BaseModel):
    user_id: str
    available_roles: List[str]
    active_role: Optional[str] = None
    needs_selection: bool
    needs_onboarding: bool
    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None


class ActiveRoleRequest(BaseModel):
    role: str
