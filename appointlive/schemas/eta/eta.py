# appointlive/schemas/eta/eta.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CalculateEtaRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    appointment_id: int = Field(alias="appointmentId")
    patient_lat: float = Field(alias="patientLat", ge=-90, le=90)
    patient_lng: float = Field(alias="patientLng", ge=-180, le=180)
    doctor_address: str = Field(alias="doctorAddress", min_length=1)


class CalculateEtaResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    eta_minutes: int = Field(alias="etaMinutes")
    distance: Optional[str] = None
    duration: Optional[str] = None
