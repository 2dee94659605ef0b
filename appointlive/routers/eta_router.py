import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..exceptions import AppointLiveError
from ..schemas.eta.eta import CalculateEtaRequest, CalculateEtaResponse
from ..application.services.appointments_service import Actor
from ..application.services.eta_service import EtaService
from .dependencies import get_eta_service, require_patient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions", tags=["Functions"])


@router.post("/calculate-eta", response_model=CalculateEtaResponse, response_model_by_alias=True)
async def calculate_eta(
    body: CalculateEtaRequest,
    actor: Actor = Depends(require_patient),
    eta: EtaService = Depends(get_eta_service),
):
    """Route-time estimate for a departing patient. Failures answer 500 with ``{success: false, error}``."""
    try:
        result = await eta.calculate(body.appointment_id, body.patient_lat, body.patient_lng, body.doctor_address, actor)
    except AppointLiveError as e:
        logger.error(f"Error calculating ETA for appointment {body.appointment_id}: {e.message}")
        return JSONResponse(status_code=500, content={"success": False, "error": e.message})

    return CalculateEtaResponse(eta_minutes=result.eta_minutes, distance=result.distance, duration=result.duration)
