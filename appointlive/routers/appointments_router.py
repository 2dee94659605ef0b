import logging
from datetime import date
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends

from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    BookingDate,
    BookingOptionsResponse,
    OnMyWayRequest,
    OnMyWayResponse,
    TrackingResponse,
)
from ..config import settings
from ..exceptions import NotFound, PermissionDenied
from ..application.ports.appointments_repo import AppointmentDto, TrackingDto
from ..application.services.appointments_service import Actor, AppointmentsService
from ..application.services.booking_service import TIME_SLOTS, BookingForm, BookingService, booking_dates, date_label
from ..application.services.eta_service import EtaService
from ..application.services.role_service import RoleService
from ..application.services.status_engine import ActorRole, AppointmentStatus
from ..infrastructure.location.reported_location import ReportedLocationSource
from .dependencies import (
    AuthContext,
    get_appointments_service,
    get_booking_service,
    get_current_auth,
    get_eta_service,
    get_role_service,
    require_doctor,
    require_patient,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def to_appointment_response(a: AppointmentDto, doctor_name: Optional[str] = None, tracking: Optional[TrackingDto] = None) -> AppointmentResponse:
    return AppointmentResponse(
        id=a.id,
        patient_id=a.patient_id,
        doctor_id=a.doctor_id,
        doctor_name=doctor_name,
        patient_name=a.patient_name,
        patient_phone=a.patient_phone,
        appointment_date=a.slot_time.strftime("%Y-%m-%d"),
        appointment_time=a.slot_time.strftime("%I:%M %p"),
        status=a.status,
        symptoms=a.symptoms,
        reason=a.reason,
        tracking=TrackingResponse(
            patient_location_lat=tracking.patient_location_lat,
            patient_location_lng=tracking.patient_location_lng,
            eta_minutes=tracking.eta_minutes,
            last_updated=tracking.last_updated,
        ) if tracking else None,
        created_at=a.created_at,
    )


def _doctor_name(service: AppointmentsService, appt: AppointmentDto, cache: Dict[int, str]) -> Optional[str]:
    if appt.doctor_id not in cache:
        try:
            cache[appt.doctor_id] = service.doctor_for(appt).name
        except NotFound:
            logger.warning(f"Appointment {appt.id} references missing doctor {appt.doctor_id}")
            return None
    return cache[appt.doctor_id]


@router.get("/booking-options", response_model=BookingOptionsResponse)
def booking_options(auth: AuthContext = Depends(get_current_auth)):
    today = date.today()
    return BookingOptionsResponse(
        dates=[BookingDate(date=d.isoformat(), label=date_label(d, today)) for d in booking_dates(today, settings.BOOKING_WINDOW_DAYS)],
        time_slots=list(TIME_SLOTS),
    )


@router.post("", response_model=AppointmentResponse, status_code=201)
async def book_appointment(
    body: AppointmentCreate,
    auth: AuthContext = Depends(get_current_auth),
    roles: RoleService = Depends(get_role_service),
    booking: BookingService = Depends(get_booking_service),
    appointments: AppointmentsService = Depends(get_appointments_service),
):
    # Accounts without a patient profile may book; the booking creates one
    if roles.resolve(auth.user_id, auth.session_id).active_role == ActorRole.DOCTOR.value:
        raise PermissionDenied("Switch to the patient view to book an appointment")

    form = BookingForm(
        doctor_id=body.doctor_id,
        selected_date=body.selected_date,
        selected_time=body.selected_time,
        patient_name=body.patient_name,
        patient_phone=body.patient_phone,
        symptoms=body.symptoms,
        reason=body.reason,
        form_id=body.form_id,
    )
    appt = await booking.submit(form, user_id=auth.user_id)
    return to_appointment_response(appt, _doctor_name(appointments, appt, {}))


@router.get("", response_model=List[AppointmentResponse])
def my_appointments(
    actor: Actor = Depends(require_patient),
    appointments: AppointmentsService = Depends(get_appointments_service),
):
    names: Dict[int, str] = {}
    return [
        to_appointment_response(a, _doctor_name(appointments, a, names))
        for a in appointments.list_for_patient(actor.party_id)
    ]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    auth: AuthContext = Depends(get_current_auth),
    roles: RoleService = Depends(get_role_service),
    appointments: AppointmentsService = Depends(get_appointments_service),
):
    resolution = roles.resolve(auth.user_id, auth.session_id)
    if resolution.active_role is None:
        raise PermissionDenied("Select a role to view appointments")
    role = ActorRole(resolution.active_role)
    party_id = resolution.patient_id if role == ActorRole.PATIENT else resolution.doctor_id
    appt = appointments.get_for_actor(appointment_id, Actor(role=role, party_id=party_id, user_id=auth.user_id))
    return to_appointment_response(appt, _doctor_name(appointments, appt, {}), appointments.tracking(appointment_id))


@router.post("/{appointment_id}/on-my-way", response_model=OnMyWayResponse)
async def on_my_way(
    appointment_id: int,
    body: OnMyWayRequest,
    actor: Actor = Depends(require_patient),
    eta: EtaService = Depends(get_eta_service),
):
    source = ReportedLocationSource(body.latitude, body.longitude, body.accuracy, body.error)
    result = await eta.request_on_my_way(appointment_id, actor, source)
    return OnMyWayResponse(
        appointment_id=result.appointment_id,
        status=AppointmentStatus.ON_WAY.value,
        eta_minutes=result.eta_minutes,
        estimated=result.estimated,
        distance=result.distance,
        duration=result.duration,
    )


@router.post("/{appointment_id}/arrived", response_model=AppointmentResponse)
async def mark_arrived(
    appointment_id: int,
    actor: Actor = Depends(require_patient),
    appointments: AppointmentsService = Depends(get_appointments_service),
):
    appt = await appointments.mark_arrived(appointment_id, actor)
    return to_appointment_response(appt, _doctor_name(appointments, appt, {}))


@router.post("/{appointment_id}/no-show", response_model=AppointmentResponse)
async def mark_no_show(
    appointment_id: int,
    actor: Actor = Depends(require_doctor),
    appointments: AppointmentsService = Depends(get_appointments_service),
):
    appt = await appointments.mark_no_show(appointment_id, actor)
    return to_appointment_response(appt)


@router.post("/{appointment_id}/late", response_model=AppointmentResponse)
async def mark_late(
    appointment_id: int,
    actor: Actor = Depends(require_doctor),
    appointments: AppointmentsService = Depends(get_appointments_service),
):
    appt = await appointments.mark_late(appointment_id, actor)
    return to_appointment_response(appt)


@router.post("/{appointment_id}/start", response_model=AppointmentResponse)
async def start_consultation(
    appointment_id: int,
    actor: Actor = Depends(require_doctor),
    appointments: AppointmentsService = Depends(get_appointments_service),
):
    appt = await appointments.start_consultation(appointment_id, actor)
    return to_appointment_response(appt)


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_consultation(
    appointment_id: int,
    actor: Actor = Depends(require_doctor),
    appointments: AppointmentsService = Depends(get_appointments_service),
):
    appt = await appointments.complete(appointment_id, actor)
    return to_appointment_response(appt)
