import math
import random
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..ports.eta_provider import EtaProvider
from ..ports.location_source import LocationSource
from .appointments_service import Actor, AppointmentsService
from ...exceptions import ServiceUnavailable

logger = logging.getLogger(__name__)

FALLBACK_ETA_MIN = 10
FALLBACK_ETA_SPREAD = 30


def eta_minutes_from_seconds(duration_seconds: int) -> int:
    return math.ceil(duration_seconds / 60)


def fallback_eta_minutes(rng: random.Random) -> int:
    """Rough estimate used when the route service is unavailable: 10..39 minutes."""
    return FALLBACK_ETA_MIN + rng.randrange(FALLBACK_ETA_SPREAD)


@dataclass
class EtaResult:
    appointment_id: int
    eta_minutes: int
    estimated: bool
    latitude: float
    longitude: float
    distance: Optional[str] = None
    duration: Optional[str] = None


@dataclass
class EtaService:
    appointments: AppointmentsService
    eta_provider: EtaProvider
    rng: random.Random = field(default_factory=random.Random)

    async def calculate(self, appointment_id: int, patient_lat: float, patient_lng: float, doctor_address: str, actor: Actor) -> EtaResult:
        """Route-time lookup that persists tracking and moves the appointment on-way.

        ServiceUnavailable from the provider propagates; nothing is written in that case.
        """
        appt = self.appointments.get_for_actor(appointment_id, actor)
        self.appointments.ensure_can_depart(appt, actor)

        estimate = await self.eta_provider.estimate(patient_lat, patient_lng, doctor_address)
        eta = eta_minutes_from_seconds(estimate.duration_seconds)
        await self.appointments.record_departure(appointment_id, actor, patient_lat, patient_lng, eta)
        return EtaResult(
            appointment_id=appointment_id,
            eta_minutes=eta,
            estimated=False,
            latitude=patient_lat,
            longitude=patient_lng,
            distance=estimate.distance_text,
            duration=estimate.duration_text,
        )

    async def request_on_my_way(self, appointment_id: int, actor: Actor, location_source: LocationSource) -> EtaResult:
        fix = await location_source.acquire()

        appt = self.appointments.get_for_actor(appointment_id, actor)
        self.appointments.ensure_can_depart(appt, actor)
        doctor = self.appointments.doctor_for(appt)

        try:
            return await self.calculate(appointment_id, fix.latitude, fix.longitude, doctor.routing_address, actor)
        except ServiceUnavailable as e:
            eta = fallback_eta_minutes(self.rng)
            logger.warning(f"ETA service unavailable for appointment {appointment_id} ({e.message}); using estimate of {eta} min")

        await self.appointments.record_departure(appointment_id, actor, fix.latitude, fix.longitude, eta)
        return EtaResult(
            appointment_id=appointment_id,
            eta_minutes=eta,
            estimated=True,
            latitude=fix.latitude,
            longitude=fix.longitude,
        )
