import asyncio
import logging
from typing import Callable

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, HTTPException
from sqlmodel import Session

from ..database import get_session_factory
from ..exceptions import AppointLiveError
from ..schemas.queue.queue import QueueEntryResponse, QueueResponse, QueueStats
from ..application.services.appointments_service import Actor
from ..application.services.queue_service import DoctorQueue, QueueEntry, QueueService
from ..application.services.status_engine import ActorRole
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from ..infrastructure.realtime.queue_broadcaster import InMemoryQueueBroadcaster
from ..application.ports.active_role_store import ActiveRoleStore
from .dependencies import authenticate_token, get_queue_broadcaster, get_queue_service, get_role_service, get_role_store, require_doctor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queue", tags=["Queue"])


def _entry(e: QueueEntry) -> QueueEntryResponse:
    return QueueEntryResponse(
        appointment_id=e.appointment_id,
        queue_position=e.queue_position,
        patient_id=e.patient_id,
        patient_name=e.patient_name,
        patient_phone=e.patient_phone,
        appointment_time=e.appointment_time,
        slot_time=e.slot_time,
        status=e.status,
        symptoms=e.symptoms,
        reason=e.reason,
        eta_minutes=e.eta_minutes,
        available_actions=e.available_actions,
    )


def to_queue_response(queue: DoctorQueue) -> QueueResponse:
    return QueueResponse(
        doctor_id=queue.doctor_id,
        since=queue.since,
        stats=QueueStats(total_today=queue.total_today, on_way=queue.on_way_count, arrived=queue.arrived_count),
        current_patient=_entry(queue.current_patient) if queue.current_patient else None,
        entries=[_entry(e) for e in queue.entries],
    )


@router.get("", response_model=QueueResponse)
def get_queue(
    actor: Actor = Depends(require_doctor),
    queue: QueueService = Depends(get_queue_service),
):
    return to_queue_response(queue.today_queue(actor.party_id))


@router.websocket("/ws")
async def queue_feed(
    websocket: WebSocket,
    token: str,
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    broadcaster: InMemoryQueueBroadcaster = Depends(get_queue_broadcaster),
    store: ActiveRoleStore = Depends(get_role_store),
):
    """Send the doctor's queue on connect and again after every change.

    Each snapshot runs in its own short session so an open feed never holds a
    pooled connection while it waits.
    """
    try:
        auth = authenticate_token(token)
        with session_factory() as session:
            roles = get_role_service(session=session, store=store)
            actor = roles.actor_for(auth.user_id, auth.session_id, ActorRole.DOCTOR)
    except (HTTPException, AppointLiveError) as e:
        logger.info(f"Queue feed rejected: {getattr(e, 'detail', None) or getattr(e, 'message', '')}")
        await websocket.close(code=1008)
        return

    await websocket.accept()
    events = broadcaster.subscribe(actor.party_id)
    receiver = asyncio.ensure_future(websocket.receive())
    try:
        while True:
            with session_factory() as session:
                snapshot = to_queue_response(QueueService(SqlAppointmentsRepository(session)).today_queue(actor.party_id))
            await websocket.send_json(snapshot.model_dump(mode="json"))

            getter = asyncio.ensure_future(events.get())
            done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if getter in done:
                event = getter.result()
                logger.debug(f"Queue event {event.kind} for appointment {event.appointment_id}")
            else:
                getter.cancel()
            if receiver in done:
                # Any client message just asks for a fresh snapshot
                if receiver.result()["type"] == "websocket.disconnect":
                    break
                receiver = asyncio.ensure_future(websocket.receive())
    except WebSocketDisconnect:
        pass
    finally:
        receiver.cancel()
        broadcaster.unsubscribe(actor.party_id, events)
        logger.info(f"Queue feed closed for doctor {actor.party_id}")
