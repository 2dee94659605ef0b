# appointlive/schemas/queue/queue.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class QueueEntryResponse(BaseModel):
    appointment_id: int
    queue_position: int
    patient_id: int
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    appointment_time: str
    slot_time: datetime
    status: str
    symptoms: Optional[str] = None
    reason: Optional[str] = None
    eta_minutes: Optional[int] = None
    available_actions: List[str] = []


class QueueStats(BaseModel):
    total_today: int
    on_way: int
    arrived: int


class QueueResponse(BaseModel):
    doctor_id: int
    since: datetime
    stats: QueueStats
    current_patient: Optional[QueueEntryResponse] = None
    entries: List[QueueEntryResponse]
