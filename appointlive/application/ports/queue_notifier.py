from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class QueueEvent:
    doctor_id: int
    appointment_id: int
    kind: str  # insert, update, tracking
    status: Optional[str] = None
    occurred_at: datetime = field(default_factory=datetime.utcnow)


class QueueNotifier(Protocol):
    async def publish(self, event: QueueEvent) -> None:
        ...
