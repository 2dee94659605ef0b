import asyncio
import logging
from typing import Dict, Set

from ...application.ports.queue_notifier import QueueEvent, QueueNotifier

logger = logging.getLogger(__name__)


class InMemoryQueueBroadcaster(QueueNotifier):
    """Fans queue events out to subscribers of one doctor's queue.

    A subscriber whose buffer is full loses the event; it re-reads the queue on
    the next event it does receive.
    """

    def __init__(self, max_buffer: int = 100) -> None:
        self._subscribers: Dict[int, Set[asyncio.Queue]] = {}
        self.max_buffer = max_buffer

    def subscribe(self, doctor_id: int) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_buffer)
        self._subscribers.setdefault(doctor_id, set()).add(queue)
        logger.info(f"Queue subscriber added for doctor {doctor_id}")
        return queue

    def unsubscribe(self, doctor_id: int, queue: asyncio.Queue) -> None:
        subs = self._subscribers.get(doctor_id)
        if not subs:
            return
        subs.discard(queue)
        if not subs:
            del self._subscribers[doctor_id]
        logger.info(f"Queue subscriber removed for doctor {doctor_id}")

    def subscriber_count(self, doctor_id: int) -> int:
        return len(self._subscribers.get(doctor_id, ()))

    async def publish(self, event: QueueEvent) -> None:
        for queue in list(self._subscribers.get(event.doctor_id, ())):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Dropping {event.kind} event for doctor {event.doctor_id}: subscriber buffer full")
