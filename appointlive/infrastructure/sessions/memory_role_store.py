import time
from typing import Dict, Optional, Tuple

from ...application.ports.active_role_store import ActiveRoleStore


class InMemoryActiveRoleStore(ActiveRoleStore):
    def __init__(self) -> None:
        self._store: Dict[str, Tuple[str, float]] = {}

    def get(self, session_id: str) -> Optional[str]:
        rec = self._store.get(session_id)
        if not rec:
            return None
        role, expires_at = rec
        if expires_at <= time.time():
            del self._store[session_id]
            return None
        return role

    def set(self, session_id: str, role: str, ttl_seconds: int) -> None:
        now = time.time()
        # Drop sessions that expired without being read again
        for sid in [sid for sid, (_, expires_at) in self._store.items() if expires_at <= now]:
            del self._store[sid]
        self._store[session_id] = (role, now + ttl_seconds)

    def __len__(self) -> int:
        return len(self._store)

    def clear(self, session_id: str) -> None:
        self._store.pop(session_id, None)
