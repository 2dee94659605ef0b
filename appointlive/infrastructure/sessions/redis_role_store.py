from typing import Optional

import redis

from ...application.ports.active_role_store import ActiveRoleStore


class RedisActiveRoleStore(ActiveRoleStore):
    def __init__(self, url: Optional[str] = None, prefix: str = "role:", client: Optional["redis.Redis"] = None) -> None:
        if client is None:
            if not url:
                raise ValueError("RedisActiveRoleStore needs a url or a client")
            client = redis.Redis.from_url(url, decode_responses=True)
        self.client = client
        self.prefix = prefix

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    def get(self, session_id: str) -> Optional[str]:
        value = self.client.get(self._key(session_id))
        if isinstance(value, bytes):
            value = value.decode()
        return value

    def set(self, session_id: str, role: str, ttl_seconds: int) -> None:
        self.client.set(self._key(session_id), role, ex=ttl_seconds)

    def clear(self, session_id: str) -> None:
        self.client.delete(self._key(session_id))
