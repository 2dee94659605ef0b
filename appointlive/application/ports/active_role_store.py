from typing import Optional, Protocol


class ActiveRoleStore(Protocol):
    def get(self, session_id: str) -> Optional[str]:
        ...

    def set(self, session_id: str, role: str, ttl_seconds: int) -> None:
        ...

    def clear(self, session_id: str) -> None:
        ...
