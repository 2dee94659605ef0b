from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class LocationFix:
    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None


class LocationSource(Protocol):
    async def acquire(self) -> LocationFix:
        """One-shot fix; raises LocationUnavailable when denied, unsupported or timed out."""
        ...
