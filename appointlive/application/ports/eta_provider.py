from dataclasses import dataclass
from typing import Protocol


@dataclass
class RouteEstimate:
    duration_seconds: int
    distance_text: str
    duration_text: str


class EtaProvider(Protocol):
    async def estimate(self, origin_lat: float, origin_lng: float, destination: str) -> RouteEstimate:
        """Driving time from the origin to ``destination``; raises ServiceUnavailable."""
        ...
