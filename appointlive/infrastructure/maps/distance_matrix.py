import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from ...application.ports.eta_provider import EtaProvider, RouteEstimate
from ...exceptions import ServiceUnavailable

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"


def parse_distance_matrix(payload: Dict[str, Any]) -> RouteEstimate:
    """Pull the first element out of a Distance Matrix answer.

    Traffic-aware duration wins over the plain one when present.
    """
    if payload.get("status") != "OK":
        raise ServiceUnavailable(f"Distance Matrix status {payload.get('status')}: {payload.get('error_message', '')}".strip())

    try:
        element = payload["rows"][0]["elements"][0]
    except (KeyError, IndexError, TypeError):
        raise ServiceUnavailable("Distance Matrix returned no route")

    if element.get("status") != "OK":
        raise ServiceUnavailable(f"No route found ({element.get('status')})")

    duration = element.get("duration_in_traffic") or element.get("duration")
    if not duration or "value" not in duration:
        raise ServiceUnavailable("Distance Matrix returned no duration")

    return RouteEstimate(
        duration_seconds=int(duration["value"]),
        distance_text=(element.get("distance") or {}).get("text", ""),
        duration_text=duration.get("text", ""),
    )


class GoogleDistanceMatrixProvider(EtaProvider):
    def __init__(self, api_key: str, url: str = DEFAULT_URL, timeout_seconds: float = 10.0, session: Optional[aiohttp.ClientSession] = None) -> None:
        self.api_key = api_key
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session

    def _params(self, origin_lat: float, origin_lng: float, destination: str) -> Dict[str, str]:
        return {
            "origins": f"{origin_lat},{origin_lng}",
            "destinations": destination,
            "mode": "driving",
            "departure_time": "now",
            "traffic_model": "best_guess",
            "key": self.api_key,
        }

    async def _fetch(self, session: aiohttp.ClientSession, params: Dict[str, str]) -> Dict[str, Any]:
        async with session.get(self.url, params=params, timeout=self.timeout) as response:
            if response.status != 200:
                raise ServiceUnavailable(f"Distance Matrix HTTP {response.status}")
            return await response.json()

    async def estimate(self, origin_lat: float, origin_lng: float, destination: str) -> RouteEstimate:
        if not self.api_key:
            raise ServiceUnavailable("Google Maps API key not configured")
        if not destination:
            raise ServiceUnavailable("Doctor has no routable address")

        params = self._params(origin_lat, origin_lng, destination)
        try:
            if self._session is not None:
                payload = await self._fetch(self._session, params)
            else:
                async with aiohttp.ClientSession() as session:
                    payload = await self._fetch(session, params)
        except ServiceUnavailable:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Distance Matrix request failed: {e}")
            raise ServiceUnavailable(f"Distance Matrix request failed: {e}")

        estimate = parse_distance_matrix(payload)
        logger.info(f"Route estimate to '{destination}': {estimate.duration_text} ({estimate.distance_text})")
        return estimate
