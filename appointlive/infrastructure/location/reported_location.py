from typing import Optional

from ...application.ports.location_source import LocationFix, LocationSource
from ...exceptions import LocationUnavailable

# Reasons a client may report instead of coordinates
KNOWN_FAILURES = {"permission_denied", "unsupported", "timeout", "position_unavailable"}


class ReportedLocationSource(LocationSource):
    """Location fix taken from what the client sent with the request."""

    def __init__(self, latitude: Optional[float], longitude: Optional[float], accuracy_meters: Optional[float] = None, error: Optional[str] = None) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.accuracy_meters = accuracy_meters
        self.error = error

    async def acquire(self) -> LocationFix:
        if self.error:
            reason = self.error if self.error in KNOWN_FAILURES else "position_unavailable"
            raise LocationUnavailable(reason)
        if self.latitude is None or self.longitude is None:
            raise LocationUnavailable("position_unavailable")
        if not (-90 <= self.latitude <= 90) or not (-180 <= self.longitude <= 180):
            raise LocationUnavailable("position_unavailable")
        return LocationFix(latitude=self.latitude, longitude=self.longitude, accuracy_meters=self.accuracy_meters)
