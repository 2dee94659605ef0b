import random
from datetime import datetime, timedelta

import pytest

from appointlive.exceptions import InvalidTransition, LocationUnavailable, ServiceUnavailable
from appointlive.application.ports.eta_provider import RouteEstimate
from appointlive.application.ports.location_source import LocationFix
from appointlive.application.services.eta_service import EtaService, eta_minutes_from_seconds, fallback_eta_minutes


class FakeProvider:
    def __init__(self, seconds=900, fail=False):
        self.seconds = seconds
        self.fail = fail
        self.calls = []

    async def estimate(self, origin_lat, origin_lng, destination):
        self.calls.append((origin_lat, origin_lng, destination))
        if self.fail:
            raise ServiceUnavailable("Distance Matrix HTTP 500")
        return RouteEstimate(duration_seconds=self.seconds, distance_text="5.2 km", duration_text="15 mins")


class FakeLocation:
    def __init__(self, fix=None, reason=None):
        self.fix = fix or LocationFix(51.5007, -0.1246)
        self.reason = reason

    async def acquire(self):
        if self.reason:
            raise LocationUnavailable(self.reason)
        return self.fix


def _booked(repo, status="booked"):
    return repo.add_appointment(10, 1, datetime.utcnow() + timedelta(hours=1), status=status)


def test_minutes_round_up():
    assert eta_minutes_from_seconds(0) == 0
    assert eta_minutes_from_seconds(60) == 1
    assert eta_minutes_from_seconds(61) == 2
    assert eta_minutes_from_seconds(899) == 15


def test_fallback_range():
    rng = random.Random(7)
    values = {fallback_eta_minutes(rng) for _ in range(2000)}
    assert min(values) == 10
    assert max(values) == 39


@pytest.mark.asyncio
async def test_on_my_way_with_route_estimate(repo, appointments_service, patient):
    appt = _booked(repo)
    provider = FakeProvider(seconds=901)
    svc = EtaService(appointments_service, provider)

    result = await svc.request_on_my_way(appt.id, patient, FakeLocation())

    assert result.eta_minutes == 16
    assert result.estimated is False
    assert result.distance == "5.2 km"
    assert provider.calls == [(51.5007, -0.1246, "221 Baker Street, London")]
    assert repo.get_by_id(appt.id).status == "on-way"
    assert repo.get_tracking(appt.id).eta_minutes == 16


@pytest.mark.asyncio
async def test_on_my_way_falls_back_when_service_fails(repo, appointments_service, patient, notifier):
    appt = _booked(repo)
    svc = EtaService(appointments_service, FakeProvider(fail=True), rng=random.Random(3))

    result = await svc.request_on_my_way(appt.id, patient, FakeLocation())

    assert result.estimated is True
    assert 10 <= result.eta_minutes <= 39
    assert repo.get_by_id(appt.id).status == "on-way"
    assert repo.get_tracking(appt.id).eta_minutes == result.eta_minutes
    assert notifier.events[-1].kind == "tracking"


@pytest.mark.asyncio
async def test_routes_to_location_label_without_address(repo, appointments_service, patient):
    repo.add_doctor(1, address=None)
    appt = _booked(repo)
    provider = FakeProvider()
    await EtaService(appointments_service, provider).request_on_my_way(appt.id, patient, FakeLocation())
    assert provider.calls[0][2] == "Downtown"


@pytest.mark.asyncio
async def test_location_failure_changes_nothing(repo, appointments_service, patient):
    appt = _booked(repo)
    provider = FakeProvider()
    svc = EtaService(appointments_service, provider)

    with pytest.raises(LocationUnavailable) as exc:
        await svc.request_on_my_way(appt.id, patient, FakeLocation(reason="permission_denied"))

    assert exc.value.reason == "permission_denied"
    assert provider.calls == []
    assert repo.get_by_id(appt.id).status == "booked"
    assert repo.get_tracking(appt.id) is None


@pytest.mark.asyncio
async def test_not_allowed_from_arrived(repo, appointments_service, patient):
    appt = _booked(repo, status="arrived")
    provider = FakeProvider()
    with pytest.raises(InvalidTransition):
        await EtaService(appointments_service, provider).request_on_my_way(appt.id, patient, FakeLocation())
    assert provider.calls == []


@pytest.mark.asyncio
async def test_calculate_propagates_service_errors_without_writing(repo, appointments_service, patient):
    appt = _booked(repo)
    svc = EtaService(appointments_service, FakeProvider(fail=True))

    with pytest.raises(ServiceUnavailable):
        await svc.calculate(appt.id, 51.5, -0.12, "221 Baker Street, London", patient)

    assert repo.get_by_id(appt.id).status == "booked"
    assert repo.get_tracking(appt.id) is None


@pytest.mark.asyncio
async def test_second_report_refreshes_eta(repo, appointments_service, patient):
    appt = _booked(repo)
    provider = FakeProvider(seconds=1200)
    svc = EtaService(appointments_service, provider)

    await svc.request_on_my_way(appt.id, patient, FakeLocation())
    provider.seconds = 300
    result = await svc.request_on_my_way(appt.id, patient, FakeLocation())

    assert result.eta_minutes == 5
    assert repo.get_tracking(appt.id).eta_minutes == 5
