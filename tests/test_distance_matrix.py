import aiohttp
import pytest

from appointlive.exceptions import ServiceUnavailable
from appointlive.infrastructure.maps.distance_matrix import GoogleDistanceMatrixProvider, parse_distance_matrix


def _payload(element, status="OK"):
    return {"status": status, "rows": [{"elements": [element]}]}


def test_prefers_traffic_duration():
    est = parse_distance_matrix(_payload({
        "status": "OK",
        "distance": {"text": "8.1 km", "value": 8100},
        "duration": {"text": "18 mins", "value": 1080},
        "duration_in_traffic": {"text": "25 mins", "value": 1500},
    }))
    assert est.duration_seconds == 1500
    assert est.duration_text == "25 mins"
    assert est.distance_text == "8.1 km"


def test_falls_back_to_plain_duration():
    est = parse_distance_matrix(_payload({
        "status": "OK",
        "distance": {"text": "2 km", "value": 2000},
        "duration": {"text": "6 mins", "value": 340},
    }))
    assert est.duration_seconds == 340


@pytest.mark.parametrize("payload", [
    {"status": "REQUEST_DENIED", "error_message": "bad key"},
    {"status": "OK", "rows": []},
    _payload({"status": "ZERO_RESULTS"}),
    _payload({"status": "OK", "distance": {"text": "1 km"}}),
])
def test_unusable_answers(payload):
    with pytest.raises(ServiceUnavailable):
        parse_distance_matrix(payload)


class FakeResponse:
    def __init__(self, status, body):
        self.status = status
        self._body = body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self):
        return self._body


class FakeSession:
    def __init__(self, status=200, body=None, error=None):
        self.status = status
        self.body = body
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params))
        if self.error:
            raise self.error
        return FakeResponse(self.status, self.body)


OK_BODY = _payload({
    "status": "OK",
    "distance": {"text": "5 km", "value": 5000},
    "duration": {"text": "12 mins", "value": 700},
    "duration_in_traffic": {"text": "14 mins", "value": 820},
})


@pytest.mark.asyncio
async def test_estimate_sends_driving_request():
    session = FakeSession(body=OK_BODY)
    provider = GoogleDistanceMatrixProvider("key-123", url="https://maps.test/dm", session=session)

    est = await provider.estimate(40.7128, -74.006, "350 5th Ave, New York")

    assert est.duration_seconds == 820
    url, params = session.requests[0]
    assert url == "https://maps.test/dm"
    assert params == {
        "origins": "40.7128,-74.006",
        "destinations": "350 5th Ave, New York",
        "mode": "driving",
        "departure_time": "now",
        "traffic_model": "best_guess",
        "key": "key-123",
    }


@pytest.mark.asyncio
async def test_missing_key_is_unavailable():
    session = FakeSession(body=OK_BODY)
    with pytest.raises(ServiceUnavailable):
        await GoogleDistanceMatrixProvider("", session=session).estimate(1.0, 2.0, "somewhere")
    assert session.requests == []


@pytest.mark.asyncio
async def test_http_error_is_unavailable():
    provider = GoogleDistanceMatrixProvider("k", session=FakeSession(status=500, body={}))
    with pytest.raises(ServiceUnavailable):
        await provider.estimate(1.0, 2.0, "somewhere")


@pytest.mark.asyncio
async def test_network_error_is_unavailable():
    provider = GoogleDistanceMatrixProvider("k", session=FakeSession(error=aiohttp.ClientConnectionError("refused")))
    with pytest.raises(ServiceUnavailable):
        await provider.estimate(1.0, 2.0, "somewhere")
