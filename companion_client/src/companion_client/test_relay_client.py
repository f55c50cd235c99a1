from unittest.mock import Mock

import pytest
import requests
from companion_core.config.environments import Settings
from companion_core.domain.errors import TransportError, ValidationError
from companion_core.domain.models import ReadingKind
from fastapi.testclient import TestClient

from companion_client.relay_client import RelayClient
from companion_relay.adapters.api.main import create_app


def fake_response(status: int, body):
    response = Mock()
    response.status_code = status
    response.json.return_value = body
    return response


def test_fetch_history_builds_readings():
    session = Mock()
    session.request.return_value = fake_response(
        200, [{"kind": "node", "node": "n1", "pm25": 1, "pm10": 2, "lat": 3, "lon": 4, "timestamp": 5}]
    )
    client = RelayClient("http://relay.local:3000/", session=session)

    readings = client.fetch_history()

    assert readings[0].node == "n1"
    assert readings[0].kind == ReadingKind.NODE
    session.request.assert_called_once_with("GET", "http://relay.local:3000/data", timeout=5.0)


def test_network_failure_is_a_transport_error():
    session = Mock()
    session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(TransportError):
        RelayClient("http://relay.local", session=session).fetch_history()


def test_server_error_is_a_transport_error():
    session = Mock()
    session.request.return_value = fake_response(502, None)
    with pytest.raises(TransportError):
        RelayClient("http://relay.local", session=session).fetch_history()


def test_rejected_submission_carries_reason():
    session = Mock()
    session.request.return_value = fake_response(400, {"error": "missing pm10"})
    with pytest.raises(ValidationError) as exc:
        RelayClient("http://relay.local", session=session).submit_reading({"pm25": 1})
    assert exc.value.reason == "missing pm10"


@pytest.mark.parametrize(
    "base, expected",
    [
        ("http://localhost:3000", "ws://localhost:3000/ws"),
        ("https://relay.example.org/", "wss://relay.example.org/ws"),
    ],
)
def test_live_url(base, expected):
    assert RelayClient(base, session=Mock()).live_url == expected


# ───────── against a real relay app ─────────
class TestClientSession:
    """Adapts the relay's TestClient to the requests session interface."""

    def __init__(self, client: TestClient):
        self.client = client

    def request(self, method, url, timeout=None, **kwargs):
        return self.client.request(method, url, **kwargs)


@pytest.fixture()
def relay_client(tmp_path):
    app = create_app(Settings(DASHBOARD_DIR=str(tmp_path / "dist"), HISTORY_CAPACITY=3))
    with TestClient(app) as c:
        yield RelayClient("http://testserver", session=TestClientSession(c))


def test_submit_then_fetch_round_trip(relay_client):
    assert relay_client.hello() == "Hello from the relay!"
    relay_client.submit_reading({"node": "n1", "pm25": 12, "pm10": 20, "lat": 45.46, "lon": 9.19})

    readings = relay_client.fetch_history()

    assert len(readings) == 1
    assert readings[0].pm25 == 12.0
    assert readings[0].node == "n1"


def test_submit_missing_field_is_rejected(relay_client):
    with pytest.raises(ValidationError) as exc:
        relay_client.submit_reading({"pm25": 12, "lat": 45.46, "lon": 9.19})
    assert exc.value.reason == "missing pm10"
    assert relay_client.fetch_history() == []
