"""Tests for the JSON API dispatch."""

import json
import threading
from http import HTTPStatus
from http.client import HTTPConnection
from urllib.request import Request, urlopen

import numpy as np
import pytest

from weather_markov.simulation.session import MarkovSession
from weather_markov.web.api_server import MarkovHTTPServer, handle_api_request


@pytest.fixture
def session(rng):
    return MarkovSession(rng=rng)


def test_health(session):
    status, payload = handle_api_request(session, "GET", "/api/health")
    assert status == HTTPStatus.OK
    assert payload["status"] == "ok"


def test_simulate_before_matrix_is_conflict(session):
    status, payload = handle_api_request(session, "POST", "/api/simulate", {"days": 5})
    assert status == HTTPStatus.CONFLICT
    assert "error" in payload

    status, _ = handle_api_request(session, "GET", "/api/statistics")
    assert status == HTTPStatus.CONFLICT
    status, _ = handle_api_request(session, "GET", "/api/matrix")
    assert status == HTTPStatus.CONFLICT


def test_matrix_from_payload(session, history_payload):
    status, payload = handle_api_request(session, "POST", "/api/matrix", history_payload)
    assert status == HTTPStatus.OK
    assert payload["states"] == ["Sunny", "Rainy", "Cloudy"]
    assert payload["rows"] == payload["cols"] == 3
    rows = np.array(payload["matrix"]).reshape(3, 3)
    np.testing.assert_allclose(rows.sum(axis=1), 1.0)

    status, again = handle_api_request(session, "GET", "/api/matrix")
    assert status == HTTPStatus.OK
    assert again == payload


def test_malformed_payload_reports_field(session, history_payload):
    del history_payload["location"]["name"]
    status, payload = handle_api_request(session, "POST", "/api/matrix", history_payload)
    assert status == HTTPStatus.BAD_REQUEST
    assert payload["field"] == "location.name"


def test_simulate_and_statistics(session, history_payload):
    handle_api_request(session, "POST", "/api/matrix", history_payload)

    status, payload = handle_api_request(
        session, "POST", "/api/simulate", {"days": 14, "initial_state": "Rainy"},
    )
    assert status == HTTPStatus.OK
    predictions = payload["predictions"]
    assert len(predictions) == 14
    assert predictions[0] == {"day": 0, "state": "Rainy", "timestamp": 0}
    assert payload["parameters"] == {"days": 14, "initial_state": "Rainy", "city": "Mumbai"}

    status, stats = handle_api_request(session, "GET", "/api/statistics")
    assert status == HTTPStatus.OK
    assert set(stats["steady_state"]) == {"sunny", "rainy", "cloudy"}
    assert sum(stats["distribution"].values()) == pytest.approx(1.0)
    assert stats["converged"] is True


@pytest.mark.parametrize("body, field", [
    ({"days": 0}, "days"),
    ({"days": 366}, "days"),
    ({"days": "ten"}, "days"),
    ({"days": 5, "initial_state": "Snowy"}, "initial_state"),
])
def test_simulate_rejects_bad_parameters(session, history_payload, body, field):
    handle_api_request(session, "POST", "/api/matrix", history_payload)
    status, payload = handle_api_request(session, "POST", "/api/simulate", body)
    assert status == HTTPStatus.BAD_REQUEST
    assert payload["field"] == field


def test_unknown_route(session):
    status, _ = handle_api_request(session, "GET", "/api/nothing")
    assert status == HTTPStatus.NOT_FOUND


@pytest.fixture
def live_server():
    server = MarkovHTTPServer(("127.0.0.1", 0), MarkovSession(rng=np.random.default_rng(1)))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


def test_server_round_trip(live_server, history_payload):
    """Matrix and simulation over a real socket."""
    base = f"http://127.0.0.1:{live_server.server_address[1]}"

    def post(route, body):
        request = Request(
            base + route, data=json.dumps(body).encode("utf-8"),
            headers={"Content-Type": "application/json"}, method="POST",
        )
        with urlopen(request, timeout=5) as response:
            return json.loads(response.read())

    matrix = post("/api/matrix", history_payload)
    assert matrix["rows"] == 3
    simulated = post("/api/simulate", {"days": 3, "initial_state": "Sunny"})
    assert [d["day"] for d in simulated["predictions"]] == [0, 1, 2]


@pytest.mark.parametrize("body, length", [
    (b'{"a": "\xff\xfe\xfa"}', None),
    (b"{}", "abc"),
    (b"{}", "-1"),
    (b"{not json", None),
])
def test_server_rejects_unreadable_body(live_server, body, length):
    """A broken body or Content-Length gets a 400, not a dropped connection."""
    conn = HTTPConnection("127.0.0.1", live_server.server_address[1], timeout=5)
    try:
        conn.putrequest("POST", "/api/matrix")
        conn.putheader("Content-Type", "application/json")
        conn.putheader("Content-Length", length if length is not None else str(len(body)))
        conn.endheaders(body)
        response = conn.getresponse()
        assert response.status == HTTPStatus.BAD_REQUEST
        assert "error" in json.loads(response.read())
    finally:
        conn.close()

    with urlopen(f"http://127.0.0.1:{live_server.server_address[1]}/api/health", timeout=5) as response:
        assert json.loads(response.read())["status"] == "ok"
