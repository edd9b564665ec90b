"""Minimal JSON HTTP API around a Markov session.

Serves:
- GET  /api/health
- POST /api/matrix      WeatherAPI history payload -> transition matrix
- GET  /api/matrix      active transition matrix
- POST /api/simulate    {"days": int, "initial_state": str} -> simulated days
- GET  /api/statistics  steady state, distribution and average streaks
"""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional, Tuple
from urllib.parse import urlparse

from weather_markov.config.constants import (
    DEFAULT_HOST,
    DEFAULT_INITIAL_STATE,
    DEFAULT_PORT,
    DEFAULT_SIMULATION_DAYS,
    MAX_SIMULATION_DAYS,
    MIN_SIMULATION_DAYS,
)
from weather_markov.errors.exceptions import (
    MatrixNotBuiltError,
    UnknownStateError,
    WeatherPayloadError,
)
from weather_markov.ingest.weather_api import parse_weather_payload
from weather_markov.simulation.session import MarkovSession

logger = logging.getLogger(__name__)

ApiResponse = Tuple[HTTPStatus, dict]


def _error(status: HTTPStatus, message: str, field: Optional[str] = None) -> ApiResponse:
    payload = {"error": message}
    if field is not None:
        payload["field"] = field
    return status, payload


def _parse_days(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("days must be an integer")
    if not MIN_SIMULATION_DAYS <= value <= MAX_SIMULATION_DAYS:
        raise ValueError(f"days must be between {MIN_SIMULATION_DAYS} and {MAX_SIMULATION_DAYS}")
    return value


def _simulate(session: MarkovSession, body: Any) -> ApiResponse:
    if not isinstance(body, dict):
        return _error(HTTPStatus.BAD_REQUEST, "expected a JSON object")
    try:
        days = _parse_days(body.get("days", DEFAULT_SIMULATION_DAYS))
    except ValueError as exc:
        return _error(HTTPStatus.BAD_REQUEST, str(exc), field="days")

    initial_state = body.get("initial_state", DEFAULT_INITIAL_STATE)
    result = session.simulate(days, initial_state)
    return HTTPStatus.OK, {
        "predictions": result.to_records(),
        "parameters": {
            "days": days,
            "initial_state": result.observations[0].state.label,
            "city": session.label,
        },
    }


def handle_api_request(session: MarkovSession, method: str, route: str, body: Any = None) -> ApiResponse:
    """Dispatch one API call against ``session``.

    Returns:
        (status, JSON-serialisable payload) tuple.
    """
    try:
        if route == "/api/health":
            return HTTPStatus.OK, {"status": "ok", "service": "weather-markov"}

        if route == "/api/matrix" and method == "POST":
            matrix = session.load_history(parse_weather_payload(body))
            return HTTPStatus.OK, matrix.to_dict()

        if route == "/api/matrix" and method == "GET":
            matrix = session.matrix
            if matrix is None:
                raise MatrixNotBuiltError("No transition matrix yet; POST weather history first")
            return HTTPStatus.OK, matrix.to_dict()

        if route == "/api/simulate" and method == "POST":
            return _simulate(session, body)

        if route == "/api/statistics" and method == "GET":
            return HTTPStatus.OK, session.statistics().to_dict()

    except WeatherPayloadError as exc:
        return _error(HTTPStatus.BAD_REQUEST, str(exc), field=exc.field)
    except UnknownStateError as exc:
        return _error(HTTPStatus.BAD_REQUEST, str(exc), field="initial_state")
    except MatrixNotBuiltError as exc:
        return _error(HTTPStatus.CONFLICT, str(exc))

    return _error(HTTPStatus.NOT_FOUND, f"No route {method} {route}")


class MarkovHTTPServer(ThreadingHTTPServer):
    """Threading server sharing one session across request threads."""

    def __init__(self, address: Tuple[str, int], session: Optional[MarkovSession] = None):
        super().__init__(address, MarkovApiHandler)
        self.session = session or MarkovSession()


class MarkovApiHandler(BaseHTTPRequestHandler):
    """Serve the JSON API."""

    server: MarkovHTTPServer

    def _send_json(self, payload: dict, status: HTTPStatus = HTTPStatus.OK) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json(self) -> Any:
        length = int(self.headers.get("Content-Length") or 0)
        if length < 0:
            raise ValueError(f"negative Content-Length {length}")
        raw = self.rfile.read(length) if length else b""
        if not raw:
            return None
        return json.loads(raw)

    def do_GET(self) -> None:  # noqa: N802
        route = urlparse(self.path).path
        status, payload = handle_api_request(self.server.session, "GET", route)
        self._send_json(payload, status)

    def do_POST(self) -> None:  # noqa: N802
        route = urlparse(self.path).path
        try:
            body = self._read_json()
        except json.JSONDecodeError as exc:
            self._send_json({"error": f"invalid JSON ({exc.msg})"}, HTTPStatus.BAD_REQUEST)
            return
        except ValueError as exc:
            # bad Content-Length or a body that is not UTF-8
            self._send_json({"error": f"unreadable request body ({exc})"}, HTTPStatus.BAD_REQUEST)
            return
        status, payload = handle_api_request(self.server.session, "POST", route, body)
        self._send_json(payload, status)

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.info(f"{self.address_string()} {format % args}")


def run_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, session: Optional[MarkovSession] = None) -> None:
    """Run the API server until interrupted."""
    server = MarkovHTTPServer((host, port), session)

    logger.info(f"Weather Markov API running at http://{host}:{port}")
    logger.info("Endpoints: /api/health, /api/matrix, /api/simulate, /api/statistics")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_server()
