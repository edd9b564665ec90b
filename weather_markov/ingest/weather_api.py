"""WeatherAPI.com history client and payload-to-observation parsing."""

import json
import logging
import time
from datetime import date, timedelta
from typing import Any, Callable, Dict, Optional, Union

import requests

from weather_markov.config.constants import (
    HISTORY_WINDOW_DAYS,
    MAX_FETCH_ATTEMPTS,
    REQUEST_TIMEOUT_SEC,
    RETRY_BASE_DELAY_SEC,
    RETRY_MAX_DELAY_SEC,
    RETRYABLE_STATUS_CODES,
    WEATHER_API_HISTORY_ENDPOINT,
    WEATHER_API_KEY_ENV,
)
from weather_markov.config.schema import ApiSettings, Observation, ObservationSequence
from weather_markov.errors.exceptions import WeatherApiError, WeatherPayloadError
from weather_markov.ingest.conditions import classify_condition
from weather_markov.ingest.dates import date_to_timestamp, parse_date

logger = logging.getLogger(__name__)


def _require(container: Any, key: Union[str, int], path: str, expected: type) -> Any:
    """Fetch ``container[key]`` and check its type, reporting ``path`` on failure."""
    try:
        value = container[key]
    except (KeyError, IndexError, TypeError):
        raise WeatherPayloadError(path, "missing") from None
    if not isinstance(value, expected):
        raise WeatherPayloadError(
            path, f"expected {expected.__name__}, got {type(value).__name__}"
        )
    return value


def parse_weather_payload(payload: Union[str, bytes, Dict[str, Any]]) -> ObservationSequence:
    """Convert a WeatherAPI.com history response into an observation sequence.

    Reads ``location.name`` and, for every entry of ``forecast.forecastday``,
    its ``date`` and ``day.condition.text``. Days are ordered by date.

    Args:
        payload: Decoded JSON dict, or the raw JSON text.

    Returns:
        ObservationSequence labelled with the location name.

    Raises:
        WeatherPayloadError: A field is missing or malformed, or fewer than
            two days are present.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise WeatherPayloadError("<payload>", f"invalid JSON ({exc.msg})") from None
    if not isinstance(payload, dict):
        raise WeatherPayloadError("<payload>", "expected a JSON object")

    location = _require(payload, "location", "location", dict)
    name = _require(location, "name", "location.name", str)
    forecast = _require(payload, "forecast", "forecast", dict)
    days = _require(forecast, "forecastday", "forecast.forecastday", list)

    dated = []
    for i, entry in enumerate(days):
        prefix = f"forecast.forecastday[{i}]"
        raw_date = _require(entry, "date", f"{prefix}.date", str)
        try:
            day = parse_date(raw_date)
        except ValueError as exc:
            raise WeatherPayloadError(f"{prefix}.date", str(exc)) from None
        day_block = _require(entry, "day", f"{prefix}.day", dict)
        condition = _require(day_block, "condition", f"{prefix}.day.condition", dict)
        text = _require(condition, "text", f"{prefix}.day.condition.text", str)
        dated.append((day, classify_condition(text)))

    if len(dated) < 2:
        raise WeatherPayloadError(
            "forecast.forecastday", f"need at least 2 days of history, got {len(dated)}"
        )

    dated.sort(key=lambda item: item[0])
    sequence = ObservationSequence(label=name)
    for day, state in dated:
        sequence.append(Observation(state=state, timestamp=date_to_timestamp(day)))

    logger.debug(f"Parsed {len(sequence)} days for {name} ({dated[0][0]} .. {dated[-1][0]})")
    return sequence


def history_date_range(end: date, window_days: int = HISTORY_WINDOW_DAYS) -> Dict[str, str]:
    """``dt``/``end_dt`` query values covering ``window_days`` up to ``end``."""
    start = end - timedelta(days=window_days)
    return {"dt": start.isoformat(), "end_dt": end.isoformat()}


def _retry_delay(attempt: int) -> float:
    """Exponential backoff: 1s, 2s, 4s ... capped."""
    return min(RETRY_BASE_DELAY_SEC * 2 ** attempt, RETRY_MAX_DELAY_SEC)


def _error_for_status(response: requests.Response, city: str) -> WeatherApiError:
    status = response.status_code
    if status == 401:
        message = f"Invalid API key. Please check {WEATHER_API_KEY_ENV}"
    elif status == 400:
        message = f"Invalid city name: {city}"
    elif status == 429:
        message = "API rate limit exceeded. Please try again later"
    else:
        message = f"Failed to fetch weather data: HTTP {status} {response.reason}"
    return WeatherApiError(message, status_code=status)


class WeatherApiClient:
    """Fetches historical daily weather from WeatherAPI.com."""

    def __init__(
        self,
        settings: ApiSettings,
        session: Optional[requests.Session] = None,
        max_attempts: int = MAX_FETCH_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.session = session or requests.Session()
        self.max_attempts = max_attempts
        self.sleep = sleep

    def fetch_history(self, city: str, end: Optional[date] = None) -> Dict[str, Any]:
        """Fetch the last year of daily history for ``city``.

        Connection failures, rate limiting and server errors are retried with
        exponential backoff; bad keys and bad city names fail immediately.

        Returns:
            Decoded JSON response.
        """
        if not self.settings.api_key:
            raise WeatherApiError(
                f"Weather API key not found. Please set {WEATHER_API_KEY_ENV}"
            )
        if not city or not city.strip():
            raise ValueError("City parameter is required")

        url = f"{self.settings.base_url.rstrip('/')}/{WEATHER_API_HISTORY_ENDPOINT}"
        params = {"key": self.settings.api_key, "q": city.strip()}
        params.update(history_date_range(end or date.today()))

        last_error: Optional[WeatherApiError] = None
        for attempt in range(self.max_attempts):
            if attempt > 0:
                delay = _retry_delay(attempt - 1)
                logger.warning(
                    f"Retrying {city} in {delay:.0f}s (attempt {attempt + 1}/{self.max_attempts}): "
                    f"{last_error}"
                )
                self.sleep(delay)

            try:
                response = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT_SEC)
            except requests.RequestException as exc:
                last_error = WeatherApiError(f"Failed to fetch weather data: {exc}")
                continue

            if response.ok:
                try:
                    return response.json()
                except ValueError:
                    raise WeatherApiError(
                        "Weather API returned a non-JSON body", status_code=response.status_code,
                    ) from None

            last_error = _error_for_status(response, city)
            if response.status_code not in RETRYABLE_STATUS_CODES:
                raise last_error

        raise last_error

    def fetch_sequence(self, city: str, end: Optional[date] = None) -> ObservationSequence:
        """Fetch and parse history for ``city``."""
        return parse_weather_payload(self.fetch_history(city, end))
