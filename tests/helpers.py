"""Builders for test sequences and WeatherAPI-style payloads."""

from weather_markov.config.constants import SECONDS_PER_DAY
from weather_markov.config.schema import Observation, ObservationSequence, WeatherState

SUNNY = WeatherState.SUNNY
RAINY = WeatherState.RAINY
CLOUDY = WeatherState.CLOUDY


def make_sequence(states, label="Testville"):
    sequence = ObservationSequence(label=label)
    for day, state in enumerate(states):
        sequence.append(Observation(state=state, timestamp=day * SECONDS_PER_DAY))
    return sequence


def make_payload(days, name="Mumbai"):
    """WeatherAPI-style history payload from (date, condition text) pairs."""
    return {
        "location": {"name": name, "lat": 19.07, "lon": 72.88},
        "forecast": {
            "forecastday": [
                {"date": d, "day": {"condition": {"text": text}, "avgtemp_c": 28.0}}
                for d, text in days
            ]
        },
    }
