"""Map free-text weather descriptions onto the three-state alphabet."""

import logging

from weather_markov.config.constants import (
    CLOUDY_KEYWORDS,
    DEFAULT_CONDITION_LABEL,
    RAINY_KEYWORDS,
    SUNNY_KEYWORDS,
)
from weather_markov.config.schema import WeatherState

logger = logging.getLogger(__name__)

# Precipitation outranks cloud cover, which outranks clear sky.
_KEYWORD_TABLE = (
    (WeatherState.RAINY, RAINY_KEYWORDS),
    (WeatherState.CLOUDY, CLOUDY_KEYWORDS),
    (WeatherState.SUNNY, SUNNY_KEYWORDS),
)


def classify_condition(text: str) -> WeatherState:
    """Classify a condition description such as "Patchy light rain".

    Unrecognised text maps to Cloudy. This keeps odd descriptions out of the
    sunny/rainy extremes but can bias the Cloudy row of the matrix when a
    provider uses wording not covered by the keyword tables.
    """
    lowered = text.lower()
    for state, keywords in _KEYWORD_TABLE:
        if any(word in lowered for word in keywords):
            return state

    logger.debug(f"Unrecognised condition {text!r}, defaulting to {DEFAULT_CONDITION_LABEL}")
    return WeatherState(DEFAULT_CONDITION_LABEL)
