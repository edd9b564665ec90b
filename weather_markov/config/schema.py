"""Dataclasses for weather states, observations and simulation results."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from weather_markov.config.constants import (
    STATE_LABELS,
    WEATHER_API_BASE_URL,
    WEATHER_API_BASE_URL_ENV,
    WEATHER_API_KEY_ENV,
)
from weather_markov.errors.exceptions import UnknownStateError


class WeatherState(Enum):
    """Daily weather condition."""

    SUNNY = "Sunny"
    RAINY = "Rainy"
    CLOUDY = "Cloudy"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: str) -> WeatherState:
        """Look up a state by label, ignoring case and surrounding whitespace."""
        if isinstance(label, cls):
            return label
        wanted = str(label).strip().lower()
        for state in cls:
            if state.value.lower() == wanted:
                return state
        raise UnknownStateError(
            f"Unknown weather state {label!r}; expected one of {list(STATE_LABELS)}"
        )


# Row/column order of every transition matrix built by default.
WEATHER_STATES: Tuple[WeatherState, ...] = tuple(WeatherState(label) for label in STATE_LABELS)


@dataclass(frozen=True)
class Observation:
    """One dated observation of a weather state."""

    state: WeatherState
    timestamp: int            # seconds since epoch (day granularity)


@dataclass
class ObservationSequence:
    """Ordered, append-only history of observations for one location."""

    label: str                # location name
    observations: List[Observation] = field(default_factory=list)

    def append(self, observation: Observation) -> None:
        self.observations.append(observation)

    def __len__(self) -> int:
        return len(self.observations)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.observations)

    @property
    def is_complete(self) -> bool:
        """At least one transition can be observed."""
        return len(self.observations) >= 2

    def states(self) -> List[WeatherState]:
        return [obs.state for obs in self.observations]

    def pairs(self) -> Iterator[Tuple[Observation, Observation]]:
        """Yield adjacent (current, next) observations in order."""
        return zip(self.observations, self.observations[1:])


@dataclass(frozen=True)
class SimulationResult:
    """Simulated state sequence. Day 0 is the initial state at timestamp 0."""

    observations: Tuple[Observation, ...]

    def __len__(self) -> int:
        return len(self.observations)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.observations)

    def states(self) -> List[WeatherState]:
        return [obs.state for obs in self.observations]

    def to_records(self) -> List[Dict[str, object]]:
        """Plain day/state/timestamp records for host bindings."""
        return [
            {"day": day, "state": obs.state.label, "timestamp": obs.timestamp}
            for day, obs in enumerate(self.observations)
        ]


@dataclass(frozen=True)
class ApiSettings:
    """WeatherAPI.com connection settings."""

    api_key: Optional[str]
    base_url: str = WEATHER_API_BASE_URL

    @classmethod
    def from_env(cls) -> ApiSettings:
        return cls(
            api_key=os.environ.get(WEATHER_API_KEY_ENV) or None,
            base_url=os.environ.get(WEATHER_API_BASE_URL_ENV, WEATHER_API_BASE_URL),
        )
