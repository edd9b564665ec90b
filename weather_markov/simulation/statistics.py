"""Occupancy and streak statistics over simulated weather sequences."""

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import numpy as np

from weather_markov.config.schema import WEATHER_STATES, SimulationResult, WeatherState


def state_distribution(
    result: SimulationResult,
    states: Sequence[WeatherState] = WEATHER_STATES,
) -> np.ndarray:
    """Fraction of observations spent in each state (all zeros if empty)."""
    index = {s: i for i, s in enumerate(states)}
    counts = np.zeros(len(index), dtype=np.float64)
    for obs in result:
        counts[index[obs.state]] += 1
    if len(result) == 0:
        return counts
    return counts / len(result)


def average_streaks(
    result: SimulationResult,
    states: Sequence[WeatherState] = WEATHER_STATES,
) -> np.ndarray:
    """Mean length of maximal runs of consecutive identical states.

    A state that never occurs gets 0.0. A sequence consisting of a single
    state counts as one run of the full length.
    """
    index = {s: i for i, s in enumerate(states)}
    run_totals = np.zeros(len(index), dtype=np.float64)
    run_counts = np.zeros(len(index), dtype=np.int64)

    previous = None
    run_length = 0
    for state in result.states():
        if state == previous:
            run_length += 1
            continue
        if previous is not None:
            run_totals[index[previous]] += run_length
            run_counts[index[previous]] += 1
        previous = state
        run_length = 1
    if previous is not None:
        run_totals[index[previous]] += run_length
        run_counts[index[previous]] += 1

    averages = np.zeros(len(index), dtype=np.float64)
    seen = run_counts > 0
    averages[seen] = run_totals[seen] / run_counts[seen]
    return averages


@dataclass(frozen=True)
class ChainStatistics:
    """Steady state, simulated occupancy and average streaks, in state order."""

    states: Tuple[WeatherState, ...]
    steady_state: np.ndarray
    distribution: np.ndarray
    average_streaks: np.ndarray
    converged: bool

    def _by_label(self, values: np.ndarray) -> Dict[str, float]:
        return {s.label.lower(): float(v) for s, v in zip(self.states, values)}

    def to_dict(self) -> dict:
        return {
            "steady_state": self._by_label(self.steady_state),
            "distribution": self._by_label(self.distribution),
            "average_streaks": self._by_label(self.average_streaks),
            "converged": self.converged,
        }
