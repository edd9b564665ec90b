"""Caller-owned session holding the active transition matrix and last simulation."""

import logging
import threading
from typing import Optional, Union

import numpy as np

from weather_markov.config.schema import ObservationSequence, SimulationResult, WeatherState
from weather_markov.errors.exceptions import MatrixNotBuiltError
from weather_markov.simulation.markov_chain import MarkovChainSimulator
from weather_markov.simulation.statistics import ChainStatistics, average_streaks, state_distribution
from weather_markov.simulation.steady_state import SteadyState, steady_state
from weather_markov.simulation.transition_matrix import TransitionMatrix, build_transition_matrix

logger = logging.getLogger(__name__)


class MarkovSession:
    """Active matrix and last simulation result for one caller.

    All reads and writes go through a single lock; concurrent producers see
    last-writer-wins semantics. The random generator is only touched while
    the lock is held.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self._lock = threading.Lock()
        self._rng = rng if rng is not None else np.random.default_rng()
        self._matrix: Optional[TransitionMatrix] = None
        self._simulator: Optional[MarkovChainSimulator] = None
        self._last_result: Optional[SimulationResult] = None
        self._label: Optional[str] = None

    @property
    def matrix(self) -> Optional[TransitionMatrix]:
        with self._lock:
            return self._matrix

    @property
    def last_result(self) -> Optional[SimulationResult]:
        with self._lock:
            return self._last_result

    @property
    def label(self) -> Optional[str]:
        with self._lock:
            return self._label

    def _require_matrix(self) -> TransitionMatrix:
        if self._matrix is None:
            raise MatrixNotBuiltError("No transition matrix yet; load weather history first")
        return self._matrix

    def load_history(self, sequence: ObservationSequence) -> TransitionMatrix:
        """Build the matrix for ``sequence`` and make it the active one."""
        matrix = build_transition_matrix(sequence)
        simulator = MarkovChainSimulator(matrix)
        with self._lock:
            self._matrix = matrix
            self._simulator = simulator
            self._last_result = None
            self._label = sequence.label
        logger.info(f"Loaded {len(sequence)} observations for {sequence.label}")
        return matrix

    def simulate(self, days: int, initial_state: Union[WeatherState, str]) -> SimulationResult:
        with self._lock:
            self._require_matrix()
            result = self._simulator.simulate(initial_state, days, self._rng)
            self._last_result = result
        logger.debug(f"Simulated {days} days from {initial_state}")
        return result

    def steady_state(self) -> SteadyState:
        with self._lock:
            matrix = self._require_matrix()
        return steady_state(matrix)

    def statistics(self) -> ChainStatistics:
        """Steady state plus occupancy/streaks of the last simulation.

        Distribution and streaks are all zeros until a simulation has run.
        """
        with self._lock:
            matrix = self._require_matrix()
            result = self._last_result
        result = result if result is not None else SimulationResult(observations=())
        solved = steady_state(matrix)
        return ChainStatistics(
            states=matrix.states,
            steady_state=solved.distribution,
            distribution=state_distribution(result, matrix.states),
            average_streaks=average_streaks(result, matrix.states),
            converged=solved.converged,
        )
