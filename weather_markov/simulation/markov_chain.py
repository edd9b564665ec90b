"""Weather state sequence simulator driven by a transition matrix."""

from typing import Union

import numpy as np

from weather_markov.config.constants import SECONDS_PER_DAY
from weather_markov.config.schema import Observation, SimulationResult, WeatherState
from weather_markov.errors.exceptions import InvalidTransitionMatrixError
from weather_markov.simulation.transition_matrix import TransitionMatrix, is_stochastic


class MarkovChainSimulator:
    """Simulates daily weather transitions by inverse-CDF sampling."""

    def __init__(self, matrix: TransitionMatrix):
        self.matrix = matrix
        self.n_states = matrix.n_states

        # Validate transition matrix
        if not is_stochastic(matrix.P):
            raise InvalidTransitionMatrixError(
                f"Transition matrix rows must sum to 1.0, got {matrix.P.sum(axis=1)}"
            )
        self.cdf = np.cumsum(matrix.P, axis=1)

    def next_index(self, current: int, r: float) -> int:
        """Index of the first state whose cumulative probability is >= r.

        Falls back to the last state when rounding leaves the row total
        just below r.
        """
        idx = int(np.searchsorted(self.cdf[current], r, side="left"))
        return min(idx, self.n_states - 1)

    def simulate(
        self,
        initial_state: Union[WeatherState, str],
        days: int,
        rng: np.random.Generator,
    ) -> SimulationResult:
        """Generate a weather sequence of ``days`` observations.

        Args:
            initial_state: State of day 0 (a WeatherState or its label).
            days: Total length including day 0; must be >= 1.
            rng: Uniform source; ``rng.random()`` is drawn once per step.

        Returns:
            SimulationResult with timestamps 0, 86400, 172800, ...
        """
        if isinstance(days, bool) or not isinstance(days, (int, np.integer)) or days < 1:
            raise ValueError(f"days must be an integer >= 1, got {days!r}")

        state = WeatherState.from_label(initial_state)
        current = self.matrix.index_of(state)

        observations = [Observation(state=state, timestamp=0)]
        for step in range(1, int(days)):
            current = self.next_index(current, rng.random())
            observations.append(Observation(
                state=self.matrix.states[current],
                timestamp=step * SECONDS_PER_DAY,
            ))
        return SimulationResult(observations=tuple(observations))
