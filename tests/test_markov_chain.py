"""Tests for the Markov chain weather simulator."""

import numpy as np
import pytest

from helpers import CLOUDY, RAINY, SUNNY
from weather_markov.config.constants import SECONDS_PER_DAY
from weather_markov.config.schema import Observation
from weather_markov.errors.exceptions import UnknownStateError
from weather_markov.simulation.markov_chain import MarkovChainSimulator
from weather_markov.simulation.statistics import state_distribution
from weather_markov.simulation.steady_state import steady_state
from weather_markov.simulation.transition_matrix import TransitionMatrix


class FixedDraws:
    """Uniform source replaying a fixed list of draws."""

    def __init__(self, draws):
        self.draws = list(draws)

    def random(self):
        return self.draws.pop(0)


class TestMarkovChain:
    @pytest.fixture
    def sim(self):
        return MarkovChainSimulator(TransitionMatrix([
            [0.6, 0.3, 0.1],
            [0.2, 0.5, 0.3],
            [0.3, 0.3, 0.4],
        ]))

    def test_single_day_is_initial_state(self, sim, rng):
        result = sim.simulate(RAINY, 1, rng)
        assert result.observations == (Observation(RAINY, 0),)

    def test_length_and_timestamps(self, sim, rng):
        result = sim.simulate(SUNNY, 30, rng)
        assert len(result) == 30
        timestamps = [obs.timestamp for obs in result]
        assert timestamps == [day * SECONDS_PER_DAY for day in range(30)]

    def test_accepts_state_label(self, sim, rng):
        assert sim.simulate("cloudy", 1, rng).observations[0].state is CLOUDY

    def test_unknown_initial_state(self, sim, rng):
        with pytest.raises(UnknownStateError):
            sim.simulate("Snowy", 5, rng)

    @pytest.mark.parametrize("days", [0, -3, 2.5])
    def test_invalid_days(self, sim, rng, days):
        with pytest.raises(ValueError):
            sim.simulate(SUNNY, days, rng)

    def test_inverse_cdf_selection(self, sim):
        """Row Sunny has CDF [0.6, 0.9, 1.0]; a draw equal to a boundary picks that state."""
        draws = FixedDraws([0.0, 0.6, 0.61, 0.95])
        states = []
        for _ in range(4):
            states.append(sim.matrix.states[sim.next_index(0, draws.random())])
        assert states == [SUNNY, SUNNY, RAINY, CLOUDY]

    def test_rounding_falls_back_to_last_state(self):
        """If the row total lands just under the draw, the last state is chosen."""
        m = TransitionMatrix([[0.5, 0.5 - 5e-7], [0.5, 0.5]], states=(SUNNY, RAINY))
        sim = MarkovChainSimulator(m)
        assert sim.next_index(0, 0.9999999) == 1

    def test_absorbing_state(self, rng):
        m = TransitionMatrix([[0.0, 1.0, 0.0], [0.0, 1.0, 0.0], [0.0, 1.0, 0.0]])
        result = MarkovChainSimulator(m).simulate(SUNNY, 10, rng)
        assert result.states() == [SUNNY] + [RAINY] * 9

    def test_deterministic_with_seed(self, sim):
        """Same seed produces same output."""
        r1 = sim.simulate(SUNNY, 100, np.random.default_rng(7))
        r2 = sim.simulate(SUNNY, 100, np.random.default_rng(7))
        assert r1 == r2

    def test_long_run_matches_stationary(self, sim):
        """Long simulation should converge to the stationary distribution."""
        result = sim.simulate(SUNNY, 50_000, np.random.default_rng(123))
        empirical = state_distribution(result)
        np.testing.assert_allclose(empirical, steady_state(sim.matrix).distribution, atol=0.02)

    def test_to_records(self, sim):
        result = sim.simulate(SUNNY, 3, FixedDraws([0.7, 0.95]))
        assert result.to_records() == [
            {"day": 0, "state": "Sunny", "timestamp": 0},
            {"day": 1, "state": "Rainy", "timestamp": SECONDS_PER_DAY},
            {"day": 2, "state": "Cloudy", "timestamp": 2 * SECONDS_PER_DAY},
        ]
