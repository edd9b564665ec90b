"""Row-stochastic transition matrix and its construction from observed history."""

from __future__ import annotations

import logging
from typing import Dict, Sequence, Tuple, Union

import numpy as np

from weather_markov.config.constants import STOCHASTIC_TOLERANCE
from weather_markov.config.schema import WEATHER_STATES, ObservationSequence, WeatherState
from weather_markov.errors.exceptions import InvalidTransitionMatrixError, UnknownStateError

logger = logging.getLogger(__name__)


def is_stochastic(probabilities: np.ndarray, tolerance: float = STOCHASTIC_TOLERANCE) -> bool:
    """True if every row of ``probabilities`` sums to 1.0 within ``tolerance``."""
    P = np.asarray(probabilities, dtype=np.float64)
    if P.ndim != 2:
        return False
    return bool(np.all(np.abs(P.sum(axis=1) - 1.0) <= tolerance))


class TransitionMatrix:
    """Square row-stochastic matrix over an ordered tuple of weather states.

    ``states[i]`` is both the "from" state of row i and the "to" state of
    column i. The probability array is read-only once constructed.
    """

    def __init__(
        self,
        probabilities: Union[np.ndarray, Sequence[Sequence[float]]],
        states: Sequence[WeatherState] = WEATHER_STATES,
    ):
        self.states: Tuple[WeatherState, ...] = tuple(states)
        n = len(self.states)

        if n == 0:
            raise InvalidTransitionMatrixError("Transition matrix needs at least one state")
        if len(set(self.states)) != n:
            raise InvalidTransitionMatrixError(f"Duplicate states in {self.states}")

        P = np.array(probabilities, dtype=np.float64)
        if P.shape != (n, n):
            raise InvalidTransitionMatrixError(
                f"Transition matrix shape {P.shape} != ({n}, {n})"
            )
        if not np.all(np.isfinite(P)) or np.any(P < 0.0) or np.any(P > 1.0):
            raise InvalidTransitionMatrixError("Transition probabilities must lie in [0, 1]")
        if not is_stochastic(P):
            raise InvalidTransitionMatrixError(
                f"Transition matrix rows must sum to 1.0, got {P.sum(axis=1)}"
            )

        P.setflags(write=False)
        self.P = P
        self._index: Dict[WeatherState, int] = {s: i for i, s in enumerate(self.states)}

    @property
    def n_states(self) -> int:
        return len(self.states)

    def index_of(self, state: WeatherState) -> int:
        """Row/column index of ``state``."""
        try:
            return self._index[state]
        except KeyError:
            raise UnknownStateError(
                f"State {state!r} is not part of this matrix ({[s.label for s in self.states]})"
            ) from None

    def row(self, state: WeatherState) -> np.ndarray:
        """Outgoing transition probabilities of ``state``."""
        return self.P[self.index_of(state)]

    def probability(self, from_state: WeatherState, to_state: WeatherState) -> float:
        return float(self.P[self.index_of(from_state), self.index_of(to_state)])

    def to_dict(self) -> dict:
        """Matrix entries (row-major), state labels and dimensions."""
        n = self.n_states
        return {
            "matrix": [float(x) for x in self.P.ravel()],
            "states": [s.label for s in self.states],
            "rows": n,
            "cols": n,
        }

    def __repr__(self) -> str:
        labels = [s.label for s in self.states]
        return f"TransitionMatrix(states={labels}, P={self.P.tolist()})"


def count_transitions(
    sequence: ObservationSequence,
    states: Sequence[WeatherState] = WEATHER_STATES,
) -> np.ndarray:
    """Count adjacent (current, next) state pairs into an N x N array."""
    index = {s: i for i, s in enumerate(states)}
    counts = np.zeros((len(index), len(index)), dtype=np.int64)
    for current, nxt in sequence.pairs():
        try:
            counts[index[current.state], index[nxt.state]] += 1
        except KeyError as exc:
            raise UnknownStateError(
                f"Observed state {exc.args[0]!r} is not in {[s.label for s in states]}"
            ) from None
    return counts


def build_transition_matrix(
    sequence: ObservationSequence,
    states: Sequence[WeatherState] = WEATHER_STATES,
) -> TransitionMatrix:
    """Build the empirical transition matrix of an observation sequence.

    Rows with observed outgoing transitions become the maximum-likelihood
    distribution count / row_sum. Rows without any (including every row of
    an empty or single-observation sequence) default to uniform 1/N.

    Args:
        sequence: Observed history in chronological order.
        states: Row/column order of the resulting matrix.

    Returns:
        TransitionMatrix over ``states``.
    """
    states = tuple(states)
    n = len(states)
    counts = count_transitions(sequence, states)
    row_sums = counts.sum(axis=1)

    P = np.full((n, n), 1.0 / n)
    observed = row_sums > 0
    P[observed] = counts[observed] / row_sums[observed][:, None]

    logger.debug(
        f"{sequence.label}: {int(row_sums.sum())} transitions from {len(sequence)} observations, "
        f"{int((~observed).sum())} uniform row(s)"
    )

    # Normalisation above cannot produce a non-stochastic row.
    if not is_stochastic(P):
        logger.critical(f"Built transition matrix is not row-stochastic: row sums {P.sum(axis=1)}")
    assert is_stochastic(P), f"Built transition matrix is not row-stochastic: {P.sum(axis=1)}"

    return TransitionMatrix(P, states)
