"""Stationary distribution by matrix power iteration."""

import logging
from dataclasses import dataclass

import numpy as np

from weather_markov.config.constants import CONVERGENCE_TOLERANCE, MAX_POWER_ITERATIONS
from weather_markov.simulation.transition_matrix import TransitionMatrix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SteadyState:
    """Long-run state probabilities of a chain."""

    distribution: np.ndarray   # length N, in matrix state order
    iterations: int            # matrix multiplications performed
    converged: bool


def steady_state(
    matrix: TransitionMatrix,
    tolerance: float = CONVERGENCE_TOLERANCE,
    max_iterations: int = MAX_POWER_ITERATIONS,
) -> SteadyState:
    """Compute the stationary distribution by repeated self-multiplication.

    Iterates M_{k+1} = M_k @ M from M_0 = M until the largest entrywise change
    drops below ``tolerance``; every row of the converged power is then the
    stationary distribution and row 0 is returned. The matrix power is used
    instead of a probability vector so the result does not depend on a chosen
    starting distribution. Cost is O(N^3) per step.

    The change is checked from the first product on, comparing M_1 with M_0.
    A matrix whose rows are already identical therefore reports
    ``iterations=1``. Checking only from the second product would cost one
    extra multiplication and give the same distribution at this tolerance.

    Periodic or reducible chains may never converge. After ``max_iterations``
    row 0 of the last power is returned with ``converged=False``.

    Args:
        matrix: Row-stochastic transition matrix.
        tolerance: Convergence threshold on max |M_k - M_{k-1}|.
        max_iterations: Hard cap on multiplications.

    Returns:
        SteadyState with the distribution and convergence details.
    """
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")

    P = matrix.P
    current = P.copy()

    for iteration in range(1, max_iterations + 1):
        nxt = current @ P
        delta = float(np.max(np.abs(nxt - current)))
        current = nxt
        if delta < tolerance:
            return SteadyState(distribution=current[0].copy(), iterations=iteration, converged=True)

    logger.warning(
        f"Steady state did not converge after {max_iterations} iterations "
        f"(last delta={delta:.3e}); returning best-effort row 0"
    )
    return SteadyState(distribution=current[0].copy(), iterations=max_iterations, converged=False)
