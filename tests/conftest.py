"""Shared test fixtures."""

import numpy as np
import pytest

from helpers import RAINY, SUNNY, make_payload, make_sequence


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def scenario_sequence():
    """Sunny, Sunny, Rainy, Rainy, Sunny: Cloudy never observed."""
    return make_sequence([SUNNY, SUNNY, RAINY, RAINY, SUNNY])


@pytest.fixture
def history_payload():
    return make_payload([
        ("2024-02-27", "Sunny"),
        ("2024-02-28", "Partly cloudy"),
        ("2024-02-29", "Patchy light rain"),
        ("2024-03-01", "Moderate rain"),
        ("2024-03-02", "Overcast"),
        ("2024-03-03", "Clear"),
        ("2024-03-04", "Sunny"),
    ])
