"""Shared fixtures for Assay tests.

Each fixture is a pair of index-aligned (train, val) loss curves with a
known diagnosis at the default thresholds.
"""

from __future__ import annotations

import pytest


@pytest.fixture
def overfit_curves() -> tuple[list[float], list[float]]:
    """Validation loss falls, bottoms out at iteration 3, then rises."""
    train = [0.9, 0.7, 0.5, 0.3, 0.2, 0.15]
    val = [0.9, 0.75, 0.6, 0.55, 0.7, 0.9]
    return train, val


@pytest.fixture
def optimal_curves() -> tuple[list[float], list[float]]:
    """Both curves settle with a gap of about 0.05."""
    train = [0.9, 0.6, 0.4, 0.3, 0.29, 0.285]
    val = [0.95, 0.65, 0.45, 0.35, 0.34, 0.335]
    return train, val


@pytest.fixture
def unfinished_curves() -> tuple[list[float], list[float]]:
    """Both curves still dropping steeply at the last iteration."""
    train = [1.0, 0.8, 0.6, 0.45, 0.3, 0.2]
    val = [1.1, 0.9, 0.7, 0.55, 0.42, 0.33]
    return train, val


@pytest.fixture
def flat_high_curves() -> tuple[list[float], list[float]]:
    """Training loss levels off around 0.8, far above a 0.3 baseline."""
    train = [0.9, 0.85, 0.83, 0.82, 0.815, 0.81]
    val = [0.92, 0.88, 0.86, 0.85, 0.845, 0.84]
    return train, val


@pytest.fixture
def long_overfit_curves() -> tuple[list[float], list[float]]:
    """Fifty iterations; validation bottoms out at iteration 24, then climbs."""
    train = [1.0 - 0.01 * i for i in range(50)]
    val = [1.0 - 0.02 * i if i <= 24 else 0.52 + 0.01 * (i - 24) for i in range(50)]
    return train, val
