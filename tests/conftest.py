"""
Pytest configuration and shared fixtures.

Provides seeded engine instances and sample sequences for unit and
integration tests.
"""

from typing import List

import numpy as np
import pytest

from seqsentinel.anomaly.engine import AnomalyEngine
from seqsentinel.core.config import AnomalyConfig, IsolationForestConfig


@pytest.fixture
def anomaly_config() -> AnomalyConfig:
    """
    Fixture providing engine configuration with a fixed forest seed.

    Ensures forest-based tests run consistently regardless of .env settings.

    Returns:
        AnomalyConfig: Defaults with random_state pinned
    """
    return AnomalyConfig(isolation_forest=IsolationForestConfig(random_state=42))


@pytest.fixture
def engine(anomaly_config) -> AnomalyEngine:
    """Fresh engine per test so baselines never leak between tests."""
    return AnomalyEngine(settings=anomaly_config)


@pytest.fixture
def clustered_points() -> List[List[float]]:
    """
    Twenty 2-D points on a small grid around the origin plus one far outlier.

    The outlier (100, 100) sits at index 7.
    """
    points = [[0.1 * (i % 5), 0.1 * (i // 5)] for i in range(20)]
    points.insert(7, [100.0, 100.0])
    return points


@pytest.fixture
def noisy_series() -> List[float]:
    """
    Seeded telemetry-like series: 200 points of N(50, 2) noise.
    """
    rng = np.random.default_rng(1234)
    return [float(v) for v in rng.normal(50.0, 2.0, size=200)]


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
