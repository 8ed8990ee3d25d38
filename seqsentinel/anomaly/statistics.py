"""
Statistics primitives over numeric sequences.

Pure, deterministic helpers shared by the baseline store and the detectors.
Quartiles use integer-index selection on the sorted data (no interpolation),
which is slightly biased for small inputs.
"""

from __future__ import annotations

from math import isfinite, sqrt
from typing import Sequence, Tuple

from seqsentinel.core.exceptions import DataValidationError

from .schema import BaselineStatistics, Trend

DEFAULT_STD_FLOOR = 0.001


def mean(data: Sequence[float]) -> float:
    return sum(data) / len(data)


def std_dev(data: Sequence[float], std_floor: float = DEFAULT_STD_FLOOR) -> float:
    """Population standard deviation, floored at ``std_floor``."""
    mu = mean(data)
    variance = sum((x - mu) ** 2 for x in data) / len(data)
    return max(sqrt(variance), std_floor)


def median(data: Sequence[float]) -> float:
    ordered = sorted(data)
    n = len(ordered)
    mid = n // 2
    if n % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def quartiles(data: Sequence[float]) -> Tuple[float, float]:
    """Return (Q1, Q3) as the sorted elements at indices n//4 and 3n//4."""
    ordered = sorted(data)
    n = len(ordered)
    return ordered[n // 4], ordered[(3 * n) // 4]


def iqr(data: Sequence[float]) -> float:
    q1, q3 = quartiles(data)
    return q3 - q1


def slope(data: Sequence[float]) -> float:
    """
    Ordinary least-squares slope of ``data`` against its index.

    Returns 0.0 for fewer than two points.
    """
    n = len(data)
    if n < 2:
        return 0.0
    x_mean = (n - 1) / 2
    y_mean = sum(data) / n
    numerator = 0.0
    denominator = 0.0
    for i, y in enumerate(data):
        dx = i - x_mean
        numerator += dx * (y - y_mean)
        denominator += dx * dx
    return numerator / denominator if denominator > 0 else 0.0


def linear_trend(data: Sequence[float]) -> Trend:
    """
    Fit y = a + b*x over the index and report slope and R^2.

    Strength is the coefficient of determination clamped to [0, 1]; a flat
    sequence has strength 0.
    """
    n = len(data)
    b = slope(data)
    if n < 2:
        return Trend(slope=b, strength=0.0)

    y_mean = sum(data) / n
    x_mean = (n - 1) / 2
    ss_tot = sum((y - y_mean) ** 2 for y in data)
    if ss_tot == 0:
        return Trend(slope=b, strength=0.0)

    ss_res = sum((y - (y_mean + b * (i - x_mean))) ** 2 for i, y in enumerate(data))
    r_squared = 1.0 - ss_res / ss_tot
    return Trend(slope=b, strength=min(max(r_squared, 0.0), 1.0))


def compute_statistics(
    data: Sequence[float], std_floor: float = DEFAULT_STD_FLOOR
) -> BaselineStatistics:
    """
    Summarize a non-empty sequence.

    Args:
        data: Numeric values (at least one)
        std_floor: Minimum reported standard deviation

    Returns:
        BaselineStatistics for the sequence

    Raises:
        DataValidationError: if the mean or deviation overflows
    """
    if not data:
        raise ValueError("compute_statistics requires at least one value")

    mu = mean(data)
    sigma = std_dev(data, std_floor)
    if not (isfinite(mu) and isfinite(sigma)):
        raise DataValidationError(
            "Values are too large to summarize: mean or standard deviation overflowed"
        )

    ordered = sorted(data)
    q1, q3 = quartiles(ordered)

    return BaselineStatistics(
        mean=mu,
        std_dev=sigma,
        median=median(ordered),
        iqr=q3 - q1,
        min=ordered[0],
        max=ordered[-1],
        count=len(ordered),
    )
