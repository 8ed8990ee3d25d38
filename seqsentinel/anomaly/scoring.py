"""
Score normalization for anomalies.

Every detector maps its raw statistic (z-score, local z-score, run length,
slope change) into [0, 1] so anomalies can be compared across detectors.
"""

from __future__ import annotations

from typing import Iterable, List

from .schema import Anomaly


def clamp_score(raw: float) -> float:
    """
    Clamp a raw score into [0, 1].
    """

    return min(max(raw, 0.0), 1.0)


def zscore_score(zscore: float, divisor: float) -> float:
    """
    Normalize an absolute z-score, saturating at z == divisor.
    """

    return clamp_score(abs(zscore) / divisor)


def run_length_score(run_length: int, divisor: float) -> float:
    """
    Normalize the length of a run of out-of-band values.

    Runs longer than ``divisor`` saturate at 1.0.
    """

    return clamp_score(run_length / divisor)


def rank_anomalies(anomalies: Iterable[Anomaly]) -> List[Anomaly]:
    """
    Return anomalies sorted by descending score (stable for equal scores).
    """

    return sorted(anomalies, key=lambda a: a.score, reverse=True)
