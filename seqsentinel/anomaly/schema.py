"""
Schema definitions for sequence anomaly detection.

All anomaly outputs are deterministic and explainable. Each anomaly references
its position in the input, the observed value, a normalized score, and the
kind of deviation that produced it.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AnomalyKind(str, Enum):
    """Kinds of deviation reported by the detectors."""

    OUTLIER = "outlier"
    SPIKE = "spike"
    DROP = "drop"
    PATTERN = "pattern"


class Anomaly(BaseModel):
    """
    A single flagged point in a sequence.

    Fields:
    - index: position in the input sequence
    - value: observed value at that position
    - score: normalized anomaly score in [0.0, 1.0] (higher = more anomalous)
    - kind: outlier, spike, drop, or pattern
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    value: float
    score: float = Field(ge=0.0, le=1.0)
    kind: AnomalyKind


class BaselineStatistics(BaseModel):
    """
    Statistical summary of a reference sequence.

    Fields:
    - mean: central tendency
    - std_dev: population standard deviation (>= std floor)
    - median: middle value (average of the two central values for even n)
    - iqr: Q3 - Q1 using integer-index quartiles
    - min/max: range of the reference data
    - count: number of points summarized
    """

    model_config = ConfigDict(frozen=True)

    mean: float
    std_dev: float = Field(gt=0.0)
    median: float
    iqr: float = Field(ge=0.0)
    min: float
    max: float
    count: int = Field(ge=1)


class Trend(BaseModel):
    """Least-squares trend of a sequence against its index."""

    model_config = ConfigDict(frozen=True)

    slope: float
    strength: float = Field(ge=0.0, le=1.0)
