"""
seqsentinel: explainable anomaly detection over numeric sequences.
"""

from .anomaly import AnomalyEngine, Anomaly, AnomalyKind, BaselineStatistics
from .core.exceptions import (
    AnomalyDetectionError,
    BaselineNotFoundError,
    InsufficientDataError,
    ModelNotTrainedError,
)

__version__ = "0.1.0"

__all__ = [
    "AnomalyEngine",
    "Anomaly",
    "AnomalyKind",
    "BaselineStatistics",
    "AnomalyDetectionError",
    "BaselineNotFoundError",
    "InsufficientDataError",
    "ModelNotTrainedError",
]
