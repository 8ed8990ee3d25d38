"""
Anomaly module: statistical and isolation-forest detection over sequences.

Implements deterministic statistics, a baseline store, explainable detectors,
an isolation forest, and the engine facade that ties them together.
"""

from .baselines import BaselineStore
from .detectors import PatternDetector, SpikeDetector, TrendBreakDetector, ZScoreDetector
from .engine import AnomalyEngine, shared
from .isolation_forest import IsolationForest, IsolationLeaf, IsolationSplit, IsolationTree
from .schema import Anomaly, AnomalyKind, BaselineStatistics, Trend
from .scoring import clamp_score, rank_anomalies, run_length_score, zscore_score
from .statistics import compute_statistics, linear_trend

__all__ = [
    "AnomalyEngine",
    "shared",
    "Anomaly",
    "AnomalyKind",
    "BaselineStatistics",
    "Trend",
    "BaselineStore",
    "ZScoreDetector",
    "PatternDetector",
    "SpikeDetector",
    "TrendBreakDetector",
    "IsolationForest",
    "IsolationTree",
    "IsolationLeaf",
    "IsolationSplit",
    "clamp_score",
    "rank_anomalies",
    "run_length_score",
    "zscore_score",
    "compute_statistics",
    "linear_trend",
]
