"""
Sequence anomaly detection engine.

Single entry point for all detection operations. Owns the baseline store and
the most recently trained isolation forest, validates inputs, and dispatches
to the statistical detectors.

Notes:
- Every public call runs under one lock, so a shared engine is mutated by at
  most one caller at a time.
- Short inputs fail fast with InsufficientDataError before any computation.
- A failed call leaves stored baselines and the retained forest untouched.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from seqsentinel.core.config import AnomalyConfig, config
from seqsentinel.core.exceptions import DataValidationError, InsufficientDataError

from .baselines import BaselineStore
from .detectors import PatternDetector, SpikeDetector, TrendBreakDetector, ZScoreDetector
from .isolation_forest import IsolationForest, as_matrix
from .schema import Anomaly, BaselineStatistics
from .scoring import rank_anomalies
from .statistics import compute_statistics

logger = logging.getLogger(__name__)


@dataclass
class AnomalyEngine:
    """
    Explainable anomaly detection over numeric sequences.

    Args:
        settings: Engine configuration (defaults to the global config section).
    """

    settings: Optional[AnomalyConfig] = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = config.anomaly
        thresholds = self.settings.thresholds

        self._lock = threading.RLock()
        self._baselines = BaselineStore(std_floor=thresholds.std_floor)
        self._isolation_forest: Optional[IsolationForest] = None

        self._z_detector = ZScoreDetector(thresholds)
        self._pattern_detector = PatternDetector(thresholds)
        self._spike_detector = SpikeDetector(thresholds)
        self._trend_detector = TrendBreakDetector(thresholds)

    # Sequence detection

    def detect(self, data: Iterable[float]) -> List[Anomaly]:
        """
        Flag global z-score outliers and sustained out-of-band runs.

        Returns:
            Point and pattern anomalies sorted by descending score.
        """
        values = self._as_series(data, self.settings.min_lengths.detect, "detect")

        with self._lock:
            stats = compute_statistics(values, self.settings.thresholds.std_floor)
            anomalies = self._z_detector.detect(values, stats)
            anomalies.extend(self._pattern_detector.detect(values, stats))

        logger.debug("detect: n=%d anomalies=%d", len(values), len(anomalies))
        return rank_anomalies(anomalies)

    def is_anomalous(self, value: float, baseline: Iterable[float]) -> Tuple[bool, float]:
        """
        Judge one value against an ad-hoc reference sequence.

        Returns:
            (is_anomaly, score) with score in [0, 1].
        """
        reference = self._as_series(baseline, self.settings.min_lengths.baseline, "is_anomalous")
        observed = self._as_value(value)

        with self._lock:
            stats = compute_statistics(reference, self.settings.thresholds.std_floor)
            return self._z_detector.check(observed, stats)

    def detect_spikes(self, data: Iterable[float], sensitivity: float = 1.0) -> List[Anomaly]:
        """
        Flag local spikes and drops relative to each point's four neighbours.

        Args:
            data: Sequence of at least five values.
            sensitivity: Divides the z-score threshold; must be positive.
        """
        values = self._as_series(data, self.settings.min_lengths.spikes, "detect_spikes")
        if not sensitivity > 0:
            raise DataValidationError(f"sensitivity must be positive, got {sensitivity}")

        with self._lock:
            anomalies = self._spike_detector.detect(values, sensitivity)

        logger.debug("detect_spikes: n=%d anomalies=%d", len(values), len(anomalies))
        return anomalies

    def detect_trend_breaks(
        self, data: Iterable[float], window_size: Optional[int] = None
    ) -> List[Anomaly]:
        """
        Flag indices where the least-squares slope changes sharply.

        Args:
            data: Sequence of at least 2 * window_size values.
            window_size: Points per slope window (default from config). A
                one-point window has slope 0, so it never reports a break. A window
                of 1 is accepted; its slope is 0, so no breaks are reported.
        """
        if window_size is None:
            window_size = self.settings.trend.window_size
        if window_size < 1:
            raise DataValidationError(f"window_size must be at least 1, got {window_size}")

        values = self._as_series(data, 2 * window_size, "detect_trend_breaks")

        with self._lock:
            anomalies = self._trend_detector.detect(values, window_size)

        logger.debug(
            "detect_trend_breaks: n=%d window=%d anomalies=%d",
            len(values),
            window_size,
            len(anomalies),
        )
        return anomalies

    # Isolation forest

    def detect_with_isolation_forest(
        self, data, contamination: Optional[float] = None
    ) -> List[int]:
        """
        Fit a fresh isolation forest on ``data`` and flag its outliers.

        Args:
            data: At least ten points, each a row of equal length.
            contamination: Expected anomaly fraction in (0, 1).

        Returns:
            Ascending indices of the points flagged anomalous.
        """
        minimum = self.settings.min_lengths.isolation_forest
        try:
            n = len(data)
        except TypeError as exc:
            raise DataValidationError("Isolation forest input must be a sized collection") from exc
        if n < minimum:
            raise InsufficientDataError("detect_with_isolation_forest", minimum, n)

        matrix = as_matrix(data)
        forest_config = self.settings.isolation_forest
        if contamination is None:
            contamination = forest_config.contamination

        forest = IsolationForest(
            num_trees=forest_config.num_trees,
            max_sample_size=forest_config.max_sample_size,
            contamination=contamination,
            random_state=forest_config.random_state,
            n_jobs=forest_config.n_jobs,
        )

        with self._lock:
            forest.fit(matrix)
            flags = forest.predict(matrix)
            self._isolation_forest = forest

        flagged = [int(i) for i in flags.nonzero()[0]]
        logger.info(
            "Isolation forest trained on %d points (%d features): %d flagged at threshold %.4f",
            n,
            matrix.shape[1],
            len(flagged),
            forest.threshold,
        )
        return flagged

    @property
    def isolation_forest(self) -> Optional[IsolationForest]:
        """Most recently trained forest, or None before the first fit / after reset."""
        return self._isolation_forest

    # Baselines

    def update_baseline(self, identifier: str, data: Iterable[float]) -> BaselineStatistics:
        """
        Store (or replace) the baseline for ``identifier``.
        """
        values = self._as_series(data, self.settings.min_lengths.baseline, "update_baseline")

        with self._lock:
            stats = self._baselines.update(identifier, values)

        logger.info(
            "Baseline updated: id=%s n=%d mean=%.4f std=%.4f",
            identifier,
            stats.count,
            stats.mean,
            stats.std_dev,
        )
        return stats

    def check_against_baseline(self, identifier: str, value: float) -> Tuple[bool, float]:
        """
        Judge ``value`` against the stored baseline for ``identifier``.

        Raises:
            BaselineNotFoundError: if the identifier was never stored or was reset.
        """
        observed = self._as_value(value)
        with self._lock:
            stats = self._baselines.get(identifier)
            return self._z_detector.check(observed, stats)

    def get_baseline(self, identifier: str) -> BaselineStatistics:
        with self._lock:
            return self._baselines.get(identifier)

    def has_baseline(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._baselines

    def baseline_identifiers(self) -> List[str]:
        with self._lock:
            return self._baselines.identifiers()

    def reset(self) -> None:
        """
        Drop all baselines and the retained forest. Safe to call repeatedly.
        """
        with self._lock:
            cleared = len(self._baselines)
            self._baselines.clear()
            self._isolation_forest = None
        logger.info("Engine reset: %d baselines cleared", cleared)

    # Validation

    @staticmethod
    def _as_series(data: Iterable[float], minimum: int, operation: str) -> List[float]:
        try:
            values = [float(v) for v in data]
        except (TypeError, ValueError) as exc:
            raise DataValidationError(f"{operation} expects a sequence of numbers: {exc}") from exc

        if len(values) < minimum:
            raise InsufficientDataError(operation, minimum, len(values))
        if not all(math.isfinite(v) for v in values):
            raise DataValidationError(f"{operation} input must not contain NaN or infinite values")
        return values

    @staticmethod
    def _as_value(value: float) -> float:
        try:
            observed = float(value)
        except (TypeError, ValueError) as exc:
            raise DataValidationError(f"Expected a number, got {value!r}") from exc
        if not math.isfinite(observed):
            raise DataValidationError("Value must be finite")
        return observed


shared = AnomalyEngine()
