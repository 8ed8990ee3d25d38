"""
Detectors for statistical deviations in a full sequence.

Implements explainable methods:
- Global z-score detection with spike/drop/outlier classification
- Run-length pattern detection (consecutive out-of-band values)
- Local spike/drop detection against a 4-neighbour window
- Trend-break detection by comparing adjacent window slopes

Detectors hold no state between calls. Input length and shape are validated
by the engine before a detector is invoked.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import sqrt
from typing import List, Optional, Sequence, Tuple

from seqsentinel.core.config import DetectionThresholds

from .schema import Anomaly, AnomalyKind, BaselineStatistics
from .scoring import clamp_score, run_length_score, zscore_score
from .statistics import compute_statistics, slope


@dataclass
class ZScoreDetector:
    """
    Global z-score detector.

    A point is anomalous when |x - mean| / std exceeds the threshold. Flagged
    points are classified by their immediate neighbours: a local maximum above
    the mean is a spike, a local minimum below the mean is a drop, anything
    else (including the first and last points) is an outlier.
    """

    thresholds: DetectionThresholds

    def compute(self, observed: float, baseline: BaselineStatistics) -> float:
        return abs(observed - baseline.mean) / baseline.std_dev

    def check(self, observed: float, baseline: BaselineStatistics) -> Tuple[bool, float]:
        """
        Judge a single value against a baseline.

        Returns:
            (is_anomaly, score) with score in [0, 1]
        """
        z = self.compute(observed, baseline)
        return z > self.thresholds.zscore, zscore_score(z, self.thresholds.score_divisor)

    def detect(
        self, data: Sequence[float], stats: Optional[BaselineStatistics] = None
    ) -> List[Anomaly]:
        if stats is None:
            stats = compute_statistics(data, self.thresholds.std_floor)

        anomalies: List[Anomaly] = []
        for index, value in enumerate(data):
            z = self.compute(value, stats)
            if not z > self.thresholds.zscore:
                continue
            anomalies.append(
                Anomaly(
                    index=index,
                    value=value,
                    score=zscore_score(z, self.thresholds.score_divisor),
                    kind=self._classify(data, index, stats.mean),
                )
            )
        return anomalies

    @staticmethod
    def _classify(data: Sequence[float], index: int, mean: float) -> AnomalyKind:
        value = data[index]
        if index == 0 or index == len(data) - 1:
            return AnomalyKind.OUTLIER

        prev_value, next_value = data[index - 1], data[index + 1]
        if value > mean:
            if value > prev_value and value > next_value:
                return AnomalyKind.SPIKE
        elif value < prev_value and value < next_value:
            return AnomalyKind.DROP
        return AnomalyKind.OUTLIER


@dataclass
class PatternDetector:
    """
    Run-length detector for sustained deviations.

    Counts consecutive values outside mean +/- band * std. Each run of at
    least ``pattern_min_run`` values yields one pattern anomaly anchored at the
    start of the run, including a run that reaches the end of the sequence.
    """

    thresholds: DetectionThresholds

    def detect(
        self, data: Sequence[float], stats: Optional[BaselineStatistics] = None
    ) -> List[Anomaly]:
        if stats is None:
            stats = compute_statistics(data, self.thresholds.std_floor)

        band = self.thresholds.pattern_band * stats.std_dev
        upper, lower = stats.mean + band, stats.mean - band

        anomalies: List[Anomaly] = []
        run_start = 0
        run_length = 0

        for index, value in enumerate(data):
            if value > upper or value < lower:
                if run_length == 0:
                    run_start = index
                run_length += 1
                continue
            self._emit(data, run_start, run_length, anomalies)
            run_length = 0

        self._emit(data, run_start, run_length, anomalies)
        return anomalies

    def _emit(
        self, data: Sequence[float], start: int, length: int, out: List[Anomaly]
    ) -> None:
        if length < self.thresholds.pattern_min_run:
            return
        out.append(
            Anomaly(
                index=start,
                value=data[start],
                score=run_length_score(length, self.thresholds.pattern_run_divisor),
                kind=AnomalyKind.PATTERN,
            )
        )


@dataclass
class SpikeDetector:
    """
    Local spike/drop detector.

    Each interior point is compared with the mean and standard deviation of
    its two neighbours on either side (the point itself excluded). A higher
    sensitivity lowers the effective threshold.
    """

    thresholds: DetectionThresholds

    def detect(self, data: Sequence[float], sensitivity: float = 1.0) -> List[Anomaly]:
        threshold = self.thresholds.zscore / sensitivity
        anomalies: List[Anomaly] = []

        for i in range(2, len(data) - 2):
            neighbours = (data[i - 2], data[i - 1], data[i + 1], data[i + 2])
            local_mean = sum(neighbours) / 4.0
            local_std = sqrt(sum((v - local_mean) ** 2 for v in neighbours) / 4.0)
            deviation = abs(data[i] - local_mean)
            local_z = deviation / local_std if local_std > 0 else 0.0

            if local_z > threshold:
                anomalies.append(
                    Anomaly(
                        index=i,
                        value=data[i],
                        score=zscore_score(local_z, self.thresholds.score_divisor),
                        kind=AnomalyKind.SPIKE if data[i] > local_mean else AnomalyKind.DROP,
                    )
                )
        return anomalies


@dataclass
class TrendBreakDetector:
    """
    Trend-break detector.

    For each index i in [window, n - window), fits a least-squares slope to
    the window ending just before i and the window starting at i. A slope
    change above ``trend_change`` is reported as a pattern anomaly at i.
    """

    thresholds: DetectionThresholds

    def detect(self, data: Sequence[float], window_size: int) -> List[Anomaly]:
        anomalies: List[Anomaly] = []

        for i in range(window_size, len(data) - window_size):
            before = slope(data[i - window_size:i])
            after = slope(data[i:i + window_size])
            change = abs(after - before)

            if change > self.thresholds.trend_change:
                anomalies.append(
                    Anomaly(
                        index=i,
                        value=data[i],
                        score=clamp_score(change),
                        kind=AnomalyKind.PATTERN,
                    )
                )
        return anomalies
