"""
Application configuration for the sequence anomaly engine.

Provides environment-aware settings with conservative defaults. All detection
thresholds are configurable to avoid hard-coded "magic numbers".
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DetectionThresholds(BaseModel):
    """
    Thresholds shared by the statistical detectors.

    Notes:
    - zscore: cut-off for global, baseline and local (spike) z-scores.
    - score_divisor: z-scores are divided by this and clamped to [0, 1].
    - pattern_band: runs are counted outside mean +/- pattern_band * std.
    - trend_change: minimum absolute slope change for a trend break.
    - std_floor: lower bound for std to avoid division by zero.
    """

    zscore: float = Field(2.5, gt=0.0, description="Z-score alert threshold")
    score_divisor: float = Field(5.0, gt=0.0, description="Z-score to score normalizer")
    pattern_band: float = Field(1.5, gt=0.0, description="Band width in std units for runs")
    pattern_min_run: int = Field(3, ge=1, description="Shortest run reported as a pattern")
    pattern_run_divisor: float = Field(10.0, gt=0.0, description="Run length to score normalizer")
    trend_change: float = Field(0.5, ge=0.0, description="Slope change that counts as a break")
    std_floor: float = Field(0.001, gt=0.0)


class MinimumLengths(BaseModel):
    """
    Minimum input lengths per operation. Shorter inputs fail fast.
    """

    detect: int = Field(3, ge=3)
    baseline: int = Field(3, ge=3)
    spikes: int = Field(5, ge=5)
    isolation_forest: int = Field(10, ge=2)


class IsolationForestConfig(BaseModel):
    """
    Isolation forest hyper-parameters.

    Notes:
    - max_sample_size caps the per-tree subsample (sample = min(cap, n)).
    - random_state: fixed seed for reproducible forests; None uses fresh entropy.
    - n_jobs: number of worker threads used to build trees (1 = sequential).
    """

    num_trees: int = Field(100, ge=1)
    max_sample_size: int = Field(256, ge=2)
    contamination: float = Field(0.1, gt=0.0, lt=1.0)
    random_state: Optional[int] = Field(None, ge=0)
    n_jobs: int = Field(1, ge=1)


class TrendConfig(BaseModel):
    """
    Trend-break detection defaults.
    """

    window_size: int = Field(10, ge=1)


class AnomalyConfig(BaseModel):
    """
    Anomaly engine configuration.
    """

    thresholds: DetectionThresholds = DetectionThresholds()
    min_lengths: MinimumLengths = MinimumLengths()
    isolation_forest: IsolationForestConfig = IsolationForestConfig()
    trend: TrendConfig = TrendConfig()


class Config(BaseSettings):
    """
    Global configuration with environment overrides.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEQSENTINEL_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    log_level: str = Field("INFO", description="Default logging level")
    logs_dir: Path = Field(Path("logs"), description="Directory for log files")
    log_to_file: bool = Field(False, description="Also write logs to a rotating file")
    anomaly: AnomalyConfig = AnomalyConfig()


config = Config()
