"""
Isolation Forest for unsupervised multi-dimensional anomaly detection.

Points that are separated from the bulk of the data by few random
axis-aligned splits have short average path lengths and therefore high
anomaly scores.

Scoring:
    score(x) = 2 ** (-E[h(x)] / c(sample_size))

where h(x) is the path length of x in one tree (edges traversed plus the
c(size) correction at the leaf) and c(n) is the average path length of an
unsuccessful binary-search-tree lookup over n points.

Reference:
    Liu, Fei Tony, Ting, Kai Ming, and Zhou, Zhi-Hua. "Isolation forest."
    Data Mining, 2008. ICDM'08.

Usage:
    >>> forest = IsolationForest(num_trees=100, contamination=0.1, random_state=7)
    >>> forest.fit(points)  # [N, F] array-like
    >>> flags = forest.predict(points)
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from seqsentinel.core.exceptions import DataValidationError, ModelNotTrainedError

logger = logging.getLogger(__name__)

EULER_GAMMA = 0.5772156649


def average_path_length(n: float) -> float:
    """c(n) = 2 * (ln(n - 1) + gamma) - 2 * (n - 1) / n, and 0 for n <= 1."""
    if n <= 1:
        return 0.0
    return 2.0 * (math.log(n - 1) + EULER_GAMMA) - 2.0 * (n - 1) / n


@dataclass(frozen=True)
class IsolationLeaf:
    size: int


@dataclass(frozen=True)
class IsolationSplit:
    feature_index: int
    split_value: float
    left: "IsolationNode"
    right: "IsolationNode"


IsolationNode = Union[IsolationLeaf, IsolationSplit]


class IsolationTree:
    """
    A single random partition tree, immutable after ``fit``.
    """

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self.root: Optional[IsolationNode] = None

    def fit(self, sample: np.ndarray, rng: np.random.Generator) -> "IsolationTree":
        self.root = self._build(sample, 0, rng)
        return self

    def _build(
        self, sample: np.ndarray, depth: int, rng: np.random.Generator
    ) -> IsolationNode:
        size = sample.shape[0]
        if depth >= self.max_depth or size <= 1:
            return IsolationLeaf(size=size)

        feature_index = int(rng.integers(sample.shape[1]))
        values = sample[:, feature_index]
        low, high = float(values.min()), float(values.max())
        if low == high:
            return IsolationLeaf(size=size)

        split_value = float(rng.uniform(low, high))
        goes_left = values < split_value

        return IsolationSplit(
            feature_index=feature_index,
            split_value=split_value,
            left=self._build(sample[goes_left], depth + 1, rng),
            right=self._build(sample[~goes_left], depth + 1, rng),
        )

    def path_length(self, point: Sequence[float]) -> float:
        if self.root is None:
            raise ModelNotTrainedError("Isolation tree has not been fitted")

        node = self.root
        depth = 0
        while isinstance(node, IsolationSplit):
            node = node.left if point[node.feature_index] < node.split_value else node.right
            depth += 1
        return depth + average_path_length(node.size)


def as_matrix(data) -> np.ndarray:
    """
    Convert rows of numbers into a finite 2-D float array.

    Raises:
        DataValidationError: for ragged, empty, or non-finite rows
    """
    try:
        matrix = np.asarray(data, dtype=float)
    except (TypeError, ValueError) as exc:
        raise DataValidationError(f"Rows must be numeric and of equal length: {exc}") from exc

    if matrix.ndim != 2 or matrix.shape[1] == 0:
        raise DataValidationError(
            f"Expected a non-empty 2-D array of points, got shape {matrix.shape}"
        )
    if not np.all(np.isfinite(matrix)):
        raise DataValidationError("Points must not contain NaN or infinite values")
    return matrix


class IsolationForest:
    """
    Ensemble of isolation trees with a contamination-driven threshold.

    Args:
        num_trees: Number of trees in the ensemble (default: 100).
        max_sample_size: Cap on the per-tree subsample (default: 256).
        contamination: Expected fraction of anomalies, in (0, 1).
        random_state: Seed for reproducible forests (default: fresh entropy).
        n_jobs: Worker threads used to build trees (default: 1).
    """

    def __init__(
        self,
        num_trees: int = 100,
        max_sample_size: int = 256,
        contamination: float = 0.1,
        random_state: Optional[int] = None,
        n_jobs: int = 1,
    ) -> None:
        if num_trees < 1:
            raise DataValidationError("num_trees must be at least 1")
        if not 0.0 < contamination < 1.0:
            raise DataValidationError(f"contamination must be in (0, 1), got {contamination}")

        self.num_trees = num_trees
        self.max_sample_size = max_sample_size
        self.contamination = contamination
        self.random_state = random_state
        self.n_jobs = max(1, n_jobs)

        self.trees: List[IsolationTree] = []
        self.sample_size: int = 0
        self.num_features: int = 0
        self.threshold: float = 0.0

    @property
    def is_fitted(self) -> bool:
        return bool(self.trees)

    def fit(self, data) -> "IsolationForest":
        """
        Build the ensemble and derive the decision threshold from ``data``.

        Replaces any previously fitted trees and threshold.
        """
        matrix = as_matrix(data)
        n = matrix.shape[0]
        sample_size = min(self.max_sample_size, n)
        max_depth = int(math.ceil(math.log2(sample_size))) if sample_size > 1 else 0

        seeds = np.random.SeedSequence(self.random_state).spawn(self.num_trees)

        def build(seed: np.random.SeedSequence) -> IsolationTree:
            rng = np.random.default_rng(seed)
            rows = rng.choice(n, size=sample_size, replace=False)
            return IsolationTree(max_depth=max_depth).fit(matrix[rows], rng)

        if self.n_jobs > 1:
            with ThreadPoolExecutor(max_workers=self.n_jobs) as pool:
                trees = list(pool.map(build, seeds))
        else:
            trees = [build(seed) for seed in seeds]

        self.trees = trees
        self.sample_size = sample_size
        self.num_features = matrix.shape[1]

        scores = np.sort(self._score_matrix(matrix))[::-1]
        cutoff = min(int(n * self.contamination), n - 1)
        self.threshold = float(scores[cutoff])

        logger.debug(
            "Fitted isolation forest: trees=%d sample_size=%d max_depth=%d threshold=%.4f",
            self.num_trees,
            sample_size,
            max_depth,
            self.threshold,
        )
        return self

    def score_samples(self, data) -> np.ndarray:
        """
        Anomaly score per point; close to 1 for quickly isolated points.
        """
        self._require_fitted()
        matrix = as_matrix(data)
        if matrix.shape[1] != self.num_features:
            raise DataValidationError(
                f"Expected points with {self.num_features} features, got {matrix.shape[1]}"
            )
        return self._score_matrix(matrix)

    def anomaly_score(self, point: Sequence[float]) -> float:
        return float(self.score_samples([point])[0])

    def predict(self, data) -> np.ndarray:
        """
        Boolean mask of points scoring strictly above the fitted threshold.
        """
        return self.score_samples(data) > self.threshold

    def _require_fitted(self) -> None:
        if not self.trees:
            raise ModelNotTrainedError()

    def _score_matrix(self, matrix: np.ndarray) -> np.ndarray:
        normalizer = average_path_length(self.sample_size)
        scores = np.empty(matrix.shape[0], dtype=float)
        for i, point in enumerate(matrix):
            mean_path = sum(tree.path_length(point) for tree in self.trees) / len(self.trees)
            scores[i] = 2.0 ** (-mean_path / normalizer) if normalizer > 0 else 0.5
        return scores
