"""
Unit tests for the isolation forest.
"""

import math

import numpy as np
import pytest

from seqsentinel.anomaly.isolation_forest import (
    IsolationForest,
    IsolationLeaf,
    IsolationSplit,
    as_matrix,
    average_path_length,
)
from seqsentinel.core.exceptions import DataValidationError, ModelNotTrainedError


def _depth(node) -> int:
    if isinstance(node, IsolationLeaf):
        return 0
    return 1 + max(_depth(node.left), _depth(node.right))


def _leaf_sizes(node):
    if isinstance(node, IsolationLeaf):
        return [node.size]
    return _leaf_sizes(node.left) + _leaf_sizes(node.right)


class TestAveragePathLength:
    """Closed-form c(n) correction."""

    def test_small_sizes(self):
        assert average_path_length(0) == 0.0
        assert average_path_length(1) == 0.0
        assert average_path_length(2) == pytest.approx(2 * 0.5772156649 - 1.0)

    def test_full_sample(self):
        assert average_path_length(256) == pytest.approx(10.2448, abs=1e-3)


class TestFitAndScore:
    """Training, scoring and thresholding."""

    def test_outlier_scores_highest(self, clustered_points):
        forest = IsolationForest(contamination=0.1, random_state=0).fit(clustered_points)
        scores = forest.score_samples(clustered_points)

        assert int(np.argmax(scores)) == 7
        assert scores[7] > 0.6
        assert forest.predict(clustered_points)[7]

    def test_contamination_bounds_flag_count(self, clustered_points):
        forest = IsolationForest(contamination=0.1, random_state=3).fit(clustered_points)

        # threshold is the score at rank floor(0.1 * 21) = 2; flags are strictly above it
        assert forest.predict(clustered_points).sum() <= 2

    def test_scores_in_unit_interval(self):
        rng = np.random.default_rng(5)
        points = rng.normal(size=(120, 3))
        forest = IsolationForest(num_trees=25, random_state=1).fit(points)

        scores = forest.score_samples(points)
        assert np.all(scores > 0.0)
        assert np.all(scores < 1.0)
        assert forest.anomaly_score(points[0]) == pytest.approx(scores[0])

    def test_constant_data_flags_nothing(self):
        points = [[1.0, 1.0]] * 15
        forest = IsolationForest(num_trees=10, random_state=0).fit(points)

        assert all(isinstance(tree.root, IsolationLeaf) for tree in forest.trees)
        assert not forest.predict(points).any()

    def test_seeded_forests_are_reproducible(self, clustered_points):
        first = IsolationForest(num_trees=30, random_state=11).fit(clustered_points)
        second = IsolationForest(num_trees=30, random_state=11).fit(clustered_points)

        assert np.array_equal(
            first.score_samples(clustered_points), second.score_samples(clustered_points)
        )
        assert first.threshold == second.threshold

    def test_parallel_build_matches_sequential(self, clustered_points):
        sequential = IsolationForest(num_trees=40, random_state=9, n_jobs=1).fit(clustered_points)
        parallel = IsolationForest(num_trees=40, random_state=9, n_jobs=4).fit(clustered_points)

        assert np.array_equal(
            sequential.score_samples(clustered_points), parallel.score_samples(clustered_points)
        )

    def test_refit_replaces_trees(self, clustered_points):
        forest = IsolationForest(num_trees=5, random_state=2).fit(clustered_points)
        first_trees = list(forest.trees)

        forest.fit([[float(i), float(i % 3)] for i in range(12)])
        assert len(forest.trees) == 5
        assert all(a is not b for a, b in zip(first_trees, forest.trees))
        assert forest.sample_size == 12


class TestTreeStructure:
    """Depth bound and sample accounting."""

    def test_sample_size_capped(self):
        rng = np.random.default_rng(0)
        forest = IsolationForest(num_trees=3, random_state=0).fit(rng.normal(size=(300, 2)))
        assert forest.sample_size == 256

        small = IsolationForest(num_trees=3, random_state=0).fit(rng.normal(size=(50, 2)))
        assert small.sample_size == 50

    def test_depth_bounded_by_log2_sample_size(self):
        rng = np.random.default_rng(7)
        points = rng.normal(size=(100, 2))
        forest = IsolationForest(num_trees=20, random_state=4).fit(points)

        max_depth = math.ceil(math.log2(forest.sample_size))
        for tree in forest.trees:
            assert _depth(tree.root) <= max_depth
            assert tree.max_depth == max_depth

    def test_leaves_partition_the_sample(self):
        rng = np.random.default_rng(8)
        points = rng.normal(size=(64, 3))
        forest = IsolationForest(num_trees=10, random_state=5).fit(points)

        for tree in forest.trees:
            assert sum(_leaf_sizes(tree.root)) == forest.sample_size

    def test_internal_nodes_split_inside_feature_range(self):
        points = [[float(i), float(i)] for i in range(16)]
        forest = IsolationForest(num_trees=5, random_state=6).fit(points)

        root = forest.trees[0].root
        assert isinstance(root, IsolationSplit)
        assert root.feature_index in (0, 1)
        assert 0.0 <= root.split_value <= 15.0


class TestValidation:
    """Error handling for misuse."""

    def test_unfitted_forest_raises(self):
        forest = IsolationForest()
        assert not forest.is_fitted

        with pytest.raises(ModelNotTrainedError):
            forest.predict([[0.0, 0.0]])
        with pytest.raises(ModelNotTrainedError):
            forest.score_samples([[0.0, 0.0]])

    def test_invalid_contamination(self):
        with pytest.raises(DataValidationError):
            IsolationForest(contamination=0.0)
        with pytest.raises(DataValidationError):
            IsolationForest(contamination=1.0)

    def test_feature_count_mismatch(self, clustered_points):
        forest = IsolationForest(num_trees=5, random_state=0).fit(clustered_points)

        with pytest.raises(DataValidationError):
            forest.score_samples([[1.0, 2.0, 3.0]])

    def test_as_matrix_rejects_bad_rows(self):
        with pytest.raises(DataValidationError):
            as_matrix([[1.0, 2.0], [3.0]])
        with pytest.raises(DataValidationError):
            as_matrix([1.0, 2.0, 3.0])
        with pytest.raises(DataValidationError):
            as_matrix([[1.0, float("nan")]])
        with pytest.raises(DataValidationError):
            as_matrix([[], []])
