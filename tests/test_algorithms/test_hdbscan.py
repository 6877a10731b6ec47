"""
Tests for HDBSCAN clustering.
"""

import numpy as np
import pytest

from embedscope import hdbscan
from embedscope.algorithms.hdbscan import HDBSCAN, NOISE_LABEL, ClusteringResult
from embedscope.exceptions import (
    InvalidArgumentError,
    InvalidInputError,
    UnsupportedOperationError,
)


def test_three_blobs_with_noise(three_blobs_with_noise):
    """Test three blobs with uniform noise give three clusters."""
    clusterer = HDBSCAN(min_samples=5, min_cluster_size=10)
    labels = clusterer.fit_predict(three_blobs_with_noise)

    assert labels.shape == (105,)
    assert clusterer.n_clusters == 3
    assert 0.0 < clusterer.noise_ratio < 0.5
    assert clusterer.n_noise_points == len(clusterer.noise_indices)


def test_blob_members_share_labels(three_blobs_with_noise):
    """Test most members of each blob share a non-noise label."""
    clusterer = HDBSCAN(min_samples=5, min_cluster_size=10).fit(three_blobs_with_noise)
    labels = clusterer.labels
    for start in (0, 30, 60):
        blob = labels[start : start + 30]
        values, counts = np.unique(blob, return_counts=True)
        majority = values[np.argmax(counts)]
        assert majority != NOISE_LABEL
        assert counts.max() >= 25


def test_result_arrays(three_blobs_with_noise):
    """Test result arrays have one entry per sample."""
    clusterer = HDBSCAN(min_samples=5, min_cluster_size=10).fit(three_blobs_with_noise)
    result = clusterer.result
    assert isinstance(result, ClusteringResult)
    assert result.n_samples == 105
    assert clusterer.probabilities.shape == (105,)
    assert np.all((clusterer.probabilities >= 0) & (clusterer.probabilities <= 1))
    assert clusterer.outlier_scores.shape == (105,)
    assert set(clusterer.cluster_persistence) == {0, 1, 2}


def test_cluster_indices_partition_non_noise(three_blobs_with_noise):
    """Test cluster_indices covers every non-noise point once."""
    clusterer = HDBSCAN(min_samples=5, min_cluster_size=10).fit(three_blobs_with_noise)
    grouped = clusterer.cluster_indices
    all_indices = sorted(i for members in grouped.values() for i in members)
    expected = sorted(set(range(105)) - set(clusterer.noise_indices))
    assert all_indices == expected
    assert NOISE_LABEL not in grouped


def test_summary(three_blobs_with_noise):
    """Test the summary dict."""
    clusterer = HDBSCAN(min_samples=5, min_cluster_size=10).fit(three_blobs_with_noise)
    summary = clusterer.summary()
    assert summary["n_clusters"] == 3
    assert sum(summary["cluster_sizes"].values()) + summary["n_noise_points"] == 105


@pytest.mark.parametrize("metric", ["l2", "manhattan", "l1", "cosine"])
def test_metrics_accepted(metric):
    """Test each supported metric fits."""
    rng = np.random.default_rng(1)
    # rays in different directions so cosine also separates them
    X = np.vstack(
        [
            rng.uniform(1, 5, (25, 1)) * [1.0, 0.05] + rng.normal(0, 0.01, (25, 2)),
            rng.uniform(1, 5, (25, 1)) * [0.05, 1.0] + rng.normal(0, 0.01, (25, 2)),
        ]
    )
    labels = HDBSCAN(min_samples=3, min_cluster_size=5, metric=metric).fit_predict(X)
    assert labels.shape == (50,)


def test_unfitted_accessors():
    """Test accessors before fit return empty values."""
    clusterer = HDBSCAN()
    assert not clusterer.is_fitted
    assert clusterer.labels is None
    assert clusterer.probabilities is None
    assert clusterer.cluster_persistence is None
    assert clusterer.n_clusters == 0
    assert clusterer.noise_ratio == 0.0
    assert clusterer.noise_indices == []
    assert clusterer.cluster_indices == {}
    assert clusterer.summary() == {}


def test_predict_not_supported(three_blobs_with_noise):
    """Test predict raises UnsupportedOperationError."""
    clusterer = HDBSCAN().fit(three_blobs_with_noise)
    with pytest.raises(UnsupportedOperationError):
        clusterer.predict(three_blobs_with_noise[:3])
    with pytest.raises(NotImplementedError):
        clusterer.predict(three_blobs_with_noise[:3])


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_samples": 0},
        {"min_cluster_size": 0},
        {"min_samples": 2.5},
        {"metric": "chebyshev"},
    ],
)
def test_invalid_parameters(kwargs):
    """Test out-of-range constructor arguments."""
    with pytest.raises(InvalidArgumentError):
        HDBSCAN(**kwargs)


def test_rejects_non_finite():
    """Test Infinity in the input is rejected."""
    with pytest.raises(InvalidInputError):
        HDBSCAN().fit([[0.0, 1.0], [float("inf"), 2.0]])


def test_convenience_function(three_blobs_with_noise):
    """Test the one-call hdbscan helper."""
    result = hdbscan(three_blobs_with_noise, min_samples=5, min_cluster_size=10)
    assert result["n_clusters"] == 3
    assert result["labels"].shape == (105,)
    assert 0.0 < result["noise_ratio"] < 0.5
