"""
Centroid-based clustering and cluster-count heuristics.

``KMeans`` wraps scikit-learn; ``elbow_method`` / ``detect_optimal_k`` pick a
cluster count from the inertia curve.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple

import numpy as np
from sklearn.cluster import KMeans as _SKKMeans
from sklearn.metrics import silhouette_score as _sk_silhouette_score

from ..exceptions import DimensionError, InvalidArgumentError, NotFittedError
from ..utils.logging_config import get_logger
from .validation import validate_matrix

logger = get_logger(__name__)

Array2D = np.ndarray

DEFAULT_K_RANGE = range(2, 11)


class KMeans:
    """
    K-means clusterer.

    Args:
        k: Number of clusters
        max_iter: Maximum Lloyd iterations (default: 300)
        random_state: Seed for centroid initialization
    """

    def __init__(self, k: int, max_iter: int = 300, random_state: Optional[int] = None):
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k <= 0:
            raise InvalidArgumentError("k must be positive")
        self.k = int(k)
        self.max_iter = max_iter
        self.random_state = random_state
        self._model: Optional[_SKKMeans] = None
        self._centroids: Optional[Array2D] = None
        self._labels: Optional[np.ndarray] = None
        self._inertia: Optional[float] = None

    @property
    def is_fitted(self) -> bool:
        return self._model is not None

    def fit(self, data: Any) -> "KMeans":
        X = validate_matrix(data, check_finite=True)
        if self.k > X.shape[0]:
            raise DimensionError(f"k ({self.k}) cannot exceed number of samples ({X.shape[0]})")
        model = _SKKMeans(
            n_clusters=self.k,
            max_iter=self.max_iter,
            n_init=10,
            random_state=self.random_state,
        ).fit(X)
        self._model = model
        self._centroids = model.cluster_centers_.copy()
        self._labels = model.labels_.astype(np.int64)
        self._inertia = float(model.inertia_)
        return self

    def predict(self, data: Any) -> np.ndarray:
        """Assign each row to its nearest fitted centroid."""
        if not self.is_fitted:
            raise NotFittedError("Model must be fitted before predict")
        X = validate_matrix(data, check_finite=True)
        if X.shape[1] != self._centroids.shape[1]:
            raise DimensionError(
                f"New data has {X.shape[1]} features, but model was fitted "
                f"with {self._centroids.shape[1]} features"
            )
        return self._model.predict(X).astype(np.int64)

    def fit_predict(self, data: Any) -> np.ndarray:
        self.fit(data)
        return self._labels.copy()

    @property
    def labels(self) -> Optional[np.ndarray]:
        return None if self._labels is None else self._labels.copy()

    @property
    def cluster_centers(self) -> Optional[Array2D]:
        return None if self._centroids is None else self._centroids.copy()

    @property
    def inertia(self) -> Optional[float]:
        """Sum of squared distances of samples to their closest centroid."""
        return self._inertia


def elbow_method(
    data: Any,
    k_range: Iterable[int] = DEFAULT_K_RANGE,
    max_iter: int = 300,
    random_state: Optional[int] = None,
) -> Dict[int, float]:
    """
    Fit k-means for each k and record the inertia.

    Values of k larger than the sample count are skipped.

    Returns:
        Mapping of k to inertia
    """
    X = validate_matrix(data, check_finite=True)
    results: Dict[int, float] = {}
    for k in k_range:
        if k > X.shape[0]:
            logger.debug("elbow_method: skipping k=%d (only %d samples)", k, X.shape[0])
            continue
        results[int(k)] = KMeans(k, max_iter=max_iter, random_state=random_state).fit(X).inertia
    return results


def detect_optimal_k(elbow_results: Optional[Dict[int, float]], fallback_k: int = 3) -> int:
    """
    Pick k at the largest drop in inertia.

    Returns the k just after the steepest drop between consecutive values;
    ``fallback_k`` for empty input and the only key for single-entry input.
    """
    if not elbow_results:
        return fallback_k
    k_values = sorted(elbow_results)
    if len(k_values) == 1:
        return k_values[0]

    max_drop = 0.0
    optimal = k_values[0]
    for k1, k2 in zip(k_values, k_values[1:]):
        drop = elbow_results[k1] - elbow_results[k2]
        if drop > max_drop:
            max_drop = drop
            optimal = k2
    return optimal


def optimal_k(
    data: Any,
    k_range: Iterable[int] = DEFAULT_K_RANGE,
    max_iter: int = 300,
    random_state: Optional[int] = None,
) -> int:
    """Run the elbow method and return the detected k."""
    return detect_optimal_k(
        elbow_method(data, k_range=k_range, max_iter=max_iter, random_state=random_state)
    )


def kmeans(
    data: Any,
    k: Optional[int] = None,
    k_range: Iterable[int] = DEFAULT_K_RANGE,
    **kwargs,
) -> Tuple[int, np.ndarray]:
    """
    Cluster with k-means, detecting k when not given.

    Returns:
        Tuple of (k used, labels)
    """
    if k is None:
        k = optimal_k(data, k_range=k_range, random_state=kwargs.get("random_state"))
    labels = KMeans(k, **kwargs).fit_predict(data)
    return k, labels


def silhouette_score(data: Any, labels: Any) -> float:
    """
    Mean silhouette coefficient of a labelling.

    Returns 0.0 when there is a single cluster (or every point is its own
    cluster), where the score is undefined.
    """
    X = validate_matrix(data, check_finite=True)
    labels = np.asarray(labels)
    if labels.shape[0] != X.shape[0]:
        raise DimensionError(
            f"Got {labels.shape[0]} labels for {X.shape[0]} samples"
        )
    n_labels = np.unique(labels).size
    if n_labels < 2 or n_labels >= X.shape[0]:
        return 0.0
    return float(_sk_silhouette_score(X, labels, metric="euclidean"))
