"""
Density-based clustering (HDBSCAN).

A thin layer over the ``hdbscan`` library that exposes results as a
``ClusteringResult`` plus a few derived accessors. Points that belong to no
cluster carry the label ``NOISE_LABEL``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from ..exceptions import InvalidArgumentError, UnsupportedOperationError
from ..utils.logging_config import get_logger
from .validation import validate_matrix

logger = get_logger(__name__)

NOISE_LABEL = -1

# Accepted metric names -> names understood by the hdbscan library
METRIC_ALIASES = {
    "euclidean": "euclidean",
    "l2": "euclidean",
    "manhattan": "manhattan",
    "l1": "manhattan",
    "cosine": "cosine",
}


@dataclass(frozen=True)
class ClusteringResult:
    """
    Output of one HDBSCAN fit.

    Attributes:
        labels: Cluster id per sample; ``NOISE_LABEL`` for noise
        probabilities: Membership strength per sample in [0, 1]
        outlier_scores: GLOSH outlier score per sample
        cluster_persistence: Stability score per discovered cluster id
    """

    labels: np.ndarray
    probabilities: np.ndarray
    outlier_scores: np.ndarray
    cluster_persistence: Dict[int, float] = field(default_factory=dict)

    @property
    def n_samples(self) -> int:
        return int(self.labels.shape[0])


class HDBSCAN:
    """
    HDBSCAN clusterer.

    Args:
        min_samples: Neighborhood size used to define core points (default: 5)
        min_cluster_size: Smallest group reported as a cluster (default: 5)
        metric: One of euclidean/l2, manhattan/l1, cosine
    """

    def __init__(self, min_samples: int = 5, min_cluster_size: int = 5, metric: str = "euclidean"):
        if isinstance(min_samples, bool) or not isinstance(min_samples, (int, np.integer)) or min_samples <= 0:
            raise InvalidArgumentError("min_samples must be positive")
        if (
            isinstance(min_cluster_size, bool)
            or not isinstance(min_cluster_size, (int, np.integer))
            or min_cluster_size <= 0
        ):
            raise InvalidArgumentError("min_cluster_size must be positive")
        if metric not in METRIC_ALIASES:
            raise InvalidArgumentError(
                f"metric must be one of: {', '.join(METRIC_ALIASES)}"
            )
        self.min_samples = int(min_samples)
        self.min_cluster_size = int(min_cluster_size)
        self.metric = metric
        self._result: Optional[ClusteringResult] = None

    def _build_backend(self):
        import hdbscan

        backend_metric = METRIC_ALIASES[self.metric]
        kwargs = {
            "min_samples": self.min_samples,
            # hdbscan rejects clusters smaller than 2
            "min_cluster_size": max(self.min_cluster_size, 2),
            "metric": backend_metric,
        }
        if backend_metric == "cosine":
            # cosine has no tree index; the generic algorithm handles it
            kwargs["algorithm"] = "generic"
        return hdbscan.HDBSCAN(**kwargs)

    def fit(self, data: Any) -> "HDBSCAN":
        """Cluster the data; returns self for chaining."""
        X = validate_matrix(data, check_finite=True)
        clusterer = self._build_backend()
        clusterer.fit(X)

        labels = np.asarray(clusterer.labels_, dtype=np.int64)
        persistence = np.asarray(getattr(clusterer, "cluster_persistence_", []), dtype=np.float64)
        cluster_ids = sorted(int(l) for l in np.unique(labels) if l != NOISE_LABEL)
        self._result = ClusteringResult(
            labels=labels,
            probabilities=np.asarray(clusterer.probabilities_, dtype=np.float64),
            outlier_scores=np.asarray(clusterer.outlier_scores_, dtype=np.float64),
            cluster_persistence={
                cid: float(persistence[cid]) for cid in cluster_ids if cid < persistence.size
            },
        )
        logger.debug(
            "HDBSCAN found %d clusters (%d noise points) in %d samples",
            len(cluster_ids),
            int(np.sum(labels == NOISE_LABEL)),
            X.shape[0],
        )
        return self

    def fit_predict(self, data: Any) -> np.ndarray:
        """Cluster the data and return the labels (``NOISE_LABEL`` for noise)."""
        self.fit(data)
        return self._result.labels.copy()

    def predict(self, data: Any) -> np.ndarray:
        raise UnsupportedOperationError(
            "HDBSCAN does not support prediction on new data. "
            "Use approximate membership estimation instead."
        )

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    @property
    def is_fitted(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> Optional[ClusteringResult]:
        return self._result

    @property
    def labels(self) -> Optional[np.ndarray]:
        return None if self._result is None else self._result.labels.copy()

    @property
    def probabilities(self) -> Optional[np.ndarray]:
        return None if self._result is None else self._result.probabilities.copy()

    @property
    def outlier_scores(self) -> Optional[np.ndarray]:
        return None if self._result is None else self._result.outlier_scores.copy()

    @property
    def cluster_persistence(self) -> Optional[Dict[int, float]]:
        return None if self._result is None else dict(self._result.cluster_persistence)

    @property
    def n_clusters(self) -> int:
        """Number of distinct non-noise labels."""
        if self._result is None:
            return 0
        labels = self._result.labels
        return int(np.unique(labels[labels != NOISE_LABEL]).size)

    @property
    def n_noise_points(self) -> int:
        if self._result is None:
            return 0
        return int(np.sum(self._result.labels == NOISE_LABEL))

    @property
    def noise_ratio(self) -> float:
        """Fraction of samples labelled as noise."""
        if self._result is None or self._result.n_samples == 0:
            return 0.0
        return self.n_noise_points / self._result.n_samples

    @property
    def noise_indices(self) -> List[int]:
        if self._result is None:
            return []
        return np.flatnonzero(self._result.labels == NOISE_LABEL).tolist()

    @property
    def cluster_indices(self) -> Dict[int, List[int]]:
        """Sample indices grouped by cluster label, noise excluded."""
        if self._result is None:
            return {}
        groups: Dict[int, List[int]] = {}
        for idx, label in enumerate(self._result.labels.tolist()):
            if label == NOISE_LABEL:
                continue
            groups.setdefault(label, []).append(idx)
        return groups

    def summary(self) -> Dict[str, Any]:
        if self._result is None:
            return {}
        return {
            "n_clusters": self.n_clusters,
            "n_noise_points": self.n_noise_points,
            "noise_ratio": self.noise_ratio,
            "cluster_sizes": {k: len(v) for k, v in self.cluster_indices.items()},
            "cluster_persistence": dict(self._result.cluster_persistence),
        }


def hdbscan(
    data: Any, min_samples: int = 5, min_cluster_size: int = 5, metric: str = "euclidean"
) -> Dict[str, Any]:
    """Run HDBSCAN once and return the results as a plain dict."""
    clusterer = HDBSCAN(min_samples=min_samples, min_cluster_size=min_cluster_size, metric=metric)
    clusterer.fit(data)
    return {
        "labels": clusterer.labels,
        "probabilities": clusterer.probabilities,
        "outlier_scores": clusterer.outlier_scores,
        "n_clusters": clusterer.n_clusters,
        "noise_ratio": clusterer.noise_ratio,
        "cluster_persistence": clusterer.cluster_persistence or {},
    }
