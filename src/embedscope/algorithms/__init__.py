"""
Algorithm Core Library - dimensionality reduction and clustering.

Every estimator follows the same contract: ``fit`` returns the estimator,
``fit_transform`` / ``fit_predict`` return results, and fitted state is
replaced wholesale on re-fit.

The one-call helpers (``pca``, ``umap``, ``hdbscan``, ...) share their
module's name, so they are exported from the top-level package instead.
"""

from .validation import validate_matrix, data_statistics
from .svd import randomized_svd, SVD
from .pca import PCA, PCAState, reconstruction_error
from .failures import FAILURE_RULES, FailureRule, classify_failure
from .umap import UMAP, UMAPParams, UMAPState, effective_n_neighbors
from .hdbscan import HDBSCAN, ClusteringResult, NOISE_LABEL
from .kmeans import (
    KMeans,
    elbow_method,
    detect_optimal_k,
    optimal_k,
    silhouette_score,
)
from .preprocessing import normalize
from .hnsw import HNSW

__all__ = [
    # Validation
    "validate_matrix",
    "data_statistics",
    # Dimensionality reduction
    "randomized_svd",
    "SVD",
    "PCA",
    "PCAState",
    "reconstruction_error",
    "UMAP",
    "UMAPParams",
    "UMAPState",
    "effective_n_neighbors",
    # Failure classification
    "FAILURE_RULES",
    "FailureRule",
    "classify_failure",
    # Clustering
    "HDBSCAN",
    "ClusteringResult",
    "NOISE_LABEL",
    "KMeans",
    "elbow_method",
    "detect_optimal_k",
    "optimal_k",
    "silhouette_score",
    # Preprocessing
    "normalize",
    # Nearest-neighbour search
    "HNSW",
]
