"""
embedscope - Core Package

Unsupervised-learning primitives behind a uniform fit/transform contract.

This package provides:
- Dimensionality reduction: randomized SVD, PCA, UMAP
- Clustering: HDBSCAN, k-means with elbow-method k detection
- Approximate nearest-neighbour search over embeddings
- Typed errors that explain why a backend failed and what to try next
"""

__version__ = "0.1.0"

from .config import Config, configure, get_config
from .exceptions import (
    EmbedscopeError,
    DataError,
    InvalidInputError,
    InvalidArgumentError,
    DimensionError,
    InsufficientDataError,
    NotFittedError,
    UnsupportedOperationError,
    FailureContext,
    PrimitiveFailure,
    IsolatedPointError,
    ConvergenceError,
    InvalidParameterError,
    GenericPrimitiveFailure,
)
from .algorithms import SVD, PCA, UMAP, HDBSCAN, KMeans, HNSW, randomized_svd, normalize
from .algorithms.svd import svd
from .algorithms.pca import pca
from .algorithms.umap import umap
from .algorithms.hdbscan import hdbscan
from .algorithms.kmeans import kmeans
from .services import export_data, import_data

# Explicitly import subpackages to ensure they're discoverable
from . import algorithms
from . import services
from . import utils

__all__ = [
    "Config",
    "configure",
    "get_config",
    "EmbedscopeError",
    "DataError",
    "InvalidInputError",
    "InvalidArgumentError",
    "DimensionError",
    "InsufficientDataError",
    "NotFittedError",
    "UnsupportedOperationError",
    "FailureContext",
    "PrimitiveFailure",
    "IsolatedPointError",
    "ConvergenceError",
    "InvalidParameterError",
    "GenericPrimitiveFailure",
    "SVD",
    "PCA",
    "UMAP",
    "HDBSCAN",
    "KMeans",
    "HNSW",
    "randomized_svd",
    "svd",
    "pca",
    "umap",
    "hdbscan",
    "kmeans",
    "normalize",
    "export_data",
    "import_data",
    "algorithms",
    "services",
    "utils",
]
