"""
Feature scaling helpers.

Normalizing before UMAP is the usual fix for convergence failures on data
with very different feature scales.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from ..exceptions import InvalidArgumentError
from .validation import validate_matrix

Array2D = np.ndarray

NORMALIZATION_METHODS = ("standard", "minmax", "l2")


def normalize(data: Any, method: str = "standard") -> Array2D:
    """
    Scale a dataset.

    Methods:
    - "standard": zero mean, unit (population) standard deviation per column
    - "minmax": each column mapped to [0, 1]
    - "l2": each row scaled to unit Euclidean norm

    Constant columns (or all-zero rows for "l2") are left unscaled.

    Raises:
        InvalidArgumentError: For an unknown method
    """
    if method not in NORMALIZATION_METHODS:
        raise InvalidArgumentError(
            f"Unknown normalization method: {method}. "
            f"Expected one of {', '.join(NORMALIZATION_METHODS)}"
        )
    X = validate_matrix(data, check_finite=True)

    if method == "standard":
        std = X.std(axis=0)
        std[std == 0] = 1.0
        return (X - X.mean(axis=0)) / std
    if method == "minmax":
        mins = X.min(axis=0)
        ranges = X.max(axis=0) - mins
        ranges[ranges == 0] = 1.0
        return (X - mins) / ranges

    norms = np.linalg.norm(X, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return X / norms
