"""
Truncated SVD via the randomized algorithm.

``randomized_svd`` is a validated pass-through to scikit-learn's randomized
range finder; ``SVD`` wraps it in the fit/transform contract shared by the
other estimators.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np
from sklearn.utils.extmath import randomized_svd as _sk_randomized_svd

from ..exceptions import (
    DimensionError,
    FailureContext,
    GenericPrimitiveFailure,
    InvalidInputError,
    NotFittedError,
)
from ..utils.logging_config import get_logger
from .validation import validate_matrix

logger = get_logger(__name__)

Array2D = np.ndarray


def randomized_svd(
    matrix: Any,
    k: int,
    n_iter: int = 2,
    random_state: Optional[int] = 0,
) -> Tuple[Array2D, np.ndarray, Array2D]:
    """
    Compute a rank-k truncated SVD with the randomized algorithm.

    More power iterations improve the approximation at higher cost.

    Args:
        matrix: Input of shape (rows, cols)
        k: Number of singular triplets, 1 <= k <= min(rows, cols)
        n_iter: Power iterations (default: 2)
        random_state: Seed for the random projection (default: 0, so repeated
            calls on the same matrix agree); None draws a fresh projection

    Returns:
        Tuple of (U, S, Vt) with shapes (rows, k), (k,), (k, cols), where S is
        non-negative and descending and ``matrix ≈ U @ diag(S) @ Vt``

    Raises:
        InvalidInputError: If the matrix is malformed, or k / n_iter are out
            of range
        GenericPrimitiveFailure: If the backend itself fails
    """
    X = validate_matrix(matrix, check_finite=False)
    rows, cols = X.shape

    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise InvalidInputError(f"k must be an integer, got {k!r}")
    if k < 1 or k > min(rows, cols):
        raise InvalidInputError(
            f"k ({k}) must be between 1 and min(rows, cols) = {min(rows, cols)}"
        )
    if isinstance(n_iter, bool) or not isinstance(n_iter, (int, np.integer)) or n_iter < 1:
        raise InvalidInputError(f"n_iter must be a positive integer, got {n_iter!r}")

    try:
        U, S, Vt = _sk_randomized_svd(
            X, n_components=int(k), n_iter=int(n_iter), random_state=random_state
        )
    except (ValueError, np.linalg.LinAlgError) as e:
        logger.debug("randomized_svd failed on %dx%d matrix: %s", rows, cols, e)
        raise GenericPrimitiveFailure(
            FailureContext(n_samples=rows, n_features=cols, n_components=int(k)),
            remediation="Check the matrix for NaN or infinite values.",
            original_message=str(e),
        ) from e
    return U, S, Vt


class SVD:
    """
    Truncated SVD estimator.

    ``fit_transform`` returns the raw (U, S, Vt) triplet; ``transform``
    projects any data with matching feature count onto the right singular
    vectors, so projecting the training data reproduces ``U * S``.
    """

    def __init__(
        self,
        n_components: Optional[int] = None,
        n_iter: int = 2,
        random_state: Optional[int] = 0,
    ):
        self.n_components = n_components
        self.n_iter = n_iter
        self.random_state = random_state
        self._u: Optional[Array2D] = None
        self._s: Optional[np.ndarray] = None
        self._vt: Optional[Array2D] = None

    @property
    def is_fitted(self) -> bool:
        return self._vt is not None

    @property
    def n_features(self) -> Optional[int]:
        return None if self._vt is None else int(self._vt.shape[1])

    def fit_transform(self, data: Any) -> Tuple[Array2D, np.ndarray, Array2D]:
        X = validate_matrix(data, check_finite=False)
        k = self.n_components or min(X.shape)
        U, S, Vt = randomized_svd(X, k, n_iter=self.n_iter, random_state=self.random_state)
        self._u, self._s, self._vt = U, S, Vt
        return U.copy(), S.copy(), Vt.copy()

    def fit(self, data: Any) -> "SVD":
        self.fit_transform(data)
        return self

    def _require_fitted(self) -> None:
        if not self.is_fitted:
            raise NotFittedError("Model must be fitted first")

    @property
    def u(self) -> Array2D:
        """Left singular vectors of the training data."""
        self._require_fitted()
        return self._u.copy()

    @property
    def singular_values(self) -> np.ndarray:
        self._require_fitted()
        return self._s.copy()

    @property
    def vt(self) -> Array2D:
        """Right singular vectors, one per row."""
        self._require_fitted()
        return self._vt.copy()

    def transform(self, data: Any) -> Array2D:
        """Project data onto the fitted components: ``data @ Vt.T``."""
        self._require_fitted()
        X = validate_matrix(data, check_finite=False)
        if X.shape[1] != self._vt.shape[1]:
            raise DimensionError(
                f"New data has {X.shape[1]} features, but model was fitted "
                f"with {self._vt.shape[1]} features"
            )
        return X @ self._vt.T

    def inverse_transform(self, transformed: Any) -> Array2D:
        """Reconstruct from projected coordinates: ``transformed @ Vt``."""
        self._require_fitted()
        Z = validate_matrix(transformed, check_finite=False)
        if Z.shape[1] != self._vt.shape[0]:
            raise DimensionError(
                f"Transformed data has {Z.shape[1]} columns, expected "
                f"{self._vt.shape[0]}"
            )
        return Z @ self._vt


def svd(matrix: Any, k: int, n_iter: int = 2) -> Tuple[Array2D, np.ndarray, Array2D]:
    """Convenience wrapper: ``SVD(n_components=k, n_iter=n_iter).fit_transform``."""
    return SVD(n_components=k, n_iter=n_iter).fit_transform(matrix)
