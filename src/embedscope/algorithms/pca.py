"""
Principal Component Analysis on top of randomized SVD.

Centers the data, decomposes it once, and keeps the right singular vectors
as principal axes. Fitted results are held in an immutable ``PCAState``
snapshot that is replaced wholesale on every fit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from ..exceptions import DimensionError, InvalidInputError, NotFittedError
from ..utils.logging_config import get_logger
from .svd import randomized_svd
from .validation import validate_matrix

logger = get_logger(__name__)

Array2D = np.ndarray

PCA_SVD_ITERATIONS = 5


def _frozen(a: np.ndarray) -> np.ndarray:
    a = np.array(a, dtype=np.float64, copy=True)
    a.setflags(write=False)
    return a


@dataclass(frozen=True)
class PCAState:
    """
    Fitted PCA parameters.

    Attributes:
        mean: Per-feature mean of the training data, shape (n_features,)
        components: Principal axes (Vt rows), shape (k, n_features)
        singular_values: Singular values of the centered data, shape (k,)
        explained_variance: ``S**2 / (n_samples - 1)``, shape (k,)
        explained_variance_ratio: Share of total variance, shape (k,)
        n_samples_seen: Number of rows used for the fit
    """

    mean: np.ndarray
    components: np.ndarray
    singular_values: np.ndarray
    explained_variance: np.ndarray
    explained_variance_ratio: np.ndarray
    n_samples_seen: int

    @property
    def n_components(self) -> int:
        return int(self.components.shape[0])

    @property
    def n_features(self) -> int:
        return int(self.components.shape[1])


class PCA:
    """
    PCA estimator with fit / transform / inverse_transform.

    Example:
        pca = PCA(n_components=2)
        Z = pca.fit_transform(X)
        X_hat = pca.inverse_transform(Z)
    """

    def __init__(
        self,
        n_components: int = 2,
        n_iter: int = PCA_SVD_ITERATIONS,
        random_state: Optional[int] = 0,
    ):
        if isinstance(n_components, bool) or not isinstance(n_components, (int, np.integer)):
            raise InvalidInputError(f"n_components must be an integer, got {n_components!r}")
        if n_components < 1:
            raise InvalidInputError(f"n_components must be >= 1, got {n_components}")
        self.n_components = int(n_components)
        self.n_iter = n_iter
        self.random_state = random_state
        self._state: Optional[PCAState] = None

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def _validate(self, data: Any) -> Array2D:
        X = validate_matrix(data, check_finite=True)
        n_samples, n_features = X.shape
        if n_samples < self.n_components:
            raise DimensionError(
                f"n_components ({self.n_components}) cannot be larger than "
                f"n_samples ({n_samples})"
            )
        if n_features < self.n_components:
            raise DimensionError(
                f"n_components ({self.n_components}) cannot be larger than "
                f"n_features ({n_features})"
            )
        return X

    def _fit_state(self, data: Any) -> Array2D:
        """Run the decomposition once, swap in a new state, return U * S."""
        X = self._validate(data)
        n_samples = X.shape[0]

        mean = X.mean(axis=0)
        centered = X - mean
        U, S, Vt = randomized_svd(
            centered, self.n_components, n_iter=self.n_iter, random_state=self.random_state
        )

        # A single sample has no spread; avoid dividing by zero
        dof = max(n_samples - 1, 1)
        explained_variance = S**2 / dof
        total_variance = float(np.sum(centered**2)) / dof
        if total_variance > 0:
            explained_variance_ratio = explained_variance / total_variance
        else:
            explained_variance_ratio = np.zeros_like(explained_variance)

        self._state = PCAState(
            mean=_frozen(mean),
            components=_frozen(Vt),
            singular_values=_frozen(S),
            explained_variance=_frozen(explained_variance),
            explained_variance_ratio=_frozen(explained_variance_ratio),
            n_samples_seen=n_samples,
        )
        logger.debug(
            "PCA fitted: %d samples, %d features, %d components, %.4f variance retained",
            n_samples,
            X.shape[1],
            self.n_components,
            float(explained_variance_ratio.sum()),
        )
        return U * S

    def fit(self, data: Any) -> "PCA":
        """Fit the model; returns self for chaining."""
        self._fit_state(data)
        return self

    def fit_transform(self, data: Any) -> Array2D:
        """Fit the model and return the projected training data (``U * S``)."""
        return self._fit_state(data)

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    @property
    def is_fitted(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> PCAState:
        """The current fitted snapshot."""
        if self._state is None:
            raise NotFittedError("Model must be fitted first")
        return self._state

    def transform(self, data: Any) -> Array2D:
        """
        Project data onto the fitted principal axes.

        Uses the stored mean; the decomposition is not re-run.
        """
        if self._state is None:
            raise NotFittedError("Model must be fitted before transform")
        state = self._state
        X = validate_matrix(data, check_finite=True)
        if X.shape[1] != state.n_features:
            raise DimensionError(
                f"New data has {X.shape[1]} features, but model was fitted "
                f"with {state.n_features} features"
            )
        return (X - state.mean) @ state.components.T

    def inverse_transform(self, transformed: Any) -> Array2D:
        """
        Map projected coordinates back to the original feature space.

        Lossy unless every component of the data was kept.
        """
        if self._state is None:
            raise NotFittedError("Model must be fitted before inverse_transform")
        state = self._state
        Z = validate_matrix(transformed, check_finite=True)
        if Z.shape[1] != state.n_components:
            raise DimensionError(
                f"Transformed data has {Z.shape[1]} columns, expected "
                f"{state.n_components}"
            )
        return Z @ state.components + state.mean

    # ------------------------------------------------------------------
    # Fitted attributes
    # ------------------------------------------------------------------

    @property
    def mean(self) -> np.ndarray:
        return self.state.mean

    @property
    def components(self) -> np.ndarray:
        return self.state.components

    @property
    def singular_values(self) -> np.ndarray:
        return self.state.singular_values

    @property
    def explained_variance(self) -> np.ndarray:
        return self.state.explained_variance

    @property
    def explained_variance_ratio(self) -> np.ndarray:
        return self.state.explained_variance_ratio

    @property
    def cumulative_explained_variance_ratio(self) -> np.ndarray:
        return np.cumsum(self.state.explained_variance_ratio)


def pca(data: Any, n_components: int = 2) -> Array2D:
    """Convenience wrapper: ``PCA(n_components).fit_transform(data)``."""
    return PCA(n_components=n_components).fit_transform(data)


def reconstruction_error(original: Any, reconstructed: Any) -> float:
    """
    Mean squared reconstruction error per sample.

    Sums squared differences over features, then averages over samples.

    Raises:
        DimensionError: If the two datasets differ in shape
    """
    A = validate_matrix(original, check_finite=False)
    B = validate_matrix(reconstructed, check_finite=False)
    if A.shape != B.shape:
        raise DimensionError(f"Data sizes don't match: {A.shape} vs {B.shape}")
    return float(np.sum((A - B) ** 2) / A.shape[0])
