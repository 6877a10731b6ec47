"""
UMAP manifold embedding with guard rails.

Wraps umap-learn so that small or awkward datasets fail early with typed
errors instead of deep inside the optimizer:

- input is validated (shape, numeric, finite, minimum sample count);
- ``n_neighbors`` is lowered automatically when the dataset is too small;
- backend failures are classified into ``PrimitiveFailure`` subclasses
  carrying the data shape and remediation hints (see ``failures.py``).

The fitted model lives in an immutable ``UMAPState`` that each fit replaces.
"""

from __future__ import annotations

import os
import pickle
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Union

import numpy as np

from ..config import Config, get_config
from ..exceptions import (
    DimensionError,
    FailureContext,
    InvalidArgumentError,
    NotFittedError,
    UnsupportedOperationError,
)
from ..utils.logging_config import get_logger, quiet_primitive_output
from .failures import classify_failure
from .validation import validate_matrix

logger = get_logger(__name__)

Array2D = np.ndarray

DEFAULT_N_NEIGHBORS = 15
# umap-learn trains for a number of epochs rather than gradient batches
EPOCHS_PER_BATCH = 20


@dataclass(frozen=True)
class UMAPParams:
    """Parameters handed to the backend for one fit."""

    n_components: int
    n_neighbors: int
    random_state: Optional[int]
    n_epochs: int
    negative_sample_rate: int
    min_dist: float
    verbose: bool = False


@dataclass(frozen=True)
class UMAPState:
    """
    Fitted embedding model.

    Attributes:
        model: Opaque fitted backend handle
        n_neighbors: Neighbor count actually used for the fit (None when
            the model was loaded from disk)
        n_samples_seen: Rows used for the fit (None when loaded)
    """

    model: Any
    n_neighbors: Optional[int]
    n_samples_seen: Optional[int]


def umap_learn_backend(params: UMAPParams) -> Any:
    """Default backend factory: a fresh ``umap.UMAP`` for the given params."""
    # umap pulls in numba; import on first use
    from umap import UMAP as _UMAP

    return _UMAP(
        n_components=params.n_components,
        n_neighbors=params.n_neighbors,
        min_dist=params.min_dist,
        n_epochs=params.n_epochs,
        negative_sample_rate=params.negative_sample_rate,
        random_state=params.random_state,
        verbose=params.verbose,
    )


BackendFactory = Callable[[UMAPParams], Any]


def effective_n_neighbors(requested: int, n_samples: int) -> int:
    """
    Neighbor count that the backend can accept for ``n_samples`` points.

    Returns ``requested`` unchanged when it is at most ``n_samples - 1``;
    otherwise picks ``min(max(min(15, n // 4), 2), max(n - 1, 2))``.
    """
    max_neighbors = max(n_samples - 1, 2)
    if requested <= n_samples - 1:
        return requested
    suggested = max(min(DEFAULT_N_NEIGHBORS, n_samples // 4), 2)
    return min(suggested, max_neighbors)


def _require_int(name: str, value: Any, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < minimum:
        raise InvalidArgumentError(
            f"{name} must be an integer >= {minimum}, got {value!r}"
        )
    return int(value)


class UMAP:
    """
    UMAP estimator with fit / transform / save / load.

    Args:
        n_components: Target dimensionality (default: 2)
        n_neighbors: Requested neighborhood size (default: 15); lowered
            per-fit for small datasets
        random_state: Seed passed to the backend. Reproducibility is
            best-effort; persist the model (``save``) or cache the output
            (``export_data``) when exact results matter.
        n_grad_batches: Optimization length; lower is faster but rougher
            (default: 10, i.e. 200 epochs)
        negative_sample_rate: Negative samples per edge; lower is faster but
            rougher (default: 8)
        min_dist: Minimum distance between embedded points (default: 0.1)
        config: Verbosity and thresholds; defaults to ``get_config()``
        backend: Factory building the backend model from ``UMAPParams``
    """

    def __init__(
        self,
        n_components: int = 2,
        n_neighbors: int = DEFAULT_N_NEIGHBORS,
        random_state: Optional[int] = None,
        n_grad_batches: int = 10,
        negative_sample_rate: int = 8,
        min_dist: float = 0.1,
        config: Optional[Config] = None,
        backend: Optional[BackendFactory] = None,
    ):
        self.n_components = _require_int("n_components", n_components, 1)
        self.n_neighbors = _require_int("n_neighbors", n_neighbors, 2)
        self.n_grad_batches = _require_int("n_grad_batches", n_grad_batches, 1)
        self.negative_sample_rate = _require_int("negative_sample_rate", negative_sample_rate, 1)
        if min_dist < 0:
            raise InvalidArgumentError(f"min_dist must be >= 0, got {min_dist}")
        self.min_dist = float(min_dist)
        self.random_state = random_state
        self.config = config or get_config()
        self._backend = backend or umap_learn_backend
        self._state: Optional[UMAPState] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_fitted(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> UMAPState:
        if self._state is None:
            raise NotFittedError("Model must be fitted first. Call fit or fit_transform.")
        return self._state

    @property
    def fitted_n_neighbors(self) -> Optional[int]:
        """Neighbor count used by the last fit, or None."""
        return None if self._state is None else self._state.n_neighbors

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def _validate(self, data: Any, check_min_samples: bool = True) -> Array2D:
        return validate_matrix(
            data,
            check_finite=True,
            min_samples=self.config.min_umap_samples if check_min_samples else None,
            warn_range=self.config.range_warning_threshold,
            name="UMAP",
        )

    def _params_for(self, n_samples: int) -> UMAPParams:
        n_neighbors = effective_n_neighbors(self.n_neighbors, n_samples)
        if n_neighbors != self.n_neighbors:
            log = logger.warning if self.config.verbose else logger.debug
            log(
                "UMAP: Adjusted n_neighbors from %d to %d for dataset with %d samples",
                self.n_neighbors,
                n_neighbors,
                n_samples,
            )
        return UMAPParams(
            n_components=self.n_components,
            n_neighbors=n_neighbors,
            random_state=self.random_state,
            n_epochs=self.n_grad_batches * EPOCHS_PER_BATCH,
            negative_sample_rate=self.negative_sample_rate,
            min_dist=self.min_dist,
            verbose=self.config.verbose,
        )

    def _train(self, data: Any) -> Array2D:
        """Build a fresh backend model, train it, swap in the new state."""
        if self.n_neighbors is None:
            raise UnsupportedOperationError(
                "This instance was loaded from disk and has no training parameters; "
                "construct a new UMAP to fit"
            )
        X = self._validate(data, check_min_samples=True)
        n_samples, n_features = X.shape
        params = self._params_for(n_samples)

        try:
            model = self._backend(params)
            with quiet_primitive_output(self.config.verbose):
                embedding = model.fit_transform(X)
        except Exception as e:
            context = FailureContext(
                n_samples=n_samples,
                n_features=n_features,
                n_neighbors=params.n_neighbors,
                n_components=params.n_components,
            )
            failure = classify_failure(e, context)
            logger.debug("UMAP fit failed (%s): %s", type(failure).__name__, e)
            raise failure from e

        self._state = UMAPState(
            model=model, n_neighbors=params.n_neighbors, n_samples_seen=n_samples
        )
        return np.array(embedding, dtype=np.float64, copy=True)

    def fit(self, data: Any) -> "UMAP":
        """
        Train the model; returns self for chaining.

        The backend has no train-only path, so the embedding it produces is
        discarded. Use ``fit_transform`` when you need it.
        """
        self._train(data)
        return self

    def fit_transform(self, data: Any) -> Array2D:
        """Train the model and return the embedding of the training data."""
        return self._train(data)

    def transform(self, data: Any) -> Array2D:
        """
        Embed new data with the fitted model.

        The minimum-sample rule does not apply here.
        """
        state = self.state
        X = self._validate(data, check_min_samples=False)
        expected = getattr(state.model, "_raw_data", None)
        if expected is not None and X.shape[1] != expected.shape[1]:
            raise DimensionError(
                f"New data has {X.shape[1]} features, but model was fitted "
                f"with {expected.shape[1]} features"
            )
        with quiet_primitive_output(self.config.verbose):
            embedding = state.model.transform(X)
        return np.array(embedding, dtype=np.float64, copy=True)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: Union[str, os.PathLike]) -> None:
        """Pickle the fitted backend model to ``path``."""
        state = self.state
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            pickle.dump(state.model, f)
        logger.info("Saved UMAP model to %s", path)

    @classmethod
    def load(
        cls, path: Union[str, os.PathLike], config: Optional[Config] = None
    ) -> "UMAP":
        """
        Load a model written by ``save``.

        Only the backend model is restored: ``n_components``,
        ``n_neighbors`` and ``random_state`` read as None on the result.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        with open(path, "rb") as f:
            model = pickle.load(f)

        instance = cls.__new__(cls)
        instance.n_components = None
        instance.n_neighbors = None
        instance.random_state = None
        instance.n_grad_batches = None
        instance.negative_sample_rate = None
        instance.min_dist = None
        instance.config = config or get_config()
        instance._backend = umap_learn_backend
        instance._state = UMAPState(model=model, n_neighbors=None, n_samples_seen=None)
        return instance


def umap(data: Any, n_components: int = 2, **kwargs) -> Array2D:
    """Convenience wrapper: ``UMAP(n_components, **kwargs).fit_transform(data)``."""
    return UMAP(n_components=n_components, **kwargs).fit_transform(data)
