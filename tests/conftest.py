"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides fixtures
available to all test modules.
"""

import numpy as np
import pytest

from embedscope.config import Config


def make_blobs(centers, n_per_blob, spread=0.1, seed=0):
    """Gaussian blobs around the given centers, stacked in center order."""
    rng = np.random.default_rng(seed)
    centers = np.asarray(centers, dtype=np.float64)
    blobs = [c + spread * rng.standard_normal((n_per_blob, centers.shape[1])) for c in centers]
    return np.vstack(blobs)


@pytest.fixture
def quiet_config():
    """A Config with verbose output off, independent of the environment."""
    return Config(verbose=False)


@pytest.fixture
def verbose_config():
    """A Config with verbose output on."""
    return Config(verbose=True)


@pytest.fixture
def three_blobs_with_noise():
    """
    Three dense 2-D blobs of 30 points each plus 15 scattered outliers.

    The blobs sit far apart inside a large box; outliers are spread
    uniformly over the box, away from the blob centers.
    """
    rng = np.random.default_rng(7)
    blobs = make_blobs([[0.0, 0.0], [20.0, 20.0], [40.0, 0.0]], 30, spread=0.3, seed=7)
    outliers = []
    centers = np.array([[0.0, 0.0], [20.0, 20.0], [40.0, 0.0]])
    while len(outliers) < 15:
        candidate = rng.uniform([-10.0, -10.0], [50.0, 30.0])
        if np.min(np.linalg.norm(centers - candidate, axis=1)) > 6.0:
            outliers.append(candidate)
    return np.vstack([blobs, np.array(outliers)])


@pytest.fixture
def separated_clusters_10():
    """Ten points in two tight, well-separated 5-D clusters."""
    return make_blobs([[0.0] * 5, [10.0] * 5], 5, spread=0.05, seed=3)


@pytest.fixture
def stub_backend():
    """
    Fixture factory for a fake UMAP backend.

    Records the params of every model it builds. A model either returns a
    deterministic embedding or raises ``error`` from fit_transform.

    Usage:
        factory = stub_backend(error=RuntimeError("isolated point"))
        UMAP(backend=factory)
    """

    class StubModel:
        def __init__(self, params, error=None):
            self.params = params
            self.error = error
            self.fit_calls = 0

        def fit_transform(self, X):
            self.fit_calls += 1
            if self.error is not None:
                raise self.error
            self.n_features = X.shape[1]
            return X[:, : self.params.n_components] * 2.0

        def transform(self, X):
            return X[:, : self.params.n_components] * 2.0

    class StubFactory:
        def __init__(self, error=None):
            self.error = error
            self.built = []

        def __call__(self, params):
            model = StubModel(params, self.error)
            self.built.append(model)
            return model

    return StubFactory
