"""
Tests for feature scaling.
"""

import numpy as np
import pytest

from embedscope.algorithms.preprocessing import normalize
from embedscope.exceptions import InvalidArgumentError, InvalidInputError


@pytest.fixture
def wide_range_data():
    """Three columns: small, large and constant."""
    return np.array([[1.0, 1000.0, 5.0], [2.0, 3000.0, 5.0], [3.0, 2000.0, 5.0]])


def test_standard(wide_range_data):
    """Test z-score scaling."""
    X = normalize(wide_range_data, method="standard")
    np.testing.assert_allclose(X.mean(axis=0), 0.0, atol=1e-12)
    np.testing.assert_allclose(X.std(axis=0)[:2], 1.0)
    # constant column is centered but not scaled
    np.testing.assert_array_equal(X[:, 2], 0.0)


def test_minmax(wide_range_data):
    """Test min-max scaling to [0, 1]."""
    X = normalize(wide_range_data, method="minmax")
    np.testing.assert_allclose(X[:, 0], [0.0, 0.5, 1.0])
    np.testing.assert_allclose(X[:, 1], [0.0, 1.0, 0.5])
    np.testing.assert_array_equal(X[:, 2], 0.0)


def test_l2():
    """Test row-wise unit norm, leaving zero rows alone."""
    X = normalize([[3.0, 4.0], [0.0, 0.0]], method="l2")
    np.testing.assert_allclose(X, [[0.6, 0.8], [0.0, 0.0]])


def test_default_is_standard(wide_range_data):
    """Test the default method."""
    np.testing.assert_array_equal(normalize(wide_range_data), normalize(wide_range_data, "standard"))


def test_input_not_modified(wide_range_data):
    """Test the caller's array is left untouched."""
    original = wide_range_data.copy()
    normalize(wide_range_data)
    np.testing.assert_array_equal(wide_range_data, original)


def test_unknown_method():
    """Test an unknown method name raises InvalidArgumentError."""
    with pytest.raises(InvalidArgumentError, match="Unknown normalization method"):
        normalize([[1.0]], method="robust")


def test_rejects_nan():
    """Test NaN input is rejected."""
    with pytest.raises(InvalidInputError):
        normalize([[1.0, float("nan")]])
