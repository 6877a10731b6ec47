"""
Input validation shared by every estimator.

All checks scan in row-major order and report the first offending
position, so error messages point at a concrete ``[row, column]``.
"""

from __future__ import annotations

import numbers
from typing import Any, Dict, Optional

import numpy as np

from ..exceptions import InsufficientDataError, InvalidInputError
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

Array2D = np.ndarray


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _rows_to_matrix(data: Any) -> Array2D:
    """Structural and type checks for list-of-rows input, then conversion."""
    try:
        n_rows = len(data)
    except TypeError:
        raise InvalidInputError("Input must be a 2D array (sequence of rows)") from None
    if n_rows == 0:
        raise InvalidInputError("Input cannot be empty")

    first = data[0]
    if isinstance(first, (str, bytes)) or not hasattr(first, "__len__"):
        raise InvalidInputError("Input must be a 2D array (sequence of rows)")
    row_length = len(first)
    if row_length == 0:
        raise InvalidInputError("Rows cannot be empty")

    X = np.empty((n_rows, row_length), dtype=np.float64)
    for i, row in enumerate(data):
        if isinstance(row, (str, bytes)) or not hasattr(row, "__len__"):
            raise InvalidInputError(f"Row {i} is not a sequence")
        if len(row) != row_length:
            raise InvalidInputError(
                f"All rows must have the same length "
                f"(row {i} has {len(row)} elements, expected {row_length})"
            )
        for j, value in enumerate(row):
            if not _is_number(value):
                raise InvalidInputError(f"Element at position [{i}, {j}] is not numeric")
            try:
                X[i, j] = float(value)
            except OverflowError:
                raise InvalidInputError(
                    f"Element at position [{i}, {j}] is too large to represent as a float"
                ) from None
    return X


def _first_non_finite(X: Array2D) -> Optional[tuple]:
    bad = np.argwhere(~np.isfinite(X))
    if bad.size == 0:
        return None
    # argwhere returns indices in row-major (C) order
    return int(bad[0][0]), int(bad[0][1])


def as_matrix(data: Any) -> Array2D:
    """
    Convert input to a float64 matrix after structural checks.

    Accepts numpy arrays or nested sequences. Raises ``InvalidInputError``
    for empty, ragged, or non-numeric input. Non-finite values are kept.
    """
    if isinstance(data, np.ndarray):
        if data.ndim != 2:
            raise InvalidInputError(
                f"Input must be a 2D array, got array with shape {data.shape}"
            )
        if data.shape[0] == 0:
            raise InvalidInputError("Input cannot be empty")
        if data.shape[1] == 0:
            raise InvalidInputError("Rows cannot be empty")
        if data.dtype == np.bool_ or not (
            np.issubdtype(data.dtype, np.integer) or np.issubdtype(data.dtype, np.floating)
        ):
            if data.dtype == object:
                return _rows_to_matrix(data.tolist())
            else:
                raise InvalidInputError(f"Input dtype {data.dtype} is not numeric")
        return np.array(data, dtype=np.float64)

    return _rows_to_matrix(data)


def validate_matrix(
    data: Any,
    *,
    check_finite: bool = True,
    min_samples: Optional[int] = None,
    warn_range: Optional[float] = None,
    name: str = "Input",
) -> Array2D:
    """
    Validate a dataset and return it as a float64 matrix (a fresh copy).

    Args:
        data: 2D array-like of shape (n_samples, n_features)
        check_finite: Reject NaN and infinite entries
        min_samples: If set, raise ``InsufficientDataError`` when there are
            fewer rows than this
        warn_range: If set, log a warning when max - min over all entries
            exceeds this value
        name: Label used in the insufficient-data message

    Returns:
        Validated matrix

    Raises:
        InvalidInputError: If the data is empty, ragged, non-numeric, or
            (with check_finite) contains NaN/Infinity
        InsufficientDataError: If min_samples is set and not met
    """
    X = as_matrix(data)

    if check_finite:
        pos = _first_non_finite(X)
        if pos is not None:
            raise InvalidInputError(
                f"Element at position [{pos[0]}, {pos[1]}] is NaN or Infinite"
            )

    if min_samples is not None and X.shape[0] < min_samples:
        raise InsufficientDataError(
            f"{name} requires at least {min_samples} data points, "
            f"but only {X.shape[0]} provided.\n\n"
            "For small datasets, consider:\n"
            "1. Using PCA instead: PCA(n_components=2)\n"
            "2. Collecting more data points\n"
            "3. Using simpler visualization methods"
        )

    if warn_range is not None:
        finite = X[np.isfinite(X)]
        if finite.size:
            data_range = float(finite.max() - finite.min())
            if data_range > warn_range:
                logger.warning(
                    "Large data range detected (%.2f). Consider normalizing your "
                    "data to prevent numerical instability.",
                    data_range,
                )
    return X


def data_statistics(data: Any) -> Dict[str, float]:
    """
    Summary statistics used for warnings and error context.

    Returns a dict with n_samples, n_features, data_range, min_value and
    max_value. Empty input yields zeros.
    """
    if data is None or len(data) == 0:
        return {
            "n_samples": 0,
            "n_features": 0,
            "data_range": 0.0,
            "min_value": 0.0,
            "max_value": 0.0,
        }
    X = as_matrix(data)
    min_value = float(np.min(X))
    max_value = float(np.max(X))
    return {
        "n_samples": int(X.shape[0]),
        "n_features": int(X.shape[1]),
        "data_range": max_value - min_value,
        "min_value": min_value,
        "max_value": max_value,
    }
