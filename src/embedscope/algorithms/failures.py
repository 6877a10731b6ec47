"""
Classification of free-text backend failures into typed errors.

The manifold backend reports problems as plain messages. ``FAILURE_RULES``
maps case-insensitive patterns to error classes; rules are checked in order
and the first match wins. Adding support for a new backend message means
adding a row here, not touching the estimators.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple, Type

from ..exceptions import (
    ConvergenceError,
    FailureContext,
    GenericPrimitiveFailure,
    InvalidParameterError,
    IsolatedPointError,
    PrimitiveFailure,
)


@dataclass(frozen=True)
class FailureRule:
    """One row of the classification table."""

    name: str
    patterns: Tuple[str, ...]
    error_class: Type[PrimitiveFailure]
    remediation: str

    def matches(self, message: str) -> bool:
        return any(re.search(p, message, re.IGNORECASE | re.DOTALL) for p in self.patterns)


_ISOLATED_POINT_HELP = """\
This typically happens when:
- Your data contains outliers that are very different from other points
- You're using random data without inherent structure
- The n_neighbors parameter ({n_neighbors}) is too high for your data distribution

Solutions:
1. Reduce n_neighbors (try 5 or even 3): UMAP(n_neighbors=5)
2. Remove outliers from your data before applying UMAP
3. Ensure your data has some structure (not purely random)
4. For small datasets (< 50 points), consider using PCA instead"""

_CONVERGENCE_HELP = """\
This typically happens when:
- Data points are too spread out or have extreme values
- The scale of different features varies wildly
- There are duplicate or nearly-duplicate points

Solutions:
1. Normalize your data first: normalize(data)
2. Use a smaller n_neighbors value: UMAP(n_neighbors=5)
3. Check for and remove duplicate points
4. Scale your data to a reasonable range (e.g., 0-1 or -1 to 1)"""

_INVALID_PARAMETER_HELP = """\
The n_neighbors parameter ({n_neighbors}) is too large for your dataset size ({n_samples}).
UMAP needs n_neighbors to be less than the number of samples.
Suggested value: {suggested}

This should have been auto-adjusted before the backend was called."""

_GENERIC_HELP = """\
Common solutions:
1. Try reducing n_neighbors (current: {n_neighbors})
2. Normalize your data first
3. Check for NaN or infinite values in your data
4. Ensure you have at least 10 data points

If this persists, consider using PCA for dimensionality reduction instead."""


FAILURE_RULES: Tuple[FailureRule, ...] = (
    FailureRule(
        name="isolated_point",
        patterns=(r"isolated point", r"graph will not be connected"),
        error_class=IsolatedPointError,
        remediation=_ISOLATED_POINT_HELP,
    ),
    FailureRule(
        name="convergence",
        patterns=(r"assertion failed.*box_size",),
        error_class=ConvergenceError,
        remediation=_CONVERGENCE_HELP,
    ),
    FailureRule(
        name="invalid_parameter",
        patterns=(r"n_neighbors.*larger than", r"too many neighbors"),
        error_class=InvalidParameterError,
        remediation=_INVALID_PARAMETER_HELP,
    ),
)


def _render(template: str, context: FailureContext) -> str:
    return template.format(
        n_neighbors=context.n_neighbors,
        n_samples=context.n_samples,
        suggested=max(5, int(context.n_samples * 0.1)),
    )


def classify_failure(error: BaseException, context: FailureContext) -> PrimitiveFailure:
    """
    Turn a backend exception into a typed ``PrimitiveFailure``.

    Does not raise; the caller raises the returned error (chained from the
    original).

    Args:
        error: Exception raised by the backend
        context: Data shape and parameters of the failed call

    Returns:
        Instance of the first matching rule's error class, or
        ``GenericPrimitiveFailure`` when no rule matches
    """
    message = str(error)
    for rule in FAILURE_RULES:
        if rule.matches(message):
            return rule.error_class(
                context,
                remediation=_render(rule.remediation, context),
                original_message=message,
            )
    return GenericPrimitiveFailure(
        context,
        remediation=_render(_GENERIC_HELP, context),
        original_message=message,
    )
