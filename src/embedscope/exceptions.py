"""
Exception taxonomy for embedscope.

Errors fall into three groups:

- Argument errors (``InvalidArgumentError``) are raised by constructors and
  functions for out-of-range options, before any data is touched.
- Input errors (``InvalidInputError``, ``DimensionError``,
  ``InsufficientDataError``) are raised before any numerical backend is
  called.
- State errors (``NotFittedError``, ``UnsupportedOperationError``) are raised
  before any computation.
- Primitive failures (subclasses of ``PrimitiveFailure``) are raised after a
  backend call failed; they carry a ``FailureContext`` and remediation text.

Nothing in the package retries: every failure is surfaced once.
"""

from dataclasses import dataclass
from typing import Optional


class EmbedscopeError(Exception):
    """Base class for every error raised by embedscope."""


class DataError(EmbedscopeError):
    """The data itself cannot be processed as given."""


class InvalidInputError(EmbedscopeError, ValueError):
    """Malformed input: empty, ragged, non-numeric, or non-finite."""


class InvalidArgumentError(EmbedscopeError, ValueError):
    """A constructor or function argument is out of range."""


class DimensionError(EmbedscopeError, ValueError):
    """A requested component or cluster count does not fit the data shape."""


class InsufficientDataError(DataError, ValueError):
    """Too few samples to train the requested model."""


class NotFittedError(EmbedscopeError, RuntimeError):
    """The operation requires a successful fit first."""


class UnsupportedOperationError(EmbedscopeError, NotImplementedError):
    """The capability is intentionally not offered by this estimator."""


@dataclass(frozen=True)
class FailureContext:
    """Diagnostic context attached to primitive failures."""

    n_samples: int
    n_features: int
    n_neighbors: Optional[int] = None
    n_components: Optional[int] = None

    def describe(self) -> str:
        parts = [f"{self.n_samples} samples", f"{self.n_features} dimensions"]
        if self.n_neighbors is not None:
            parts.append(f"n_neighbors={self.n_neighbors}")
        if self.n_components is not None:
            parts.append(f"n_components={self.n_components}")
        return ", ".join(parts)


class PrimitiveFailure(EmbedscopeError):
    """
    A numerical backend failed; raised after classifying its message.

    Attributes:
        context: Data shape and configured parameters at the time of failure
        remediation: Suggested steps for the caller
        original_message: Raw text reported by the backend
    """

    summary = "The numerical backend failed."

    def __init__(
        self,
        context: FailureContext,
        remediation: str = "",
        original_message: str = "",
    ):
        self.context = context
        self.remediation = remediation
        self.original_message = original_message
        super().__init__(self._format())

    def _format(self) -> str:
        lines = [self.summary]
        if self.original_message:
            lines.append(f"Backend message: {self.original_message}")
        if self.remediation:
            lines.append("")
            lines.append(self.remediation)
        lines.append("")
        lines.append(f"Your data: {self.context.describe()}")
        return "\n".join(lines)


class IsolatedPointError(PrimitiveFailure, DataError):
    summary = (
        "UMAP found isolated points in your data that are too far from "
        "other points."
    )


class ConvergenceError(PrimitiveFailure):
    summary = "UMAP failed to converge due to numerical instability in your data."


class InvalidParameterError(PrimitiveFailure, ValueError):
    summary = "A parameter is out of the range the backend accepts."


class GenericPrimitiveFailure(PrimitiveFailure):
    summary = "The numerical backend encountered an error."
