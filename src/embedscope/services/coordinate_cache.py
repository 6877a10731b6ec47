"""
File-based cache for embedded coordinates.

UMAP output is only best-effort reproducible across runs, so callers that
need stable coordinates export them once and re-import them later. The
format is human-readable JSON: a list of rows, each a list of floats.
"""

import json
import os
from pathlib import Path
from typing import Any, List, Union

from ..algorithms.validation import validate_matrix
from ..exceptions import InvalidInputError
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


def export_data(data: Any, path: PathLike) -> Path:
    """
    Write a coordinate matrix to ``path`` as pretty-printed JSON.

    Creates the parent directory if needed. The matrix is validated first,
    so nothing is written for ragged, non-numeric or non-finite input (JSON
    has no NaN or Infinity).

    Args:
        data: 2D array-like of floats
        path: Destination file

    Returns:
        The path written

    Raises:
        InvalidInputError: If the data is not a finite numeric matrix
    """
    rows = validate_matrix(data, check_finite=True)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(rows.tolist(), f, indent=2)
    logger.debug("Exported %dx%d matrix to %s", rows.shape[0], rows.shape[1], path)
    return path


def import_data(path: PathLike) -> List[List[float]]:
    """
    Read a coordinate matrix written by ``export_data``.

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidInputError: If the file is not a JSON list of numeric rows
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            loaded = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"Coordinate cache {path} is not valid JSON: {e}") from e

    if not isinstance(loaded, list) or not all(isinstance(row, list) for row in loaded):
        raise InvalidInputError(f"Coordinate cache {path} does not hold a list of rows")
    return [[float(v) for v in row] for row in loaded]
