"""
Approximate nearest-neighbour index.

``HNSW`` stores labelled vectors and answers k-nearest-neighbour and radius
queries. Large indexes are searched through a neighbour graph built with
pynndescent; small ones are searched exactly, the way umap-learn handles
small datasets. The graph is rebuilt lazily on the first query after new
items are added.

Example:
    index = HNSW(dim=2)
    index.add_batch(embedding, labels=doc_ids)
    labels, distances = index.knn_query(embedding[0], k=5)
"""

from __future__ import annotations

import os
import pickle
from pathlib import Path
from typing import Any, Dict, Hashable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from sklearn.metrics import pairwise_distances

from ..exceptions import DimensionError, InvalidArgumentError
from ..utils.logging_config import get_logger
from .validation import validate_matrix

logger = get_logger(__name__)

Array2D = np.ndarray

SPACES = ("euclidean", "cosine")
# Indexes up to this size are searched by brute force
EXACT_SEARCH_MAX_SIZE = 256
SAVE_FORMAT_VERSION = 1


def _positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
        raise InvalidArgumentError(f"{name} must be a positive integer, got {value!r}")
    return int(value)


class HNSW:
    """
    Labelled approximate nearest-neighbour index.

    Args:
        dim: Vector dimensionality
        space: "euclidean" or "cosine"
        m: Graph degree parameter; each item keeps ``2 * m`` neighbours
        epsilon: Search breadth; higher is more accurate but slower
            (default: 0.1)
        random_seed: Seed for graph construction; fixes query results
        exact_search_max_size: Indexes up to this many items (and never
            fewer than ``2 * m``) skip the graph and are searched exactly
    """

    def __init__(
        self,
        dim: int,
        space: str = "euclidean",
        m: int = 16,
        epsilon: float = 0.1,
        random_seed: Optional[int] = None,
        exact_search_max_size: int = EXACT_SEARCH_MAX_SIZE,
    ):
        self.dim = _positive_int("dim", dim)
        if space not in SPACES:
            raise InvalidArgumentError(f"space must be one of: {', '.join(SPACES)}")
        self.space = space
        self.m = _positive_int("m", m)
        self.set_epsilon(epsilon)
        self.random_seed = random_seed
        if exact_search_max_size < 0:
            raise InvalidArgumentError("exact_search_max_size must be >= 0")
        self.exact_search_max_size = int(exact_search_max_size)

        self._data: Array2D = np.empty((0, self.dim), dtype=np.float64)
        self._labels: List[Hashable] = []
        self._metadata: List[Dict[str, Any]] = []
        self._positions: Dict[Hashable, int] = {}
        self._graph = None

    @classmethod
    def from_embedding(cls, embeddings: Any, labels: Optional[Sequence] = None, **kwargs) -> "HNSW":
        """Build an index sized to ``embeddings`` (e.g. UMAP output) and add them."""
        X = validate_matrix(embeddings, check_finite=True)
        return cls(dim=X.shape[1], **kwargs).fit(X, labels=labels)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self._labels)

    def __len__(self) -> int:
        return self.size

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    def __contains__(self, label: Hashable) -> bool:
        return label in self._positions

    def set_epsilon(self, epsilon: float) -> None:
        if epsilon < 0:
            raise InvalidArgumentError(f"epsilon must be >= 0, got {epsilon}")
        self.epsilon = float(epsilon)

    @property
    def params(self) -> Dict[str, Any]:
        return {
            "dim": self.dim,
            "space": self.space,
            "m": self.m,
            "epsilon": self.epsilon,
            "random_seed": self.random_seed,
            "exact_search_max_size": self.exact_search_max_size,
        }

    def stats(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "dim": self.dim,
            "space": self.space,
            "exact_search": self._uses_exact_search(),
        }

    # ------------------------------------------------------------------
    # Adding items
    # ------------------------------------------------------------------

    def _as_vectors(self, data: Any) -> Array2D:
        """Accept a single vector or a matrix; check finiteness and width."""
        if isinstance(data, np.ndarray) and data.ndim == 1:
            data = data[np.newaxis, :]
        elif isinstance(data, (list, tuple)) and data and not hasattr(data[0], "__len__"):
            data = [data]
        X = validate_matrix(data, check_finite=True)
        if X.shape[1] != self.dim:
            raise DimensionError(
                f"Vector dimension mismatch: expected {self.dim}, got {X.shape[1]}"
            )
        return X

    def add_batch(
        self,
        vectors: Any,
        labels: Optional[Sequence[Hashable]] = None,
        metadata: Optional[Sequence[Optional[Mapping[str, Any]]]] = None,
    ) -> "HNSW":
        """
        Add vectors to the index.

        Labels default to the insertion position. Nothing is added when any
        label is a duplicate.

        Raises:
            DimensionError: If a vector has the wrong length
            InvalidArgumentError: For duplicate labels or mismatched
                labels / metadata lengths
        """
        X = self._as_vectors(vectors)
        n_new = X.shape[0]
        if labels is None:
            labels = list(range(self.size, self.size + n_new))
        else:
            labels = list(labels)
        if len(labels) != n_new:
            raise InvalidArgumentError(f"Got {len(labels)} labels for {n_new} vectors")
        if metadata is None:
            metadata = [None] * n_new
        elif len(metadata) != n_new:
            raise InvalidArgumentError(f"Got {len(metadata)} metadata entries for {n_new} vectors")

        seen = set()
        for label in labels:
            if label in self._positions or label in seen:
                raise InvalidArgumentError(f"Label {label!r} already exists in the index")
            seen.add(label)

        start = self.size
        self._data = np.vstack([self._data, X])
        for offset, (label, meta) in enumerate(zip(labels, metadata)):
            self._positions[label] = start + offset
            self._labels.append(label)
            self._metadata.append(dict(meta) if meta else {})
        self._graph = None
        return self

    def add_item(
        self,
        vector: Any,
        label: Optional[Hashable] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> "HNSW":
        """Add one vector; see ``add_batch``."""
        X = self._as_vectors(vector)
        if X.shape[0] != 1:
            raise InvalidArgumentError("add_item takes a single vector; use add_batch")
        return self.add_batch(
            X,
            labels=None if label is None else [label],
            metadata=[metadata],
        )

    def fit(self, data: Any, labels: Optional[Sequence[Hashable]] = None) -> "HNSW":
        """Add ``data`` to the index; returns self for chaining."""
        return self.add_batch(data, labels=labels)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _uses_exact_search(self) -> bool:
        # the graph needs more items than its degree
        return self.size <= max(self.exact_search_max_size, 2 * self.m)

    def _graph_index(self):
        if self._graph is None:
            # pynndescent compiles with numba; import on first use
            from pynndescent import NNDescent

            logger.debug("Building neighbour graph over %d items", self.size)
            self._graph = NNDescent(
                self._data,
                metric=self.space,
                n_neighbors=min(2 * self.m, self.size - 1),
                random_state=self.random_seed,
            )
        return self._graph

    def _single_query(self, query: Any) -> Array2D:
        Q = self._as_vectors(query)
        if Q.shape[0] != 1:
            raise InvalidArgumentError("Expected a single query vector; use batch_search for several")
        return Q

    def _query(
        self, queries: Array2D, k: int, epsilon: Optional[float]
    ) -> List[Tuple[np.ndarray, np.ndarray]]:
        """Positions and distances of the k nearest items, per query row."""
        k = _positive_int("k", k)
        if self.is_empty:
            empty = (np.empty(0, dtype=np.int64), np.empty(0, dtype=np.float64))
            return [empty for _ in range(queries.shape[0])]
        k = min(k, self.size)

        if self._uses_exact_search():
            dists = pairwise_distances(queries, self._data, metric=self.space)
            indices = np.argsort(dists, axis=1, kind="stable")[:, :k]
            distances = np.take_along_axis(dists, indices, axis=1)
        else:
            indices, distances = self._graph_index().query(
                queries, k=k, epsilon=self.epsilon if epsilon is None else epsilon
            )

        results = []
        for row_idx, row_dist in zip(indices, distances):
            # the graph search pads with -1 when it finds fewer than k items
            found = row_idx >= 0
            results.append(
                (row_idx[found].astype(np.int64), row_dist[found].astype(np.float64))
            )
        return results

    def search(
        self,
        query: Any,
        k: int = 10,
        epsilon: Optional[float] = None,
        include_distances: bool = False,
    ) -> Union[List[Hashable], Tuple[List[Hashable], List[float]]]:
        """
        Labels of the ``k`` nearest items, closest first.

        Returns fewer than ``k`` labels when the index is smaller. With
        ``include_distances`` returns ``(labels, distances)``.
        """
        positions, distances = self._query(self._single_query(query), k, epsilon)[0]
        labels = [self._labels[p] for p in positions]
        if include_distances:
            return labels, distances.tolist()
        return labels

    def knn_query(
        self, query: Any, k: int = 10, epsilon: Optional[float] = None
    ) -> Tuple[List[Hashable], List[float]]:
        """``search`` that always returns ``(labels, distances)``."""
        return self.search(query, k=k, epsilon=epsilon, include_distances=True)

    def batch_search(
        self, queries: Any, k: int = 10, epsilon: Optional[float] = None
    ) -> List[List[Hashable]]:
        """Labels of the nearest items for each query row."""
        results = self._query(self._as_vectors(queries), k, epsilon)
        return [[self._labels[p] for p in positions] for positions, _ in results]

    def search_with_metadata(
        self, query: Any, k: int = 10, epsilon: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """Nearest items as dicts with ``label``, ``distance`` and ``metadata``."""
        positions, distances = self._query(self._single_query(query), k, epsilon)[0]
        return [
            {
                "label": self._labels[p],
                "distance": float(d),
                "metadata": dict(self._metadata[p]),
            }
            for p, d in zip(positions, distances)
        ]

    def range_search(
        self, query: Any, radius: float, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Items within ``radius`` of the query, closest first, at most ``limit``."""
        if radius < 0:
            raise InvalidArgumentError(f"radius must be >= 0, got {radius}")
        if self.is_empty:
            return []
        within = [r for r in self.search_with_metadata(query, k=self.size) if r["distance"] <= radius]
        return within if limit is None else within[:limit]

    def recall(self, test_queries: Any, ground_truth: Sequence[Sequence[Hashable]], k: int = 10) -> float:
        """
        Fraction of the true ``k`` nearest labels that the index returns.

        Args:
            test_queries: Query vectors
            ground_truth: True nearest labels for each query, closest first
            k: Number of neighbours to compare

        Returns:
            Recall in [0, 1]; 0.0 when there is nothing to compare
        """
        predicted = self.batch_search(test_queries, k=k)
        if len(predicted) != len(ground_truth):
            raise InvalidArgumentError(
                f"Got {len(ground_truth)} ground-truth rows for {len(predicted)} queries"
            )
        correct = 0
        possible = 0
        for found, truth in zip(predicted, ground_truth):
            actual = set(list(truth)[:k])
            correct += len(set(found) & actual)
            possible += min(k, len(actual))
        return correct / possible if possible else 0.0

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: Union[str, os.PathLike]) -> None:
        """Pickle the vectors, labels, metadata and parameters to ``path``."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "version": SAVE_FORMAT_VERSION,
            "params": self.params,
            "data": self._data,
            "labels": self._labels,
            "metadata": self._metadata,
        }
        with open(path, "wb") as f:
            pickle.dump(payload, f)
        logger.info("Saved index with %d items to %s", self.size, path)

    @classmethod
    def load(cls, path: Union[str, os.PathLike]) -> "HNSW":
        """
        Load an index written by ``save``.

        The neighbour graph is rebuilt on the first query.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        with open(path, "rb") as f:
            payload = pickle.load(f)
        if payload.get("version") != SAVE_FORMAT_VERSION:
            raise InvalidArgumentError(f"Unsupported index file version: {payload.get('version')!r}")

        index = cls(**payload["params"])
        if len(payload["labels"]):
            index.add_batch(payload["data"], labels=payload["labels"], metadata=payload["metadata"])
        return index
