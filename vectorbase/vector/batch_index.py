"""
Vectorized search index - numpy implementation of ISearchIndex.

Scores the whole candidate set with matrix operations instead of a Python
loop. Results match BruteForceSearchIndex within floating point tolerance,
including which error a bad candidate set raises.
"""

from typing import List, Sequence

import numpy as np

from ..core.errors import DimensionMismatchError, ZeroMagnitudeError
from .index import LinearScanIndex
from .types import DistanceMetric, SearchOptions, SearchResult, Vector


class VectorizedSearchIndex(LinearScanIndex):
    """numpy-backed implementation of ISearchIndex."""

    name = "vectorized"

    def __init__(self):
        super().__init__()
        # Parallel to self._vectors
        self._rows: List[np.ndarray] = []
        self._norms: List[float] = []

    def _on_added(self, vectors: List[Vector]) -> None:
        for vector in vectors:
            row = np.asarray(vector.values, dtype=np.float32)
            self._rows.append(row)
            self._norms.append(float(np.linalg.norm(row.astype(np.float64))))

    def _on_retained(self, positions: List[int]) -> None:
        self._rows = [self._rows[i] for i in positions]
        self._norms = [self._norms[i] for i in positions]

    def _on_replaced(self, position: int, vector: Vector) -> None:
        row = np.asarray(vector.values, dtype=np.float32)
        self._rows[position] = row
        self._norms[position] = float(np.linalg.norm(row.astype(np.float64)))

    def _score_candidates(self, query_values: Sequence[float], positions: List[int],
                          options: SearchOptions) -> List[SearchResult]:
        query = np.asarray(query_values, dtype=np.float64)
        dims = np.fromiter((self._rows[p].shape[0] for p in positions), dtype=np.int64, count=len(positions))
        norms = np.fromiter((self._norms[p] for p in positions), dtype=np.float64, count=len(positions))

        self._raise_first_failure(query, dims, norms, options)

        matrix = np.vstack([self._rows[p] for p in positions]).astype(np.float64)
        if options.normalize_stored:
            matrix = matrix / norms[:, np.newaxis]

        distances = None
        if options.metric is DistanceMetric.COSINE:
            candidate_norms = np.linalg.norm(matrix, axis=1)
            scores = (matrix @ query) / (candidate_norms * np.linalg.norm(query))
        elif options.metric is DistanceMetric.EUCLIDEAN:
            distances = np.sqrt(np.sum((matrix - query) ** 2, axis=1))
            scores = 1.0 / (1.0 + distances)
        else:
            scores = matrix @ query

        results = []
        for i, position in enumerate(positions):
            distance = float(distances[i]) if distances is not None else None
            results.append(SearchResult(self._vectors[position], float(scores[i]), distance))
        return results

    @staticmethod
    def _raise_first_failure(query: np.ndarray, dims: np.ndarray, norms: np.ndarray,
                             options: SearchOptions) -> None:
        """Raise the error the scalar scan would hit first, if any.

        Per candidate the scalar order is: stored normalization, dimension
        check, cosine magnitude check.
        """
        count = len(dims)
        zero_stored = (norms == 0) if options.normalize_stored else np.zeros(count, dtype=bool)
        mismatch = dims != query.shape[0]

        if options.metric is DistanceMetric.COSINE:
            query_zero = float(np.linalg.norm(query)) == 0
            zero_cosine = np.full(count, query_zero) | (norms == 0)
        else:
            zero_cosine = np.zeros(count, dtype=bool)

        failures = zero_stored | mismatch | zero_cosine
        if not failures.any():
            return

        first = int(np.argmax(failures))
        if zero_stored[first]:
            raise ZeroMagnitudeError()
        if mismatch[first]:
            raise DimensionMismatchError(int(query.shape[0]), int(dims[first]))
        raise ZeroMagnitudeError()
