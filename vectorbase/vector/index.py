"""
In-memory search index - the queryable mirror of the vectors held in the
record store. Ranking is always an exact linear scan over the candidate set.
"""

import math
import threading
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from . import metrics
from .types import DistanceMetric, SearchOptions, SearchResult, Vector
from ..util.logging import logger


class ISearchIndex(ABC):
    """Abstract interface for similarity search over mirrored vectors."""

    name = "abstract"

    @abstractmethod
    def add_vectors(self, vectors: Sequence[Vector]) -> None:
        """Append vectors to the index."""
        pass

    @abstractmethod
    def remove_vectors(self, vector_ids: Iterable[str]) -> None:
        """Remove every mirrored vector whose id is in ``vector_ids``."""
        pass

    @abstractmethod
    def update_vectors(self, vectors: Sequence[Vector]) -> None:
        """Replace mirrored vectors in place by id; unknown ids are ignored."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove all vectors from the index."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of mirrored vectors."""
        pass

    @abstractmethod
    def search(self, query: Vector, k: int, options: Optional[SearchOptions] = None) -> List[SearchResult]:
        """Return the ``k`` best-ranked candidates for ``query``."""
        pass

    @abstractmethod
    def search_threshold(self, query: Vector, threshold: float, max_results: Optional[int] = None,
                         options: Optional[SearchOptions] = None) -> List[SearchResult]:
        """Return every candidate satisfying ``threshold``, best first."""
        pass


class LinearScanIndex(ISearchIndex):
    """Mirror bookkeeping, candidate selection and ranking shared by the
    exact-scan strategies. Subclasses only decide how a candidate set is scored.

    Every public call takes the instance lock, so one index is never read and
    mutated at the same time.
    """

    def __init__(self):
        self._vectors: List[Vector] = []
        self._lock = threading.RLock()

    def add_vectors(self, vectors: Sequence[Vector]) -> None:
        vectors = list(vectors)
        with self._lock:
            self._vectors.extend(vectors)
            self._on_added(vectors)
        logger.log_index_operation("added", self.name, {"count": len(vectors)})

    def remove_vectors(self, vector_ids: Iterable[str]) -> None:
        ids = set(vector_ids)
        with self._lock:
            keep = [i for i, vector in enumerate(self._vectors) if vector.id not in ids]
            removed = len(self._vectors) - len(keep)
            self._vectors = [self._vectors[i] for i in keep]
            self._on_retained(keep)
        logger.log_index_operation("removed", self.name, {"count": removed})

    def update_vectors(self, vectors: Sequence[Vector]) -> None:
        replacements = {vector.id: vector for vector in vectors}
        replaced = 0
        with self._lock:
            for position, current in enumerate(self._vectors):
                updated = replacements.get(current.id)
                if updated is not None:
                    self._vectors[position] = updated
                    self._on_replaced(position, updated)
                    replaced += 1
        logger.log_index_operation("updated", self.name, {"count": replaced})

    def clear(self) -> None:
        with self._lock:
            self._vectors = []
            self._on_retained([])
        logger.log_index_operation("cleared", self.name)

    def count(self) -> int:
        with self._lock:
            return len(self._vectors)

    def search(self, query: Vector, k: int, options: Optional[SearchOptions] = None) -> List[SearchResult]:
        if k <= 0:
            return []
        options = options or SearchOptions()

        with self._lock:
            scored = self._scored_candidates(query, options)

        ranked = rank_results(scored, options.metric)[:k]
        logger.log_search(self.name, options.metric.value, len(scored), len(ranked), {"k": k})
        return ranked

    def search_threshold(self, query: Vector, threshold: float, max_results: Optional[int] = None,
                         options: Optional[SearchOptions] = None) -> List[SearchResult]:
        options = options or SearchOptions()

        with self._lock:
            scored = self._scored_candidates(query, options)

        if options.metric.is_distance:
            kept = [r for r in scored if r.distance is not None and r.distance <= threshold]
        else:
            kept = [r for r in scored if r.score >= threshold]

        ranked = rank_results(kept, options.metric)
        if max_results is not None:
            ranked = ranked[:max(max_results, 0)]

        logger.log_search(self.name, options.metric.value, len(scored), len(ranked), {"threshold": threshold})
        return ranked

    def _scored_candidates(self, query: Vector, options: SearchOptions) -> List[SearchResult]:
        """Score every candidate in mirror order. Caller holds the lock."""
        query_values = query.values
        if options.normalize_query:
            query_values = metrics.normalize(query_values)

        if options.metadata_filter is None:
            positions = list(range(len(self._vectors)))
        else:
            positions = [i for i, vector in enumerate(self._vectors) if options.metadata_filter(vector)]

        if not positions:
            return []
        return self._score_candidates(query_values, positions, options)

    @abstractmethod
    def _score_candidates(self, query_values: Sequence[float], positions: List[int],
                          options: SearchOptions) -> List[SearchResult]:
        """Score the mirrored vectors at ``positions``, preserving their order.

        Any failure (dimension mismatch, zero magnitude) on any candidate
        aborts the whole query.
        """
        pass

    # Hooks for strategies that keep derived per-vector state
    def _on_added(self, vectors: List[Vector]) -> None:
        pass

    def _on_retained(self, positions: List[int]) -> None:
        pass

    def _on_replaced(self, position: int, vector: Vector) -> None:
        pass


def rank_results(results: List[SearchResult], metric: DistanceMetric) -> List[SearchResult]:
    """Best first; stable, so ties keep candidate encounter order."""
    if metric.is_distance:
        return sorted(results, key=lambda r: r.distance if r.distance is not None else math.inf)
    return sorted(results, key=lambda r: r.score, reverse=True)


class BruteForceSearchIndex(LinearScanIndex):
    """Scalar implementation: scores candidates one at a time."""

    name = "brute_force"

    def _score_candidates(self, query_values: Sequence[float], positions: List[int],
                          options: SearchOptions) -> List[SearchResult]:
        results = []
        for position in positions:
            candidate = self._vectors[position]
            results.append(self._score_one(query_values, candidate, options))
        return results

    @staticmethod
    def _score_one(query_values: Sequence[float], candidate: Vector, options: SearchOptions) -> SearchResult:
        candidate_values = candidate.values
        if options.normalize_stored:
            candidate_values = metrics.normalize(candidate_values)

        if options.metric is DistanceMetric.COSINE:
            return SearchResult(candidate, metrics.cosine(query_values, candidate_values))

        if options.metric is DistanceMetric.EUCLIDEAN:
            distance = metrics.euclidean(query_values, candidate_values)
            return SearchResult(candidate, metrics.distance_to_score(distance), distance)

        return SearchResult(candidate, metrics.dot(query_values, candidate_values))
