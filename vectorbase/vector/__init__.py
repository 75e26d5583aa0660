"""
Vector types and in-memory similarity search strategies.
"""

# Package initialization for vector module
from .index import ISearchIndex, LinearScanIndex, BruteForceSearchIndex
from .batch_index import VectorizedSearchIndex
from .types import Vector, SearchOptions, SearchResult, DistanceMetric
from .tagged import TaggedValue, ValueKind

__all__ = [
    'ISearchIndex',
    'LinearScanIndex',
    'BruteForceSearchIndex',
    'VectorizedSearchIndex',
    'Vector',
    'SearchOptions',
    'SearchResult',
    'DistanceMetric',
    'TaggedValue',
    'ValueKind'
]
