"""
vectorbase - a small vector database: durable SQLite record storage plus
exact in-memory similarity search.
"""

from .core.config import VERSION, SearchType, VectorDatabaseConfig
from .core.database import VectorDatabase
from .core.errors import (
    BackingStoreError,
    DimensionMismatchError,
    InvalidDataError,
    NotInitializedError,
    VectorDBError,
    VectorNotFoundError,
    ZeroMagnitudeError,
)
from .core.schema import DatabaseStatistics
from .core.store import VectorStore
from .vector import DistanceMetric, SearchOptions, SearchResult, Vector

__version__ = VERSION

__all__ = [
    'VectorDatabase',
    'VectorDatabaseConfig',
    'SearchType',
    'VectorStore',
    'DatabaseStatistics',
    'Vector',
    'SearchOptions',
    'SearchResult',
    'DistanceMetric',
    'VectorDBError',
    'NotInitializedError',
    'VectorNotFoundError',
    'DimensionMismatchError',
    'ZeroMagnitudeError',
    'InvalidDataError',
    'BackingStoreError',
]
