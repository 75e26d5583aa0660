"""
Vector database - keeps the durable record store and the in-memory search
index consistent. Mutations go to the store first and are mirrored into the
index only when the store accepted them; queries only touch the index.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from . import config as config_module
from . import transfer
from .config import VectorDatabaseConfig
from .errors import VectorDBError
from .schema import DatabaseStatistics
from .store import VectorStore
from ..vector.index import ISearchIndex
from ..vector.types import SearchOptions, SearchResult, Vector
from ..util.logging import logger

PathLike = Union[str, Path]


class VectorDatabase:
    """A vector database: one VectorStore plus one search index mirroring it."""

    def __init__(self, config: Optional[VectorDatabaseConfig] = None):
        """
        Open the store and load every persisted vector into the index.

        Args:
            config: Database configuration; defaults come from the environment
        """
        self.config = config or config_module.config_from_env()
        self.store = VectorStore(self.config.database_path, self.config.expected_dimension)
        self.index: ISearchIndex = config_module.get_search_index(self.config.search_type)

        try:
            self._reload_index()
        except VectorDBError:
            self.store.close()
            raise

        logger.log_database_operation("opened", {
            "path": self.config.database_path,
            "search_type": self.index.name,
            "vectors": self.index.count()
        })

    @classmethod
    def create(cls, database_path: str, expected_dimension: Optional[int] = None,
               search_type: str = config_module.SearchType.BRUTE_FORCE) -> "VectorDatabase":
        """Open a file-backed database."""
        return cls(VectorDatabaseConfig(
            database_path=database_path,
            expected_dimension=expected_dimension,
            search_type=search_type,
        ))

    @classmethod
    def create_in_memory(cls, expected_dimension: Optional[int] = None,
                         search_type: str = config_module.SearchType.BRUTE_FORCE) -> "VectorDatabase":
        """Open a database that lives only as long as this object."""
        return cls.create(":memory:", expected_dimension, search_type)

    def __enter__(self) -> "VectorDatabase":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.store.close()
        self.index.clear()
        logger.log_database_operation("closed", {"path": self.config.database_path})

    def is_ready(self) -> bool:
        return self.store.is_healthy()

    def get_config(self) -> VectorDatabaseConfig:
        return self.config

    # Mutations

    def insert(self, vector: Vector) -> None:
        self.store.insert(vector)
        self.index.add_vectors([vector])

    def insert_batch(self, vectors: Sequence[Vector]) -> None:
        """Insert vectors in order; on failure the committed prefix stays searchable."""
        vectors = list(vectors)
        try:
            self.store.insert_batch(vectors)
        except VectorDBError as e:
            committed = e.committed or 0
            if committed:
                self.index.add_vectors(vectors[:committed])
            logger.log_database_operation("insert_batch", {
                "committed": committed,
                "total": len(vectors),
                "error": str(e)
            }, status="failed")
            raise

        self.index.add_vectors(vectors)

    def update(self, vector: Vector) -> None:
        self.store.update(vector)
        self.index.update_vectors([vector])

    def delete(self, vector_id: str) -> None:
        self.store.delete(vector_id)
        self.index.remove_vectors([vector_id])

    def clear(self) -> None:
        self.store.clear()
        self.index.clear()

    # Store reads

    def get(self, vector_id: str) -> Vector:
        return self.store.get(vector_id)

    def get_all(self) -> List[Vector]:
        return self.store.get_all()

    def get_by_dimension(self, dimension: int) -> List[Vector]:
        return self.store.get_by_dimension(dimension)

    def get_by_ids(self, vector_ids: Iterable[str]) -> List[Vector]:
        return self.store.get_by_ids(vector_ids)

    def paginate(self, offset: int, limit: int) -> List[Vector]:
        return self.store.paginate(offset, limit)

    def count(self) -> int:
        return self.store.count()

    def exists(self, vector_id: str) -> bool:
        return self.store.exists(vector_id)

    # Search

    def search(self, query: Vector, k: int, options: Optional[SearchOptions] = None) -> List[SearchResult]:
        return self.index.search(query, k, self._options(options))

    def search_threshold(self, query: Vector, threshold: float, max_results: Optional[int] = None,
                         options: Optional[SearchOptions] = None) -> List[SearchResult]:
        return self.index.search_threshold(query, threshold, max_results, self._options(options))

    def search_by_values(self, values: Sequence[float], k: int,
                         options: Optional[SearchOptions] = None) -> List[SearchResult]:
        return self.search(Vector(values), k, options)

    def search_by_values_threshold(self, values: Sequence[float], threshold: float,
                                   max_results: Optional[int] = None,
                                   options: Optional[SearchOptions] = None) -> List[SearchResult]:
        return self.search_threshold(Vector(values), threshold, max_results, options)

    def find_similar(self, vector_id: str, k: int, options: Optional[SearchOptions] = None) -> List[SearchResult]:
        """
        Find the ``k`` nearest neighbours of a stored vector, excluding itself.

        Raises:
            VectorNotFoundError: If no vector has ``vector_id``
        """
        query = self.store.get(vector_id)
        if k <= 0:
            return []
        results = self.search(query, k + 1, options)
        return [r for r in results if r.vector.id != vector_id][:k]

    def batch_search(self, queries: Sequence[Vector], k: int,
                     options: Optional[SearchOptions] = None) -> List[List[SearchResult]]:
        return [self.search(query, k, options) for query in queries]

    # Import / export

    def export_to_json(self, file_path: PathLike) -> int:
        return transfer.export_to_json(self.store, file_path)

    def export_to_csv(self, file_path: PathLike) -> int:
        return transfer.export_to_csv(self.store, file_path)

    def import_from_json(self, file_path: PathLike) -> int:
        """
        Import a JSON export, then rebuild the index from the store.

        The rebuild also runs when the import fails partway, so whatever the
        store committed is searchable before the error propagates.
        """
        try:
            return transfer.import_from_json(self.store, file_path)
        finally:
            self._reload_index()

    # Statistics

    def get_statistics(self) -> DatabaseStatistics:
        vectors = self.store.get_all()
        dimensions = [v.dimension for v in vectors]
        average = sum(dimensions) // len(dimensions) if dimensions else 0

        return DatabaseStatistics(
            total_vectors=len(vectors),
            unique_dimensions=len(set(dimensions)),
            average_dimension=average,
            search_engine_type=self.index.name,
            database_path=self.config.database_path,
        )

    # Helpers

    def _options(self, options: Optional[SearchOptions]) -> SearchOptions:
        return options if options is not None else self.config.default_search_options

    def _reload_index(self) -> None:
        vectors = self.store.get_all()
        self.index.clear()
        self.index.add_vectors(vectors)
        logger.log_database_operation("reload_index", {"vectors": len(vectors)})
