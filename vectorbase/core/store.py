"""
Vector record store - durable SQLite persistence for vectors, keyed by id,
with an optional store-wide dimension constraint.
"""

import sqlite3
import threading
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from .db import connect, init_db, health_check, encode_values, decode_values
from .errors import (
    BackingStoreError,
    DimensionMismatchError,
    InvalidDataError,
    NotInitializedError,
    VectorDBError,
    VectorNotFoundError,
)
from ..vector.tagged import dumps_metadata, loads_metadata
from ..vector.types import Vector
from ..util.logging import logger

_COLUMNS = "id, vector_values, metadata, dimension, created_at, updated_at"

# Stay well below SQLITE_MAX_VARIABLE_NUMBER on older builds
_ID_CHUNK_SIZE = 500


class VectorStore:
    """SQLite-backed storage for Vector records.

    All operations on one store are serialized through a single lock, and
    none of them retry. Any sqlite3 failure surfaces as BackingStoreError.
    """

    def __init__(self, database_path: str, expected_dimension: Optional[int] = None):
        """
        Open (or create) a vector store.

        Args:
            database_path: Path to the SQLite file, or ":memory:"
            expected_dimension: If set, every stored vector must have this dimension
        """
        self.database_path = database_path
        self.expected_dimension = expected_dimension
        self._lock = threading.RLock()

        try:
            self._conn: Optional[sqlite3.Connection] = connect(database_path)
            init_db(self._conn)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to open vector store at '{database_path}': {e}")
            raise BackingStoreError(f"Failed to open database at {database_path}: {e}") from e

        logger.log_store_operation("opened", {
            "path": database_path,
            "expected_dimension": expected_dimension
        })

    def __enter__(self) -> "VectorStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection; later calls raise NotInitializedError."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def is_healthy(self) -> bool:
        with self._lock:
            return self._conn is not None and health_check(self._conn)

    # Mutations

    def insert(self, vector: Vector) -> None:
        """Persist a new vector. Duplicate ids fail with BackingStoreError."""
        with self._lock:
            conn = self._require_connection()
            self._validate_dimension(vector)

            try:
                with conn:
                    conn.execute(
                        f"INSERT INTO vectors ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                        (
                            vector.id,
                            encode_values(vector.values),
                            self._encode_metadata(vector),
                            vector.dimension,
                            vector.created_at.isoformat(),
                            vector.updated_at.isoformat(),
                        )
                    )
            except sqlite3.Error as e:
                logger.error(f"Failed to insert vector '{vector.id}': {e}")
                raise BackingStoreError(f"Failed to insert vector {vector.id}: {e}") from e

        logger.log_store_operation("insert", {"id": vector.id, "dimension": vector.dimension})

    def insert_batch(self, vectors: Sequence[Vector]) -> None:
        """Insert vectors one by one, stopping at the first failure.

        Not atomic: vectors before the failing one stay committed. The raised
        error's ``committed`` attribute is the number of vectors written.
        """
        with self._lock:
            self._require_connection()
            for position, vector in enumerate(vectors):
                try:
                    self.insert(vector)
                except VectorDBError as e:
                    e.committed = position
                    logger.log_store_operation("insert_batch", {
                        "committed": position,
                        "total": len(vectors),
                        "failed_id": vector.id,
                        "error": str(e)
                    }, status="failed")
                    raise

    def update(self, vector: Vector) -> None:
        """Replace values, metadata and updated_at of an existing record."""
        with self._lock:
            conn = self._require_connection()
            self._validate_dimension(vector)

            try:
                with conn:
                    cursor = conn.execute(
                        "UPDATE vectors SET vector_values = ?, metadata = ?, dimension = ?, updated_at = ? WHERE id = ?",
                        (
                            encode_values(vector.values),
                            self._encode_metadata(vector),
                            vector.dimension,
                            vector.updated_at.isoformat(),
                            vector.id,
                        )
                    )
            except sqlite3.Error as e:
                logger.error(f"Failed to update vector '{vector.id}': {e}")
                raise BackingStoreError(f"Failed to update vector {vector.id}: {e}") from e

            if cursor.rowcount == 0:
                raise VectorNotFoundError(vector.id)

        logger.log_store_operation("update", {"id": vector.id, "dimension": vector.dimension})

    def delete(self, vector_id: str) -> None:
        """Delete a record by id."""
        with self._lock:
            conn = self._require_connection()

            try:
                with conn:
                    cursor = conn.execute("DELETE FROM vectors WHERE id = ?", (vector_id,))
            except sqlite3.Error as e:
                logger.error(f"Failed to delete vector '{vector_id}': {e}")
                raise BackingStoreError(f"Failed to delete vector {vector_id}: {e}") from e

            if cursor.rowcount == 0:
                raise VectorNotFoundError(vector_id)

        logger.log_store_operation("delete", {"id": vector_id})

    def clear(self) -> None:
        """Delete every record."""
        with self._lock:
            conn = self._require_connection()
            try:
                with conn:
                    conn.execute("DELETE FROM vectors")
            except sqlite3.Error as e:
                raise BackingStoreError(f"Failed to clear vectors: {e}") from e

        logger.log_store_operation("clear")

    # Reads

    def get(self, vector_id: str) -> Vector:
        """Fetch one vector; raises VectorNotFoundError if absent."""
        rows = self._fetch(f"SELECT {_COLUMNS} FROM vectors WHERE id = ?", (vector_id,), "get vector")
        if not rows:
            raise VectorNotFoundError(vector_id)
        return self._row_to_vector(rows[0])

    def get_all(self) -> List[Vector]:
        rows = self._fetch(f"SELECT {_COLUMNS} FROM vectors ORDER BY rowid", (), "get all vectors")
        return [self._row_to_vector(row) for row in rows]

    def get_by_dimension(self, dimension: int) -> List[Vector]:
        rows = self._fetch(
            f"SELECT {_COLUMNS} FROM vectors WHERE dimension = ? ORDER BY rowid",
            (dimension,),
            "get vectors by dimension"
        )
        return [self._row_to_vector(row) for row in rows]

    def get_by_ids(self, vector_ids: Iterable[str]) -> List[Vector]:
        """Fetch the vectors that exist among ``vector_ids``, in storage order."""
        ids = list(dict.fromkeys(vector_ids))
        rows = []
        for start in range(0, len(ids), _ID_CHUNK_SIZE):
            chunk = ids[start:start + _ID_CHUNK_SIZE]
            placeholders = ", ".join("?" for _ in chunk)
            rows.extend(self._fetch(
                f"SELECT rowid, {_COLUMNS} FROM vectors WHERE id IN ({placeholders})",
                tuple(chunk),
                "get vectors by ids"
            ))

        rows.sort(key=lambda row: row[0])
        return [self._row_to_vector(row[1:]) for row in rows]

    def paginate(self, offset: int, limit: int) -> List[Vector]:
        """Return up to ``limit`` vectors after skipping ``offset``, in storage order."""
        if offset < 0 or limit < 0:
            raise ValueError("offset and limit must be non-negative")
        rows = self._fetch(
            f"SELECT {_COLUMNS} FROM vectors ORDER BY rowid LIMIT ? OFFSET ?",
            (limit, offset),
            "paginate vectors"
        )
        return [self._row_to_vector(row) for row in rows]

    def count(self) -> int:
        rows = self._fetch("SELECT COUNT(*) FROM vectors", (), "count vectors")
        return rows[0][0]

    def exists(self, vector_id: str) -> bool:
        rows = self._fetch("SELECT 1 FROM vectors WHERE id = ? LIMIT 1", (vector_id,), "check vector existence")
        return bool(rows)

    # Helpers

    def _require_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise NotInitializedError()
        return self._conn

    def _validate_dimension(self, vector: Vector) -> None:
        if self.expected_dimension is not None and vector.dimension != self.expected_dimension:
            logger.warning(
                f"Rejected vector '{vector.id}': dimension {vector.dimension}, expected {self.expected_dimension}"
            )
            raise DimensionMismatchError(self.expected_dimension, vector.dimension)

    def _fetch(self, sql: str, params: tuple, action: str) -> list:
        with self._lock:
            conn = self._require_connection()
            try:
                return conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.error(f"Failed to {action}: {e}")
                raise BackingStoreError(f"Failed to {action}: {e}") from e

    @staticmethod
    def _encode_metadata(vector: Vector) -> Optional[bytes]:
        if vector.metadata is None:
            return None
        return dumps_metadata(vector.metadata)

    @staticmethod
    def _row_to_vector(row) -> Vector:
        vector_id, values_blob, metadata_blob, dimension, created_at, updated_at = row

        values = decode_values(values_blob, dimension)
        metadata = loads_metadata(metadata_blob) if metadata_blob is not None else None
        try:
            created = datetime.fromisoformat(created_at)
            updated = datetime.fromisoformat(updated_at)
        except (TypeError, ValueError) as e:
            raise InvalidDataError(f"Corrupt timestamp on vector {vector_id}: {e}") from e

        return Vector(
            values=values,
            metadata=metadata,
            id=vector_id,
            created_at=created,
            updated_at=updated,
        )
