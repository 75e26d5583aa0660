"""
Error taxonomy shared by the record store, the search index and the database.
"""

from typing import Optional


class VectorDBError(Exception):
    """Base exception for all vectorbase failures."""

    # Set by VectorStore.insert_batch: vectors durably written before the failure
    committed: Optional[int] = None


class NotInitializedError(VectorDBError):
    """Operation attempted on a closed or unopened store."""

    def __init__(self, message: str = "Database not initialized"):
        super().__init__(message)


class VectorNotFoundError(VectorDBError):
    """No record exists for the given identifier."""

    def __init__(self, vector_id: str):
        self.vector_id = vector_id
        super().__init__(f"Vector with ID {vector_id} not found")


class DimensionMismatchError(VectorDBError):
    """A vector's dimension differs from the one required."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Dimension mismatch: expected {expected}, got {actual}")


class ZeroMagnitudeError(VectorDBError):
    """Normalization or cosine scoring hit a zero-length vector."""

    def __init__(self, message: str = "Cannot perform operation on zero-magnitude vector"):
        super().__init__(message)


class InvalidDataError(VectorDBError):
    """Stored or imported payload could not be decoded."""

    def __init__(self, detail: str = "Invalid vector data"):
        self.detail = detail
        super().__init__(detail)


class BackingStoreError(VectorDBError):
    """Wraps a lower-level SQLite failure."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Database error: {detail}")
