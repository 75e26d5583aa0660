"""
SQLite foundation - connection handling and the vectors table schema.
"""

import sqlite3
from pathlib import Path
from typing import Tuple

import numpy as np

from .errors import InvalidDataError

MEMORY_PATH = ":memory:"

# Little-endian IEEE-754 float32, independent of host byte order
VALUES_DTYPE = np.dtype("<f4")


def connect(database_path: str) -> sqlite3.Connection:
    """Open a SQLite connection, creating the parent directory for file databases.

    The connection may be used from any thread; callers serialize access.
    """
    if database_path != MEMORY_PATH:
        Path(database_path).parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(database_path, check_same_thread=False)


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize the database with required tables."""
    cursor = conn.cursor()

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS vectors (
            id TEXT PRIMARY KEY,
            vector_values BLOB NOT NULL,  -- dimension little-endian float32 values
            metadata BLOB,                -- tagged-value JSON document
            dimension INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    ''')

    # Dimension-filtered scans
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_vectors_dimension ON vectors(dimension)')

    conn.commit()


def health_check(conn: sqlite3.Connection) -> bool:
    """Check database health."""
    try:
        cursor = conn.cursor()
        cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
        table_names = [table[0] for table in cursor.fetchall()]
        return 'vectors' in table_names
    except sqlite3.Error:
        return False


def encode_values(values) -> bytes:
    """Serialize vector components to the on-disk float32 blob."""
    return np.asarray(values, dtype=VALUES_DTYPE).tobytes()


def decode_values(blob: bytes, dimension: int) -> Tuple[float, ...]:
    """Deserialize a values blob, checking it holds exactly ``dimension`` floats."""
    if not isinstance(blob, (bytes, bytearray, memoryview)):
        raise InvalidDataError(f"Vector values must be a blob, got {type(blob).__name__}")
    expected = dimension * VALUES_DTYPE.itemsize
    if len(blob) != expected:
        raise InvalidDataError(f"Values blob is {len(blob)} bytes, expected {expected} for dimension {dimension}")
    return tuple(np.frombuffer(blob, dtype=VALUES_DTYPE).tolist())
