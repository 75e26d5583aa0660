"""
Import and export of vector records - JSON (full records) and CSV (values only).
"""

import json
from pathlib import Path
from typing import List, Sequence, Union

import numpy as np
from pydantic import ValidationError

from .errors import InvalidDataError
from .schema import VectorRecordModel
from .store import VectorStore
from ..vector.types import Vector
from ..util.logging import logger

PathLike = Union[str, Path]

CSV_HEADER = "id,dimension,values"


def vectors_to_json(vectors: Sequence[Vector]) -> str:
    """Render vectors in the JSON export format."""
    records = [
        VectorRecordModel.from_vector(vector).model_dump(mode="json", by_alias=True)
        for vector in vectors
    ]
    return json.dumps(records, indent=2)


def vectors_from_json(text: str) -> List[Vector]:
    """Parse and validate a JSON export document."""
    try:
        raw = json.loads(text)
    except ValueError as e:
        raise InvalidDataError(f"Invalid JSON export: {e}") from e

    if not isinstance(raw, list):
        raise InvalidDataError("JSON export must be an array of vector records")

    vectors = []
    for position, item in enumerate(raw):
        try:
            record = VectorRecordModel.model_validate(item)
        except ValidationError as e:
            raise InvalidDataError(f"Invalid vector record at index {position}: {e}") from e
        vectors.append(record.to_vector())
    return vectors


def format_csv_value(value: float) -> str:
    """Shortest decimal string that round-trips the float32 value."""
    return str(np.float32(value))


def _csv_field(text: str) -> str:
    if any(ch in text for ch in ',"\r\n'):
        return '"' + text.replace('"', '""') + '"'
    return text


def export_to_json(store: VectorStore, file_path: PathLike) -> int:
    """
    Write every stored vector to a JSON file.

    Returns:
        Number of exported vectors
    """
    vectors = store.get_all()
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(vectors_to_json(vectors), encoding="utf-8")

    logger.log_operation("transfer.export_json", "success", {"path": str(path), "count": len(vectors)})
    return len(vectors)


def import_from_json(store: VectorStore, file_path: PathLike) -> int:
    """
    Insert every vector from a JSON export into the store.

    Validation (including the store's dimension constraint) is applied to
    every record. Insertion goes through ``store.insert_batch`` and is
    therefore not atomic.

    Returns:
        Number of imported vectors

    Raises:
        InvalidDataError: If the file cannot be read or parsed
    """
    path = Path(file_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidDataError(f"Cannot read import file {path}: {e}") from e

    vectors = vectors_from_json(text)
    store.insert_batch(vectors)

    logger.log_operation("transfer.import_json", "success", {"path": str(path), "count": len(vectors)})
    return len(vectors)


def export_to_csv(store: VectorStore, file_path: PathLike) -> int:
    """
    Write id, dimension and values of every stored vector to a CSV file.

    Values are joined with ``;`` inside one quoted field. Metadata is not
    exported.
    """
    vectors = store.get_all()
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(CSV_HEADER + "\n")
        for vector in vectors:
            values = ";".join(format_csv_value(v) for v in vector.values)
            f.write(f'{_csv_field(vector.id)},{vector.dimension},"{values}"\n')

    logger.log_operation("transfer.export_csv", "success", {"path": str(path), "count": len(vectors)})
    return len(vectors)
