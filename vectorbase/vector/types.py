"""
Core value types: the Vector record, search options and search results.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..core.errors import InvalidDataError
from . import metrics
from .tagged import TaggedValue, coerce_metadata, metadata_to_python


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _as_utc(value: datetime) -> datetime:
    """Read naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_float32(values: Sequence[float]) -> Tuple[float, ...]:
    """Round values to float32 precision, returned as plain Python floats."""
    try:
        array = np.asarray(values, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise InvalidDataError(f"Vector values must be numeric: {e}") from e
    if array.ndim != 1:
        raise InvalidDataError(f"Vector values must be one-dimensional, got shape {array.shape}")
    return tuple(array.tolist())


@dataclass(frozen=True)
class Vector:
    """A float32 vector with optional metadata.

    A Vector is immutable; ``updated()`` returns the next version with the
    same ``id`` and ``created_at``. Equality only looks at ``id``, ``values``
    and ``metadata``.
    """

    values: Tuple[float, ...]
    """The vector components, held at float32 precision"""

    metadata: Optional[Dict[str, TaggedValue]] = None
    """Optional metadata; plain Python values are converted to TaggedValue"""

    id: str = field(default_factory=_new_id)
    """Unique identifier, generated when not supplied"""

    created_at: datetime = field(default_factory=_utcnow, compare=False)
    updated_at: Optional[datetime] = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "values", to_float32(self.values))
        object.__setattr__(self, "metadata", coerce_metadata(self.metadata))
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "created_at", _as_utc(self.created_at))
        if self.updated_at is None:
            object.__setattr__(self, "updated_at", self.created_at)
        object.__setattr__(self, "updated_at", _as_utc(self.updated_at))

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def dimension(self) -> int:
        return len(self.values)

    @property
    def magnitude(self) -> float:
        """The L2 norm of the vector."""
        return metrics.magnitude(self.values)

    def updated(self, values: Optional[Sequence[float]] = None,
                metadata: Optional[Mapping[str, Any]] = None) -> "Vector":
        """Return a new version with replaced values and/or metadata."""
        # updated_at strictly increases across versions
        now = max(_utcnow(), self.updated_at + timedelta(microseconds=1))
        return Vector(
            values=self.values if values is None else values,
            metadata=self.metadata if metadata is None else metadata,
            id=self.id,
            created_at=self.created_at,
            updated_at=now,
        )

    def normalized(self) -> "Vector":
        """Return a unit-length copy. Raises ZeroMagnitudeError for a zero vector."""
        return Vector(
            values=metrics.normalize(self.values),
            metadata=self.metadata,
            id=self.id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def metadata_value(self, key: str, default: Any = None) -> Any:
        """Plain Python value stored under ``key``, or ``default``."""
        if not self.metadata or key not in self.metadata:
            return default
        return self.metadata[key].to_python()

    def metadata_dict(self) -> Optional[Dict[str, Any]]:
        return metadata_to_python(self.metadata)

    def dot_product(self, other: "Vector") -> float:
        return metrics.dot(self.values, other.values)

    def cosine_similarity(self, other: "Vector") -> float:
        return metrics.cosine(self.values, other.values)

    def euclidean_distance(self, other: "Vector") -> float:
        return metrics.euclidean(self.values, other.values)


class DistanceMetric(str, Enum):
    """Distance metrics supported by similarity search."""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOT_PRODUCT = "dot_product"

    @property
    def description(self) -> str:
        return {
            DistanceMetric.COSINE: "Cosine Similarity",
            DistanceMetric.EUCLIDEAN: "Euclidean Distance",
            DistanceMetric.DOT_PRODUCT: "Dot Product",
        }[self]

    @property
    def is_distance(self) -> bool:
        """True when lower values rank better."""
        return self is DistanceMetric.EUCLIDEAN


@dataclass(frozen=True)
class SearchOptions:
    """Options for configuring similarity search."""

    metric: DistanceMetric = DistanceMetric.COSINE
    normalize_query: bool = False
    normalize_stored: bool = False
    metadata_filter: Optional[Callable[[Vector], bool]] = None

    def __post_init__(self):
        object.__setattr__(self, "metric", DistanceMetric(self.metric))


@dataclass(frozen=True)
class SearchResult:
    """A matched vector with its score.

    ``score`` is higher-is-better for every metric; ``distance`` is only set
    for euclidean searches.
    """

    vector: Vector
    score: float
    distance: Optional[float] = None
