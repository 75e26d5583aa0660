"""
Scalar vector math used by the brute-force index and the Vector helpers.

All functions accept any sequence of floats and compute in double precision.
"""

import math
from typing import Sequence, Tuple

from ..core.errors import DimensionMismatchError, ZeroMagnitudeError


def magnitude(values: Sequence[float]) -> float:
    """L2 norm of a vector."""
    return math.sqrt(sum(v * v for v in values))


def normalize(values: Sequence[float]) -> Tuple[float, ...]:
    """Scale a vector to unit length."""
    mag = magnitude(values)
    if mag == 0:
        raise ZeroMagnitudeError()
    return tuple(v / mag for v in values)


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product; the first argument's dimension is the expected one."""
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))
    return sum(x * y for x, y in zip(a, b))


def cosine(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]."""
    product = dot(a, b)
    magnitudes = magnitude(a) * magnitude(b)
    if magnitudes == 0:
        raise ZeroMagnitudeError()
    return product / magnitudes


def euclidean(a: Sequence[float], b: Sequence[float]) -> float:
    """Straight-line distance between two vectors."""
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


def distance_to_score(distance: float) -> float:
    """Map a distance onto (0, 1] so euclidean results carry a score too."""
    return 1.0 / (1.0 + distance)
