"""
Tagged metadata values - a recursive union over bool, int, float, str,
lists and string-keyed maps, with a JSON codec for the metadata blob.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import numpy as np

from ..core.errors import InvalidDataError


class ValueKind(str, Enum):
    """Discriminator for TaggedValue payloads."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    LIST = "list"
    MAP = "map"


@dataclass(frozen=True)
class TaggedValue:
    """A single metadata value together with its kind.

    LIST payloads are tuples of TaggedValue and MAP payloads are dicts of
    str -> TaggedValue, so equality is structural all the way down. Because
    the kind takes part in equality, ``TaggedValue.of(True)`` and
    ``TaggedValue.of(1)`` are different values even though ``True == 1``.
    """

    kind: ValueKind
    value: Any

    @classmethod
    def of(cls, obj: Any) -> "TaggedValue":
        """Build a TaggedValue from a plain Python value (recursively)."""
        if isinstance(obj, TaggedValue):
            return obj
        if isinstance(obj, np.generic):
            return cls.of(obj.item())
        # bool before int: bool is an int subclass
        if isinstance(obj, bool):
            return cls(ValueKind.BOOL, obj)
        if isinstance(obj, int):
            return cls(ValueKind.INT, obj)
        if isinstance(obj, float):
            return cls(ValueKind.FLOAT, obj)
        if isinstance(obj, str):
            return cls(ValueKind.STRING, obj)
        if isinstance(obj, (list, tuple)):
            return cls(ValueKind.LIST, tuple(cls.of(item) for item in obj))
        if isinstance(obj, Mapping):
            return cls(ValueKind.MAP, _coerce_mapping(obj))
        raise InvalidDataError(f"Unsupported metadata value type: {type(obj).__name__}")

    def to_python(self) -> Any:
        """Convert back to plain Python values."""
        if self.kind is ValueKind.LIST:
            return [item.to_python() for item in self.value]
        if self.kind is ValueKind.MAP:
            return {key: item.to_python() for key, item in self.value.items()}
        return self.value

    def __repr__(self) -> str:
        return f"TaggedValue({self.kind.value}, {self.to_python()!r})"


def _coerce_mapping(mapping: Mapping) -> Dict[str, TaggedValue]:
    result = {}
    for key, item in mapping.items():
        if not isinstance(key, str):
            raise InvalidDataError(f"Metadata keys must be strings, got {type(key).__name__}")
        result[key] = TaggedValue.of(item)
    return result


def encode(value: TaggedValue) -> Any:
    """Encode a TaggedValue as a JSON-compatible structure."""
    return value.to_python()


def decode(obj: Any) -> TaggedValue:
    """Decode a JSON-compatible structure produced by :func:`encode`."""
    if obj is None:
        raise InvalidDataError("null is not a valid metadata value")
    return TaggedValue.of(obj)


def coerce_metadata(metadata: Optional[Mapping[str, Any]]) -> Optional[Dict[str, TaggedValue]]:
    """Normalize caller-supplied metadata into a str -> TaggedValue dict."""
    if metadata is None:
        return None
    if not isinstance(metadata, Mapping):
        raise InvalidDataError(f"Metadata must be a mapping, got {type(metadata).__name__}")
    return _coerce_mapping(metadata)


def metadata_to_python(metadata: Optional[Mapping[str, TaggedValue]]) -> Optional[Dict[str, Any]]:
    """Convert a metadata mapping back to plain Python values."""
    if metadata is None:
        return None
    return {key: encode(value) for key, value in metadata.items()}


def dumps_metadata(metadata: Mapping[str, TaggedValue]) -> bytes:
    """Serialize a metadata mapping to a UTF-8 JSON document."""
    return json.dumps(metadata_to_python(metadata), sort_keys=True).encode("utf-8")


def loads_metadata(blob: bytes) -> Dict[str, TaggedValue]:
    """Deserialize a metadata document written by :func:`dumps_metadata`."""
    try:
        parsed = json.loads(bytes(blob).decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise InvalidDataError(f"Corrupt metadata document: {e}") from e

    if not isinstance(parsed, dict):
        raise InvalidDataError("Metadata document must be a JSON object")

    return {key: decode(item) for key, item in parsed.items()}
