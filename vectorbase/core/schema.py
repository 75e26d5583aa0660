"""
Wire schemas for the JSON export format and the database statistics record.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..vector.types import Vector


class VectorRecordModel(BaseModel):
    """One exported vector: ``{id, values, metadata, createdAt, updatedAt}``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    values: List[float]
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_validator('id')
    @classmethod
    def id_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('id cannot be empty')
        return v

    @field_validator('created_at', 'updated_at')
    @classmethod
    def assume_utc(cls, v):
        # Naive timestamps are read as UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_vector(cls, vector: Vector) -> "VectorRecordModel":
        return cls(
            id=vector.id,
            values=list(vector.values),
            metadata=vector.metadata_dict(),
            created_at=vector.created_at,
            updated_at=vector.updated_at,
        )

    def to_vector(self) -> Vector:
        return Vector(
            values=self.values,
            metadata=self.metadata,
            id=self.id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


@dataclass
class DatabaseStatistics:
    total_vectors: int
    unique_dimensions: int
    average_dimension: int
    search_engine_type: str
    database_path: str
