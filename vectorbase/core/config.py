"""
Configuration - environment-driven defaults, the database config model and
the search index factory.
"""

import os
from enum import Enum
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..vector.index import ISearchIndex
from ..vector.types import DistanceMetric, SearchOptions
from ..util.logging import logger

# Load environment variables from .env file
load_dotenv()

# Database path configuration
DB_PATH = os.getenv("VECTORBASE_DB_PATH", "./data/vectors.db")

# Store-wide dimension constraint (unset = any dimension accepted)
EXPECTED_DIMENSION = os.getenv("VECTORBASE_EXPECTED_DIMENSION")

# Search configuration
SEARCH_TYPE = os.getenv("VECTORBASE_SEARCH_TYPE", "brute_force")  # brute_force|vectorized
DEFAULT_METRIC = os.getenv("VECTORBASE_DEFAULT_METRIC", "cosine")  # cosine|euclidean|dot_product
NORMALIZE_QUERY = os.getenv("VECTORBASE_NORMALIZE_QUERY", "false").lower() == "true"
NORMALIZE_STORED = os.getenv("VECTORBASE_NORMALIZE_STORED", "false").lower() == "true"

# Version string
VERSION = "1.0.0"


class SearchType(str, Enum):
    """Available search index strategies."""

    BRUTE_FORCE = "brute_force"
    VECTORIZED = "vectorized"


class VectorDatabaseConfig(BaseModel):
    """Configuration options for a VectorDatabase."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    database_path: str = DB_PATH
    expected_dimension: Optional[int] = None
    search_type: SearchType = SearchType.BRUTE_FORCE
    default_search_options: SearchOptions = Field(default_factory=SearchOptions)

    @field_validator('database_path')
    @classmethod
    def path_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('database_path cannot be empty')
        return v

    @field_validator('expected_dimension')
    @classmethod
    def dimension_must_be_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError('expected_dimension must be a positive integer')
        return v


def get_search_index(search_type=SEARCH_TYPE) -> ISearchIndex:
    """Get the configured search index implementation."""
    if search_type == SearchType.VECTORIZED:
        from ..vector.batch_index import VectorizedSearchIndex
        return VectorizedSearchIndex()
    else:
        # Default to brute force for unknown types
        from ..vector.index import BruteForceSearchIndex
        return BruteForceSearchIndex()


def get_expected_dimension() -> Optional[int]:
    """Get the configured dimension constraint, or None when unset or invalid."""
    if EXPECTED_DIMENSION in (None, ""):
        return None
    try:
        dimension = int(EXPECTED_DIMENSION)
    except ValueError:
        logger.warning(f"Ignoring invalid VECTORBASE_EXPECTED_DIMENSION: {EXPECTED_DIMENSION}")
        return None
    if dimension <= 0:
        logger.warning(f"Ignoring non-positive VECTORBASE_EXPECTED_DIMENSION: {EXPECTED_DIMENSION}")
        return None
    return dimension


def get_default_search_options() -> SearchOptions:
    """Build default SearchOptions from the environment."""
    if DEFAULT_METRIC in [m.value for m in DistanceMetric]:
        metric = DistanceMetric(DEFAULT_METRIC)
    else:
        # Default to cosine for unknown metrics
        logger.warning(f"Ignoring invalid VECTORBASE_DEFAULT_METRIC: {DEFAULT_METRIC}")
        metric = DistanceMetric.COSINE
    return SearchOptions(
        metric=metric,
        normalize_query=NORMALIZE_QUERY,
        normalize_stored=NORMALIZE_STORED,
    )


def config_from_env() -> VectorDatabaseConfig:
    """Build a VectorDatabaseConfig from VECTORBASE_* environment variables."""
    return VectorDatabaseConfig(
        database_path=DB_PATH,
        expected_dimension=get_expected_dimension(),
        search_type=SEARCH_TYPE if SEARCH_TYPE in [t.value for t in SearchType] else SearchType.BRUTE_FORCE,
        default_search_options=get_default_search_options(),
    )


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("VECTORBASE_DEBUG", "false").lower() == "true"


def ensure_db_directory(database_path: str = DB_PATH):
    """Ensure the database directory exists."""
    if database_path != ":memory:":
        Path(database_path).parent.mkdir(parents=True, exist_ok=True)


def validate_config() -> List[str]:
    """Validate environment configuration and return any issues."""
    issues = []

    if SEARCH_TYPE not in [t.value for t in SearchType]:
        issues.append(f"Invalid VECTORBASE_SEARCH_TYPE: {SEARCH_TYPE}")

    if DEFAULT_METRIC not in [m.value for m in DistanceMetric]:
        issues.append(f"Invalid VECTORBASE_DEFAULT_METRIC: {DEFAULT_METRIC}")

    if EXPECTED_DIMENSION not in (None, ""):
        try:
            if int(EXPECTED_DIMENSION) <= 0:
                issues.append("VECTORBASE_EXPECTED_DIMENSION must be >= 1")
        except ValueError:
            issues.append(f"Invalid VECTORBASE_EXPECTED_DIMENSION: {EXPECTED_DIMENSION}")

    return issues
