"""
Tests for environment-driven configuration and the config model.
"""

import importlib
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from vectorbase.core import config
from vectorbase.core.database import VectorDatabase
from vectorbase.vector.types import DistanceMetric, SearchOptions


@pytest.fixture
def env_config():
    """Reload config under a patched environment, restoring it afterwards."""
    patches = []

    def _load(**env):
        p = patch.dict(os.environ, env)
        p.start()
        patches.append(p)
        return importlib.reload(config)

    yield _load

    for p in reversed(patches):
        p.stop()
    importlib.reload(config)


def test_defaults(env_config):
    cfg = env_config(
        VECTORBASE_DB_PATH="./data/vectors.db",
        VECTORBASE_SEARCH_TYPE="brute_force",
        VECTORBASE_DEFAULT_METRIC="cosine",
        VECTORBASE_EXPECTED_DIMENSION="",
        VECTORBASE_NORMALIZE_QUERY="false",
        VECTORBASE_NORMALIZE_STORED="false",
    )
    built = cfg.config_from_env()

    assert built.database_path == "./data/vectors.db"
    assert built.expected_dimension is None
    assert built.search_type == cfg.SearchType.BRUTE_FORCE
    assert built.default_search_options == SearchOptions()
    assert cfg.validate_config() == []


def test_environment_overrides(env_config, tmp_path):
    cfg = env_config(
        VECTORBASE_DB_PATH=str(tmp_path / "custom.db"),
        VECTORBASE_SEARCH_TYPE="vectorized",
        VECTORBASE_DEFAULT_METRIC="euclidean",
        VECTORBASE_EXPECTED_DIMENSION="384",
        VECTORBASE_NORMALIZE_QUERY="true",
        VECTORBASE_NORMALIZE_STORED="TRUE",
    )
    built = cfg.config_from_env()

    assert built.database_path == str(tmp_path / "custom.db")
    assert built.expected_dimension == 384
    assert built.search_type == "vectorized"
    options = built.default_search_options
    assert options.metric is DistanceMetric.EUCLIDEAN
    assert options.normalize_query is True
    assert options.normalize_stored is True
    assert cfg.get_search_index(built.search_type).name == "vectorized"


def test_unknown_search_type_falls_back(env_config):
    cfg = env_config(VECTORBASE_SEARCH_TYPE="hnsw", VECTORBASE_DEFAULT_METRIC="cosine",
                     VECTORBASE_EXPECTED_DIMENSION="")
    assert cfg.config_from_env().search_type == cfg.SearchType.BRUTE_FORCE
    assert cfg.validate_config() == ["Invalid VECTORBASE_SEARCH_TYPE: hnsw"]


def test_validate_config_reports_issues(env_config):
    cfg = env_config(
        VECTORBASE_SEARCH_TYPE="brute_force",
        VECTORBASE_DEFAULT_METRIC="manhattan",
        VECTORBASE_EXPECTED_DIMENSION="zero",
    )
    issues = cfg.validate_config()
    assert "Invalid VECTORBASE_DEFAULT_METRIC: manhattan" in issues
    assert "Invalid VECTORBASE_EXPECTED_DIMENSION: zero" in issues

    cfg = env_config(VECTORBASE_DEFAULT_METRIC="cosine", VECTORBASE_EXPECTED_DIMENSION="-2")
    assert cfg.validate_config() == ["VECTORBASE_EXPECTED_DIMENSION must be >= 1"]


def test_invalid_metric_and_dimension_fall_back(env_config, tmp_path):
    """Bad metric or dimension values are ignored instead of failing the build."""
    cfg = env_config(
        VECTORBASE_DB_PATH=str(tmp_path / "fallback.db"),
        VECTORBASE_SEARCH_TYPE="brute_force",
        VECTORBASE_DEFAULT_METRIC="manhattan",
        VECTORBASE_EXPECTED_DIMENSION="zero",
    )
    built = cfg.config_from_env()
    assert built.expected_dimension is None
    assert built.default_search_options.metric is DistanceMetric.COSINE

    cfg = env_config(VECTORBASE_EXPECTED_DIMENSION="-2")
    assert cfg.config_from_env().expected_dimension is None

    with VectorDatabase() as db:
        assert db.is_ready()


def test_debug_enabled():
    with patch.dict(os.environ, {"VECTORBASE_DEBUG": "true"}):
        assert config.debug_enabled()
    with patch.dict(os.environ, {"VECTORBASE_DEBUG": "false"}):
        assert not config.debug_enabled()


class TestConfigModel:
    """Validation on VectorDatabaseConfig."""

    def test_rejects_empty_path(self):
        with pytest.raises(ValidationError):
            config.VectorDatabaseConfig(database_path="  ")

    def test_rejects_non_positive_dimension(self):
        with pytest.raises(ValidationError):
            config.VectorDatabaseConfig(database_path=":memory:", expected_dimension=0)

    def test_rejects_unknown_search_type(self):
        with pytest.raises(ValidationError):
            config.VectorDatabaseConfig(database_path=":memory:", search_type="annoy")

    def test_accepts_valid_values(self):
        cfg = config.VectorDatabaseConfig(database_path=":memory:", expected_dimension=3, search_type="vectorized")
        assert cfg.expected_dimension == 3
        assert cfg.search_type == config.SearchType.VECTORIZED
        assert isinstance(cfg.default_search_options, SearchOptions)


def test_ensure_db_directory(tmp_path):
    target = tmp_path / "nested" / "dir" / "vectors.db"
    config.ensure_db_directory(str(target))
    assert target.parent.is_dir()
