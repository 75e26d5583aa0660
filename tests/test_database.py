"""
Tests for VectorDatabase - store and index kept in sync.
"""

from unittest.mock import patch

import pytest

from vectorbase import VectorDatabase, VectorDatabaseConfig
from vectorbase.core.errors import (
    BackingStoreError,
    DimensionMismatchError,
    NotInitializedError,
    VectorNotFoundError,
)
from vectorbase.vector.types import DistanceMetric, SearchOptions, Vector


@pytest.fixture(params=["brute_force", "vectorized"])
def db(request, tmp_path):
    database = VectorDatabase.create(str(tmp_path / "vectors.db"), search_type=request.param)
    yield database
    database.close()


def ids(results):
    return [r.vector.id for r in results]


def test_create_in_memory():
    with VectorDatabase.create_in_memory() as db:
        assert db.is_ready()
        assert db.count() == 0
        assert db.get_config().database_path == ":memory:"


def test_insert_is_searchable(db):
    db.insert_batch([
        Vector([1.0, 0.0], id="v1"),
        Vector([0.0, 1.0], id="v2"),
        Vector([1.0, 1.0], id="v3"),
    ])
    results = db.search(Vector([1.0, 0.0]), 2)
    assert ids(results) == ["v1", "v3"]
    assert results[1].score == pytest.approx(0.7071, abs=1e-4)
    assert db.index.count() == db.count() == 3


def test_update_and_delete_are_mirrored(db):
    v = Vector([0.0, 1.0], id="moving")
    db.insert(v)
    db.insert(Vector([1.0, 0.1], id="anchor"))

    db.update(v.updated(values=[1.0, 0.0]))
    assert ids(db.search_by_values([1.0, 0.0], 1)) == ["moving"]

    db.delete("moving")
    assert ids(db.search_by_values([1.0, 0.0], 5)) == ["anchor"]
    assert not db.exists("moving")


def test_clear(db):
    db.insert(Vector([1.0], id="a"))
    db.clear()
    assert db.count() == 0
    assert db.index.count() == 0


class TestFailedMutations:
    """A rejected store mutation leaves the index untouched."""

    def test_duplicate_insert(self, db):
        db.insert(Vector([1.0, 0.0], id="a"))
        with pytest.raises(BackingStoreError):
            db.insert(Vector([0.0, 1.0], id="a"))
        assert db.index.count() == 1

    def test_update_missing(self, db):
        with pytest.raises(VectorNotFoundError):
            db.update(Vector([1.0], id="ghost"))
        assert db.index.count() == 0

    def test_delete_missing(self, db):
        db.insert(Vector([1.0], id="a"))
        with pytest.raises(VectorNotFoundError):
            db.delete("ghost")
        assert db.index.count() == 1

    def test_dimension_rejected(self, tmp_path):
        with VectorDatabase.create(str(tmp_path / "dim.db"), expected_dimension=3) as db:
            with pytest.raises(DimensionMismatchError):
                db.insert(Vector([1.0, 2.0]))
            db.insert(Vector([1.0, 2.0, 3.0]))
            assert db.index.count() == 1

    def test_index_not_touched_when_store_fails(self, db):
        with patch.object(db.store, "insert", side_effect=BackingStoreError("disk full")):
            with patch.object(db.index, "add_vectors") as add_vectors:
                with pytest.raises(BackingStoreError):
                    db.insert(Vector([1.0]))
                add_vectors.assert_not_called()

    def test_partial_batch_mirrors_committed_prefix(self, db):
        batch = [Vector([1.0, 0.0], id="a"), Vector([0.0, 1.0], id="b"), Vector([1.0, 1.0], id="a")]
        with pytest.raises(BackingStoreError) as exc_info:
            db.insert_batch(batch)

        assert exc_info.value.committed == 2
        assert db.count() == 2
        assert db.index.count() == 2
        assert sorted(ids(db.search_by_values([1.0, 1.0], 10))) == ["a", "b"]


class TestSearch:
    """Orchestrated search entry points."""

    def test_find_similar_excludes_self(self, db):
        db.insert_batch([
            Vector([1.0, 0.0], id="target"),
            Vector([0.9, 0.1], id="close"),
            Vector([0.0, 1.0], id="far"),
        ])
        results = db.find_similar("target", 2)
        assert ids(results) == ["close", "far"]
        assert "target" not in ids(db.find_similar("target", 10))

    def test_find_similar_k(self, db):
        db.insert_batch([Vector([1.0, 0.0], id="a"), Vector([1.0, 0.1], id="b")])
        assert db.find_similar("a", 0) == []
        assert len(db.find_similar("a", 1)) == 1

    def test_find_similar_missing(self, db):
        with pytest.raises(VectorNotFoundError):
            db.find_similar("ghost", 3)

    def test_find_similar_missing_with_zero_k(self, db):
        """A missing id is reported even when no neighbours are requested."""
        with pytest.raises(VectorNotFoundError):
            db.find_similar("ghost", 0)

    def test_batch_search_keeps_order(self, db):
        db.insert_batch([Vector([1.0, 0.0], id="x"), Vector([0.0, 1.0], id="y")])
        results = db.batch_search([Vector([0.0, 1.0]), Vector([1.0, 0.0])], 1)
        assert [ids(r) for r in results] == [["y"], ["x"]]

    def test_threshold_by_values(self, db):
        db.insert_batch([Vector([1.0, 0.0], id="x"), Vector([0.0, 1.0], id="y")])
        options = SearchOptions(metric=DistanceMetric.EUCLIDEAN)
        results = db.search_by_values_threshold([1.0, 0.0], 0.5, options=options)
        assert ids(results) == ["x"]
        assert ids(db.search_threshold(Vector([0.0, 1.0]), 0.9)) == ["y"]

    def test_default_options_from_config(self, tmp_path):
        config = VectorDatabaseConfig(
            database_path=str(tmp_path / "opts.db"),
            default_search_options=SearchOptions(metric=DistanceMetric.EUCLIDEAN),
        )
        with VectorDatabase(config) as db:
            db.insert_batch([Vector([2.0, 0.0], id="same-direction"), Vector([0.1, 0.1], id="near")])
            results = db.search_by_values([0.0, 0.0], 2)
            assert ids(results) == ["near", "same-direction"]
            assert results[0].distance is not None


def test_reopen_reloads_index(tmp_path):
    path = str(tmp_path / "persist.db")
    with VectorDatabase.create(path) as db:
        db.insert_batch([Vector([1.0, 0.0], id="a"), Vector([0.0, 1.0], id="b")])

    with VectorDatabase.create(path, search_type="vectorized") as db:
        assert db.index.count() == 2
        assert ids(db.search_by_values([0.0, 1.0], 1)) == ["b"]


def test_statistics(db):
    db.insert_batch([
        Vector([1.0, 2.0], id="a"),
        Vector([1.0, 2.0, 3.0], id="b"),
        Vector([1.0, 2.0, 3.0], id="c"),
    ])
    stats = db.get_statistics()
    assert stats.total_vectors == 3
    assert stats.unique_dimensions == 2
    assert stats.average_dimension == 2
    assert stats.search_engine_type == db.index.name
    assert stats.database_path == db.get_config().database_path


def test_statistics_empty(db):
    stats = db.get_statistics()
    assert stats.total_vectors == 0
    assert stats.average_dimension == 0


def test_closed_database(tmp_path):
    db = VectorDatabase.create(str(tmp_path / "closed.db"))
    db.close()
    assert not db.is_ready()
    with pytest.raises(NotInitializedError):
        db.insert(Vector([1.0]))
    with pytest.raises(NotInitializedError):
        db.count()
