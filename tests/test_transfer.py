"""
Tests for JSON and CSV import/export.
"""

import json

import pytest

from vectorbase import VectorDatabase
from vectorbase.core.errors import BackingStoreError, DimensionMismatchError, InvalidDataError
from vectorbase.core.transfer import CSV_HEADER, format_csv_value, vectors_from_json, vectors_to_json
from vectorbase.vector.types import Vector


@pytest.fixture
def source_vectors():
    return [
        Vector([1.0, 0.0, 0.5], metadata={"label": "a", "rank": 1, "tags": ["x", "y"]}, id="a"),
        Vector([0.1, 0.2, 0.3], metadata={"nested": {"ok": True, "weight": 2.5}}, id="b"),
        Vector([-1.0, 3.25, 0.0], id="c"),
    ]


def test_json_export_import_into_fresh_database(tmp_path, source_vectors):
    """Exported vectors import into an empty database unchanged."""
    export_path = tmp_path / "export.json"

    with VectorDatabase.create(str(tmp_path / "source.db")) as source:
        source.insert_batch(source_vectors)
        assert source.export_to_json(export_path) == 3

    with VectorDatabase.create(str(tmp_path / "target.db")) as target:
        assert target.import_from_json(export_path) == 3
        assert target.count() == 3
        assert target.index.count() == 3

        for expected in source_vectors:
            imported = target.get(expected.id)
            assert imported == expected
            assert imported.created_at == expected.created_at
            assert imported.updated_at == expected.updated_at


def test_json_format(tmp_path, source_vectors):
    records = json.loads(vectors_to_json(source_vectors[:1]))
    assert records == [{
        "id": "a",
        "values": [1.0, 0.0, 0.5],
        "metadata": {"label": "a", "rank": 1, "tags": ["x", "y"]},
        "createdAt": records[0]["createdAt"],
        "updatedAt": records[0]["updatedAt"],
    }]
    assert records[0]["createdAt"].startswith(str(source_vectors[0].created_at.year))


def test_invalid_json_documents():
    with pytest.raises(InvalidDataError):
        vectors_from_json("{not json")
    with pytest.raises(InvalidDataError):
        vectors_from_json('{"id": "a"}')
    with pytest.raises(InvalidDataError):
        vectors_from_json('[{"id": "a", "values": [1.0]}]')
    with pytest.raises(InvalidDataError):
        vectors_from_json(
            '[{"id": " ", "values": [1.0], "metadata": null,'
            ' "createdAt": "2024-01-01T00:00:00+00:00", "updatedAt": "2024-01-01T00:00:00+00:00"}]'
        )


def test_import_missing_file(tmp_path):
    with VectorDatabase.create_in_memory() as db:
        with pytest.raises(InvalidDataError):
            db.import_from_json(tmp_path / "missing.json")


def test_import_applies_dimension_constraint(tmp_path, source_vectors):
    export_path = tmp_path / "export.json"
    export_path.write_text(vectors_to_json(source_vectors + [Vector([1.0], id="short")]))

    with VectorDatabase.create(str(tmp_path / "dim.db"), expected_dimension=3) as db:
        with pytest.raises(DimensionMismatchError):
            db.import_from_json(export_path)
        assert db.count() == 3
        assert db.index.count() == 3


def test_partial_import_reloads_index(tmp_path, source_vectors):
    """Records committed before a failing one are searchable, and none twice."""
    export_path = tmp_path / "export.json"
    export_path.write_text(vectors_to_json(source_vectors))

    with VectorDatabase.create(str(tmp_path / "partial.db")) as db:
        db.insert(source_vectors[1])
        with pytest.raises(BackingStoreError):
            db.import_from_json(export_path)

        assert db.count() == 2
        assert db.index.count() == 2
        assert sorted(r.vector.id for r in db.search_by_values([1.0, 1.0, 1.0], 10)) == ["a", "b"]


def test_csv_export(tmp_path):
    csv_path = tmp_path / "out" / "vectors.csv"
    with VectorDatabase.create_in_memory() as db:
        db.insert_batch([
            Vector([1.0, 0.1, -2.5], metadata={"ignored": True}, id="first"),
            Vector([0.3], id="second"),
        ])
        assert db.export_to_csv(csv_path) == 2

    lines = csv_path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        CSV_HEADER,
        'first,3,"1.0;0.1;-2.5"',
        'second,1,"0.3"',
    ]


def test_csv_values_use_float32_repr():
    assert format_csv_value(0.1) == "0.1"
    assert format_csv_value(1 / 3) == "0.33333334"
    assert format_csv_value(2.0) == "2.0"
