# tests/test_documents.py
"""
Unit tests for the document store (CRUD, selectors, timestamps, locking).
"""

import threading
import uuid

import pytest

from continuity.catalog import create_database
from continuity.core.documents import _next_timestamp, matches
from continuity.core.errors import DuplicateKeyError, NotFoundError, SchemaError, ValidationError
from continuity.modules.characters.schemas import CHARACTERS
from continuity.modules.costumes.schemas import COSTUMES
from continuity.modules.scenes.schemas import SCENES

from conftest import sqlite_url

FIXED = "2024-03-20T10:00:00.000000Z"


@pytest.fixture
def frozen_db(tmp_path):
    db = create_database(url=sqlite_url(tmp_path / "frozen.db"), storage_root=tmp_path / "storage", clock=lambda: FIXED)
    db.initialize()
    yield db
    db.shutdown()


def test_insert_generates_uuid_and_timestamps(database):
    doc = database.store.insert(CHARACTERS, {"name": "Alice"})
    assert uuid.UUID(doc["id"]).version == 4
    assert doc["created_at"] == doc["updated_at"]
    assert database.store.find_by_id(CHARACTERS, doc["id"]) == doc


def test_insert_keeps_given_id(database):
    doc = database.store.insert(CHARACTERS, {"id": "alice", "name": "Alice"})
    assert doc["id"] == "alice"


def test_insert_duplicate_id(database):
    database.store.insert(CHARACTERS, {"id": "alice", "name": "Alice"})
    with pytest.raises(DuplicateKeyError):
        database.store.insert(CHARACTERS, {"id": "alice", "name": "Other"})
    assert database.store.count(CHARACTERS) == 1


def test_insert_invalid_persists_nothing(database):
    with pytest.raises(ValidationError):
        database.store.insert(CHARACTERS, {"name": ""})
    assert database.store.find_all(CHARACTERS) == []


def test_find_by_id_missing_returns_none(database):
    assert database.store.find_by_id(COSTUMES, "nope") is None


def test_unknown_collection(database):
    with pytest.raises(SchemaError):
        database.store.find_all("props")


def test_find_keeps_insertion_order(database):
    names = ["Zoe", "Adam", "Mia"]
    for n in names:
        database.store.insert(CHARACTERS, {"name": n})
    assert [d["name"] for d in database.store.find_all(CHARACTERS)] == names


def test_find_by_selector(database):
    database.store.insert(SCENES, {"id": "s1", "scene_number": 1, "characters": ["c1", "c2"]})
    database.store.insert(SCENES, {"id": "s2", "scene_number": 2, "characters": ["c2"]})
    database.store.insert(SCENES, {"id": "s3", "scene_number": 3, "location": "Forest"})

    assert [d["id"] for d in database.store.find(SCENES, {"characters": "c1"})] == ["s1"]
    assert [d["id"] for d in database.store.find(SCENES, {"characters": "c2"})] == ["s1", "s2"]
    assert [d["id"] for d in database.store.find(SCENES, {"location": "Forest"})] == ["s3"]
    assert [d["id"] for d in database.store.find(SCENES, lambda d: d["scene_number"] > 1)] == ["s2", "s3"]


def test_matches_list_equality():
    assert matches({"scenes": ["a", "b"]}, {"scenes": ["a", "b"]})
    assert not matches({"scenes": ["a", "b"]}, {"scenes": ["a"]})
    assert matches({"x": 1}, None)


def test_update_is_shallow_merge(database):
    doc = database.store.insert(SCENES, {"scene_number": 1, "characters": ["a", "b"], "location": "Forest"})
    updated = database.store.update(SCENES, doc["id"], {"characters": ["c"]})
    assert updated["characters"] == ["c"]
    assert updated["location"] == "Forest"
    assert updated["created_at"] == doc["created_at"]


def test_update_missing_document(database):
    with pytest.raises(NotFoundError):
        database.store.update(COSTUMES, "nonexistent-id", {"name": "x"})


def test_empty_patch_only_changes_updated_at(frozen_db):
    doc = frozen_db.store.insert(CHARACTERS, {"name": "Alice", "actor": "Ann"})
    touched = frozen_db.store.update(CHARACTERS, doc["id"], {})
    assert touched["updated_at"] > doc["updated_at"]
    assert {k: v for k, v in touched.items() if k != "updated_at"} == {k: v for k, v in doc.items() if k != "updated_at"}


def test_updated_at_strictly_increases_with_frozen_clock(frozen_db):
    doc = frozen_db.store.insert(CHARACTERS, {"name": "Alice"})
    stamps = [doc["updated_at"]]
    for _ in range(3):
        stamps.append(frozen_db.store.touch(CHARACTERS, doc["id"])["updated_at"])
    assert stamps == sorted(set(stamps))


def test_next_timestamp():
    assert _next_timestamp(None, FIXED) == FIXED
    assert _next_timestamp("2024-03-20T09:00:00.000000Z", FIXED) == FIXED
    assert _next_timestamp(FIXED, FIXED) == "2024-03-20T10:00:00.000001Z"


def test_update_rejects_id_change(database):
    doc = database.store.insert(CHARACTERS, {"name": "Alice"})
    with pytest.raises(ValidationError) as ei:
        database.store.update(CHARACTERS, doc["id"], {"id": "other"})
    assert ei.value.errors[0]["type"] == "immutable"
    assert database.store.find_by_id(CHARACTERS, doc["id"]) == doc


def test_update_rejects_unknown_field(database):
    doc = database.store.insert(CHARACTERS, {"name": "Alice"})
    with pytest.raises(ValidationError) as ei:
        database.store.update(CHARACTERS, doc["id"], {"hat": "red"})
    assert ei.value.errors == [{"field": "hat", "message": "Extra inputs are not permitted", "type": "extra_forbidden"}]


def test_modify_returning_none_is_a_no_op(database):
    seen = []
    database.store.add_change_listener(lambda *args: seen.append(args))
    doc = database.store.insert(CHARACTERS, {"name": "Alice"})
    seen.clear()
    assert database.store.modify(CHARACTERS, doc["id"], lambda current: None) == doc
    assert seen == []


def test_delete(database):
    doc = database.store.insert(CHARACTERS, {"name": "Alice"})
    removed = database.store.delete(CHARACTERS, doc["id"])
    assert removed == doc
    assert database.store.find_by_id(CHARACTERS, doc["id"]) is None
    with pytest.raises(NotFoundError):
        database.store.delete(CHARACTERS, doc["id"])


def test_concurrent_read_modify_write_loses_no_update(database):
    scene = database.store.insert(SCENES, {"scene_number": 1})
    ids = [f"c{i}" for i in range(20)]

    def add(cid):
        database.store.modify(SCENES, scene["id"], lambda cur: {"characters": cur["characters"] + [cid]})

    threads = [threading.Thread(target=add, args=(cid,)) for cid in ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(database.store.find_by_id(SCENES, scene["id"])["characters"]) == sorted(ids)


def test_in_memory_database(tmp_path):
    with create_database(url="sqlite://", storage_root=tmp_path / "storage") as db:
        doc = db.store.insert(CHARACTERS, {"name": "Alice"})
        assert db.store.find_by_id(CHARACTERS, doc["id"]) == doc


def test_components_require_initialize(tmp_path):
    db = create_database(url=sqlite_url(tmp_path / "x.db"), storage_root=tmp_path / "storage")
    with pytest.raises(RuntimeError):
        db.store
    db.initialize()
    db.initialize()
    assert db.initialized
    db.shutdown()
    assert not db.initialized


def test_document_locks_are_released(database):
    doc = database.store.insert(CHARACTERS, {"name": "Alice"})
    database.store.update(CHARACTERS, doc["id"], {"actor": "Ann"})
    database.store.delete(CHARACTERS, doc["id"])
    assert len(database.store._locks) == 0


def test_document_lock_survives_while_held(database):
    doc = database.store.insert(CHARACTERS, {"name": "Alice"})
    with database.store.locked(CHARACTERS, doc["id"]):
        with database.store.locked(CHARACTERS, doc["id"]):
            database.store.touch(CHARACTERS, doc["id"])
        assert len(database.store._locks) == 1
    assert len(database.store._locks) == 0
