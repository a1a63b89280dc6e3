# tests/test_references.py
"""
Unit tests for reference resolution, linking and cleanup on delete.
"""

import threading
import time

import pytest

from continuity.core.errors import NotFoundError, SchemaError
from continuity.core.references import Reference
from continuity.modules.characters.schemas import CHARACTERS
from continuity.modules.costumes.schemas import COSTUMES
from continuity.modules.scenes.schemas import SCENES
from continuity.modules.shooting_days.schemas import SHOOTING_DAYS


@pytest.fixture
def refs(database):
    return database.references


def test_declare_unknown_field(refs):
    with pytest.raises(SchemaError):
        refs.declare(Reference(COSTUMES, "hat", CHARACTERS))


def test_reference_on_plain_field(refs):
    with pytest.raises(SchemaError):
        refs.reference(COSTUMES, "notes")


def test_resolve_single(database, refs):
    alice = database.store.insert(CHARACTERS, {"name": "Alice"})
    costume = database.store.insert(COSTUMES, {"character": alice["id"]})
    assert refs.resolve(COSTUMES, costume, "character") == alice


def test_resolve_unassigned_and_dangling(database, refs):
    costume = database.store.insert(COSTUMES, {})
    assert refs.resolve(COSTUMES, costume, "character") is None
    dangling = database.store.insert(COSTUMES, {"character": "ghost"})
    assert refs.resolve(COSTUMES, dangling, "character") is None


def test_resolve_many_skips_dangling(database, refs):
    s1 = database.store.insert(SCENES, {"scene_number": 1})
    costume = database.store.insert(COSTUMES, {"scenes": [s1["id"], "ghost"]})
    assert refs.resolve(COSTUMES, costume, "scenes") == [s1]


def test_link_requires_existing_target(database, refs):
    costume = database.store.insert(COSTUMES, {})
    with pytest.raises(NotFoundError):
        refs.link(COSTUMES, costume["id"], "character", "ghost")


def test_link_many_is_idempotent(database, refs):
    s1 = database.store.insert(SCENES, {"scene_number": 1})
    costume = database.store.insert(COSTUMES, {})
    first = refs.link(COSTUMES, costume["id"], "scenes", s1["id"])
    again = refs.link(COSTUMES, costume["id"], "scenes", s1["id"])
    assert first["scenes"] == [s1["id"]]
    assert again == first


def test_unlink_single_only_clears_matching_target(database, refs):
    alice = database.store.insert(CHARACTERS, {"name": "Alice"})
    costume = database.store.insert(COSTUMES, {"character": alice["id"]})
    assert refs.unlink(COSTUMES, costume["id"], "character", "someone-else")["character"] == alice["id"]
    assert refs.unlink(COSTUMES, costume["id"], "character")["character"] is None


def test_referrers(database, refs):
    alice = database.store.insert(CHARACTERS, {"name": "Alice"})
    k1 = database.store.insert(COSTUMES, {"character": alice["id"]})
    database.store.insert(COSTUMES, {})
    assert [c["id"] for c in refs.referrers(COSTUMES, "character", alice["id"])] == [k1["id"]]


def test_deleting_character_clears_every_reference(database):
    alice = database.store.insert(CHARACTERS, {"name": "Alice"})
    bob = database.store.insert(CHARACTERS, {"name": "Bob"})
    k1 = database.store.insert(COSTUMES, {"character": alice["id"]})
    k2 = database.store.insert(COSTUMES, {"character": bob["id"]})
    s1 = database.store.insert(SCENES, {"scene_number": 1, "characters": [alice["id"], bob["id"]]})

    database.store.delete(CHARACTERS, alice["id"])

    assert database.store.find_by_id(COSTUMES, k1["id"])["character"] is None
    assert database.store.find_by_id(COSTUMES, k2["id"])["character"] == bob["id"]
    assert database.store.find_by_id(SCENES, s1["id"])["characters"] == [bob["id"]]


def test_deleting_scene_clears_costume_scenes(database):
    s1 = database.store.insert(SCENES, {"scene_number": 1})
    s2 = database.store.insert(SCENES, {"scene_number": 2})
    k1 = database.store.insert(COSTUMES, {"scenes": [s1["id"], s2["id"]]})

    database.store.delete(SCENES, s1["id"])

    assert database.store.find_by_id(COSTUMES, k1["id"])["scenes"] == [s2["id"]]


def test_deleting_shooting_day_clears_scene(database):
    day = database.store.insert(SHOOTING_DAYS, {"date": "2024-03-20"})
    s1 = database.store.insert(SCENES, {"scene_number": 1, "shooting_day": day["id"]})

    database.store.delete(SHOOTING_DAYS, day["id"])

    assert database.store.find_by_id(SCENES, s1["id"])["shooting_day"] is None


def test_deleting_costume_clears_scene_costumes(database):
    k1 = database.store.insert(COSTUMES, {})
    s1 = database.store.insert(SCENES, {"scene_number": 1, "costumes": [k1["id"]]})

    database.store.delete(COSTUMES, k1["id"])

    assert database.store.find_by_id(SCENES, s1["id"])["costumes"] == []


def test_on_delete_reports_touched(database, refs):
    assert refs.on_delete(CHARACTERS, "nobody") == 0


def test_link_waits_for_concurrent_target_delete(database, refs):
    alice = database.store.insert(CHARACTERS, {"name": "Alice"})
    costume = database.store.insert(COSTUMES, {})
    errors = []

    def assign():
        try:
            refs.link(COSTUMES, costume["id"], "character", alice["id"])
        except NotFoundError as e:
            errors.append(e)

    with database.store.locked(CHARACTERS, alice["id"]):
        worker = threading.Thread(target=assign)
        worker.start()
        time.sleep(0.1)
        database.store.delete(CHARACTERS, alice["id"])
    worker.join(5)

    assert [e.collection for e in errors] == [CHARACTERS]
    assert database.store.find_by_id(COSTUMES, costume["id"])["character"] is None
