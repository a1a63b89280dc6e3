from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from continuity.core.database import Database
from continuity.core.errors import NotFoundError
from continuity.modules.costumes.schemas import COSTUMES

from .schemas import SCENES


def by_scene_number(doc: Mapping[str, Any]) -> int:
    return int(doc.get("scene_number") or 0)


def add_scene(db: Database, data: Mapping[str, Any]) -> Dict[str, Any]:
    return db.store.insert(SCENES, data)


def list_scenes(db: Database) -> List[Dict[str, Any]]:
    return sorted(db.store.find_all(SCENES), key=by_scene_number)


def get_scene(db: Database, scene_id: str) -> Optional[Dict[str, Any]]:
    return db.store.find_by_id(SCENES, scene_id)


def update_scene(db: Database, scene_id: str, patch: Mapping[str, Any]) -> Dict[str, Any]:
    return db.store.update(SCENES, scene_id, patch)


def delete_scene(db: Database, scene_id: str) -> Dict[str, Any]:
    return db.store.delete(SCENES, scene_id)


def find_by_shooting_day(db: Database, shooting_day_id: str) -> List[Dict[str, Any]]:
    return sorted(db.references.referrers(SCENES, "shooting_day", shooting_day_id), key=by_scene_number)


def list_scenes_for_character(db: Database, character_id: str) -> List[Dict[str, Any]]:
    return sorted(db.references.referrers(SCENES, "characters", character_id), key=by_scene_number)


def assign_character_to_scene(db: Database, scene_id: str, character_id: str) -> Dict[str, Any]:
    return db.references.link(SCENES, scene_id, "characters", character_id)


def unassign_character_from_scene(db: Database, scene_id: str, character_id: str) -> Dict[str, Any]:
    return db.references.unlink(SCENES, scene_id, "characters", character_id)


# Costume <-> Scene is owned by costume.scenes
def assign_costume_to_scene(db: Database, costume_id: str, scene_id: str) -> Dict[str, Any]:
    return db.references.link(COSTUMES, costume_id, "scenes", scene_id)


def unassign_costume_from_scene(db: Database, costume_id: str, scene_id: str) -> Dict[str, Any]:
    return db.references.unlink(COSTUMES, costume_id, "scenes", scene_id)


def list_costumes_for_scene(db: Database, scene_id: str) -> List[Dict[str, Any]]:
    """Costumes listing the scene, then any extra ids kept on scene.costumes."""
    scene = get_scene(db, scene_id)
    if scene is None:
        raise NotFoundError(SCENES, scene_id)
    out = db.references.referrers(COSTUMES, "scenes", scene_id)
    seen = {c["id"] for c in out}
    for c in db.references.resolve(SCENES, scene, "costumes"):
        if c["id"] not in seen:
            seen.add(c["id"])
            out.append(c)
    return out
