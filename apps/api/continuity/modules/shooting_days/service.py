from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from continuity.core.database import Database
from continuity.core.errors import NotFoundError
from continuity.modules.characters.schemas import CHARACTERS
from continuity.modules.costumes.schemas import COSTUMES
from continuity.modules.scenes.service import find_by_shooting_day

from .schemas import DEFAULT_STATUS, SHOOTING_DAYS

# not a document id; serializes concurrent first callers
DEFAULT_DAY_LOCK = "__default__"


def add_shooting_day(db: Database, data: Mapping[str, Any]) -> Dict[str, Any]:
    return db.store.insert(SHOOTING_DAYS, data)


def list_shooting_days(db: Database) -> List[Dict[str, Any]]:
    """By date; same-day entries keep insertion order."""
    return sorted(db.store.find_all(SHOOTING_DAYS), key=lambda d: d.get("date") or "")


def get_shooting_day(db: Database, shooting_day_id: str) -> Optional[Dict[str, Any]]:
    return db.store.find_by_id(SHOOTING_DAYS, shooting_day_id)


def update_shooting_day(db: Database, shooting_day_id: str, patch: Mapping[str, Any]) -> Dict[str, Any]:
    return db.store.update(SHOOTING_DAYS, shooting_day_id, patch)


def delete_shooting_day(db: Database, shooting_day_id: str) -> Dict[str, Any]:
    """Scenes planned on this day lose their shooting_day."""
    return db.store.delete(SHOOTING_DAYS, shooting_day_id)


def ensure_default_shooting_day(db: Database, today: Optional[date] = None) -> Dict[str, Any]:
    """Returns the earliest shooting day, creating a Planned one for today if none exist."""
    with db.store.locked(SHOOTING_DAYS, DEFAULT_DAY_LOCK):
        existing = list_shooting_days(db)
        if existing:
            return existing[0]
        day = (today or date.today()).isoformat()
        return db.store.insert(SHOOTING_DAYS, {"date": day, "location": "", "status": DEFAULT_STATUS})


def get_shooting_day_overview(db: Database, shooting_day_id: str) -> Dict[str, Any]:
    """
    Scenes of the day (by scene number) and, for every character appearing in
    them, the character's costumes that are linked to one of those scenes.
    """
    day = get_shooting_day(db, shooting_day_id)
    if day is None:
        raise NotFoundError(SHOOTING_DAYS, shooting_day_id)

    scenes = find_by_shooting_day(db, shooting_day_id)
    scene_ids = {s["id"] for s in scenes}

    character_ids: List[str] = []
    for s in scenes:
        for cid in s.get("characters") or []:
            if cid not in character_ids:
                character_ids.append(cid)

    listed_on_scene = {cid for s in scenes for cid in s.get("costumes") or []}

    characters: List[Dict[str, Any]] = []
    for cid in character_ids:
        character = db.store.find_by_id(CHARACTERS, cid)
        if character is None:
            continue
        costumes = [
            c
            for c in db.references.referrers(COSTUMES, "character", cid)
            if c["id"] in listed_on_scene or scene_ids.intersection(c.get("scenes") or [])
        ]
        characters.append({"character": character, "costumes": costumes})

    return {"shooting_day": day, "scenes": scenes, "characters": characters}
