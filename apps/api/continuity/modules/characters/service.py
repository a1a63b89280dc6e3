from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from continuity.core.database import Database
from continuity.modules.costumes.schemas import COSTUMES

from .schemas import CHARACTERS


def _by_name(doc: Mapping[str, Any]) -> str:
    return str(doc.get("name") or "").casefold()


def add_character(db: Database, data: Mapping[str, Any]) -> Dict[str, Any]:
    return db.store.insert(CHARACTERS, data)


def list_characters(db: Database) -> List[Dict[str, Any]]:
    """Alphabetical by name (case-insensitive); ties keep insertion order."""
    return sorted(db.store.find_all(CHARACTERS), key=_by_name)


def get_character(db: Database, character_id: str) -> Optional[Dict[str, Any]]:
    return db.store.find_by_id(CHARACTERS, character_id)


def update_character(db: Database, character_id: str, patch: Mapping[str, Any]) -> Dict[str, Any]:
    return db.store.update(CHARACTERS, character_id, patch)


def delete_character(db: Database, character_id: str) -> Dict[str, Any]:
    """Also unassigns the character from costumes and removes it from scenes."""
    return db.store.delete(CHARACTERS, character_id)


def get_costumes_by_character_id(db: Database, character_id: str) -> List[Dict[str, Any]]:
    return db.references.referrers(COSTUMES, "character", character_id)


def assign_costume_to_character(db: Database, costume_id: str, character_id: str) -> Dict[str, Any]:
    return db.references.link(COSTUMES, costume_id, "character", character_id)


def unassign_costume_from_character(db: Database, costume_id: str, character_id: Optional[str] = None) -> Dict[str, Any]:
    return db.references.unlink(COSTUMES, costume_id, "character", character_id)
