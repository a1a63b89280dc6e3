from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from continuity.core.database import Database
from continuity.core.errors import ValidationError
from continuity.core.live import Callback, LiveQuery, Snapshot

from .schemas import COSTUMES


def add_costume(db: Database, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    return db.store.insert(COSTUMES, data or {})


def list_costumes(db: Database) -> List[Dict[str, Any]]:
    return db.store.find_all(COSTUMES)


def get_costume(db: Database, costume_id: str) -> Optional[Dict[str, Any]]:
    return db.store.find_by_id(COSTUMES, costume_id)


def update_costume(db: Database, costume_id: str, patch: Mapping[str, Any]) -> Dict[str, Any]:
    return db.store.update(COSTUMES, costume_id, patch)


def delete_costume(db: Database, costume_id: str) -> Dict[str, Any]:
    return db.store.delete(COSTUMES, costume_id)


# -------------------------
# live queries
# -------------------------
def watch_costumes(db: Database, callback: Callback) -> Tuple[int, Snapshot]:
    return db.live.subscribe(LiveQuery(COSTUMES), callback)


def watch_costume(db: Database, costume_id: str, callback: Callback) -> Tuple[int, Snapshot]:
    return db.live.subscribe(LiveQuery(COSTUMES, doc_id=costume_id), callback)


def unwatch(db: Database, handle: int) -> bool:
    return db.live.unsubscribe(handle)


# -------------------------
# photos
# -------------------------
def _photo_url(meta: Mapping[str, Any]) -> str:
    return f"/costumes/{meta['parent_id']}/photos/{meta['id']}"


def _with_url(meta: Dict[str, Any]) -> Dict[str, Any]:
    meta["url"] = _photo_url(meta)
    return meta


def add_photo(db: Database, costume_id: str, data: bytes, content_type: str, filename: Optional[str] = None) -> Dict[str, Any]:
    ct = (content_type or "").split(";")[0].strip().lower()
    if not ct.startswith("image/"):
        raise ValidationError(COSTUMES, [{"field": "content_type", "message": "photos must be image/*", "type": "content_type"}])
    return _with_url(db.attachments.add(COSTUMES, costume_id, data, ct, filename=filename))


def list_photos(db: Database, costume_id: str) -> List[Dict[str, Any]]:
    return [_with_url(m) for m in db.attachments.list_all(COSTUMES, costume_id)]


def get_photo(db: Database, costume_id: str, photo_id: str) -> Tuple[Dict[str, Any], bytes]:
    meta = db.attachments.get_meta(COSTUMES, costume_id, photo_id)
    return _with_url(meta), db.attachments.get(COSTUMES, costume_id, photo_id)


def remove_photo(db: Database, costume_id: str, photo_id: str) -> Dict[str, Any]:
    return _with_url(db.attachments.remove(COSTUMES, costume_id, photo_id))
