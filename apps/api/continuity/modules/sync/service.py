"""
Cloud sync entry points.

Nothing is implemented yet: every call logs and returns a status dict. They
must never raise, callers do not depend on them.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from continuity.core.database import Database
from continuity.core.events import emit

STATUS_NOT_IMPLEMENTED = "not_implemented"


def is_sync_enabled(*, default: bool = False) -> bool:
    """
    Feature flag:
      SYNC_ENABLED=0 -> off
      SYNC_ENABLED=1 -> on (still a no-op until an adapter exists)
    """
    v = os.environ.get("SYNC_ENABLED")
    if v is None:
        return default
    v = v.strip().lower()
    return v not in ("0", "false", "no", "")


@dataclass(frozen=True)
class SyncResult:
    status: str
    pushed: int = 0
    pulled: int = 0
    details: Optional[Dict[str, Any]] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "enabled": is_sync_enabled(),
            "pushed": self.pushed,
            "pulled": self.pulled,
            "details": self.details or {},
        }


class SyncAdapter(Protocol):
    name: str

    def push(self, db: Database) -> SyncResult:
        ...

    def pull(self, db: Database) -> SyncResult:
        ...


class NoopSyncAdapter:
    name = "noop"

    def push(self, db: Database) -> SyncResult:
        return SyncResult(status=STATUS_NOT_IMPLEMENTED)

    def pull(self, db: Database) -> SyncResult:
        return SyncResult(status=STATUS_NOT_IMPLEMENTED)


def get_sync_adapter(name: Optional[str] = None) -> SyncAdapter:
    _ = name  # reserved
    return NoopSyncAdapter()


def push_changes(db: Database, request_id: Optional[str] = None) -> Dict[str, Any]:
    result = get_sync_adapter().push(db)
    emit("info", "sync.push", "sync not implemented; nothing pushed", request_id, __name__)
    return result.as_dict()


def pull_changes(db: Database, request_id: Optional[str] = None) -> Dict[str, Any]:
    result = get_sync_adapter().pull(db)
    emit("info", "sync.pull", "sync not implemented; nothing pulled", request_id, __name__)
    return result.as_dict()


def sync_now(db: Database, request_id: Optional[str] = None) -> Dict[str, Any]:
    pushed = push_changes(db, request_id)
    pulled = pull_changes(db, request_id)
    return {
        "status": STATUS_NOT_IMPLEMENTED,
        "enabled": is_sync_enabled(),
        "pushed": pushed["pushed"],
        "pulled": pulled["pulled"],
        "details": {},
    }
