"""
DB utilities (sqlite default).

Defaults:
- DATABASE_URL: sqlite:///./data/continuity.db
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

DEFAULT_DATABASE_URL = "sqlite:///./data/continuity.db"


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def _repo_root() -> Path:
    # apps/api/continuity/core/db.py -> repo root = parents[4]
    return Path(__file__).resolve().parents[4]


def is_memory_url(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:")


def resolve_sqlite_path(database_url: str) -> Optional[Path]:
    if not database_url.startswith("sqlite:///") or is_memory_url(database_url):
        return None
    p = database_url[len("sqlite:///") :]

    # absolute unix
    if p.startswith("/"):
        return Path(p)

    # absolute windows drive, both C:/ and C:\ forms
    if len(p) >= 3 and p[1] == ":" and (p[2] == "/" or p[2] == "\\"):
        return Path(p)

    # relative -> repo root
    return (_repo_root() / p).resolve()


def _sqlite_pragmas(dbapi_conn, _record) -> None:
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA journal_mode=WAL;")
    cur.execute("PRAGMA synchronous=NORMAL;")
    cur.close()


def create_engine_for_url(url: Optional[str] = None) -> Engine:
    """Build an engine; the caller owns it (no module-level cache)."""
    url = url or get_database_url()
    connect_args: Dict[str, Any] = {}
    kwargs: Dict[str, Any] = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    if is_memory_url(url):
        # one shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool
    else:
        sp = resolve_sqlite_path(url)
        if sp is not None:
            sp.parent.mkdir(parents=True, exist_ok=True)
            url = "sqlite:///" + sp.as_posix()

    engine = create_engine(url, connect_args=connect_args, **kwargs)
    if url.startswith("sqlite") and not is_memory_url(url):
        event.listen(engine, "connect", _sqlite_pragmas)
    return engine


def db_health(engine: Engine) -> Dict[str, Any]:
    url = engine.url.render_as_string(hide_password=True)
    kind = "sqlite" if url.startswith("sqlite") else "unknown"
    path = engine.url.database or ":memory:"

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ok", "kind": kind, "path": path}
    except Exception as e:
        return {"status": "error", "kind": kind, "path": path, "error": str(e)}
