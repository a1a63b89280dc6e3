"""
Explicit database context.

Owns the engine and the store components; nothing is created until
`initialize()` and everything is released by `shutdown()`. Collaborators get
the components from this object instead of a process-wide handle.
"""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Type, Union

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from . import models  # noqa: F401  (registers tables on SQLModel.metadata)
from .attachments import AttachmentManager
from .db import create_engine_for_url, db_health, get_database_url
from .documents import DocumentStore
from .events import emit
from .ids import now_iso
from .live import LiveQueryEngine
from .references import Reference, ReferenceResolver
from .registry import Document, SchemaRegistry
from .storage import get_storage_root, storage_health


class Database:
    def __init__(
        self,
        url: Optional[str] = None,
        storage_root: Union[str, Path, None] = None,
        schemas: Optional[Mapping[str, Type[Document]]] = None,
        references: Iterable[Reference] = (),
        clock: Callable[[], str] = now_iso,
    ) -> None:
        self.url = url or get_database_url()
        self.storage_root = Path(storage_root) if storage_root else get_storage_root()
        self._schemas: Dict[str, Type[Document]] = dict(schemas or {})
        self._references = list(references)
        self._clock = clock
        self._lock = threading.Lock()

        self._engine: Optional[Engine] = None
        self._registry: Optional[SchemaRegistry] = None
        self._store: Optional[DocumentStore] = None
        self._live: Optional[LiveQueryEngine] = None
        self._refs: Optional[ReferenceResolver] = None
        self._attachments: Optional[AttachmentManager] = None

    # -------------------------
    # lifecycle
    # -------------------------
    @property
    def initialized(self) -> bool:
        return self._engine is not None

    def initialize(self) -> "Database":
        """Idempotent; concurrent first callers share one initialization."""
        with self._lock:
            if self._engine is not None:
                return self

            engine = create_engine_for_url(self.url)
            SQLModel.metadata.create_all(engine)

            registry = SchemaRegistry()
            for name, model in self._schemas.items():
                registry.register(name, model)

            store = DocumentStore(engine, registry, clock=self._clock)
            live = LiveQueryEngine(store)
            attachments = AttachmentManager(engine, store, self.storage_root)
            attachments.ensure_root()
            refs = ReferenceResolver(store)
            for ref in self._references:
                refs.declare(ref)

            self._registry = registry
            self._store = store
            self._live = live
            self._attachments = attachments
            self._refs = refs
            self._engine = engine

        emit("info", "db.initialize", "database initialized", url=self.url, storage_root=str(self.storage_root))
        return self

    def shutdown(self) -> None:
        with self._lock:
            if self._engine is None:
                return
            if self._live is not None:
                self._live.close()
            self._engine.dispose()
            self._engine = None
            self._registry = None
            self._store = None
            self._live = None
            self._refs = None
            self._attachments = None
        emit("info", "db.shutdown", "database shut down", url=self.url)

    def __enter__(self) -> "Database":
        return self.initialize()

    def __exit__(self, *exc: Any) -> None:
        self.shutdown()

    # -------------------------
    # components
    # -------------------------
    def _require(self, component: Any, name: str) -> Any:
        if component is None:
            raise RuntimeError(f"database not initialized ({name}); call initialize() first")
        return component

    @property
    def engine(self) -> Engine:
        return self._require(self._engine, "engine")

    @property
    def registry(self) -> SchemaRegistry:
        return self._require(self._registry, "registry")

    @property
    def store(self) -> DocumentStore:
        return self._require(self._store, "store")

    @property
    def live(self) -> LiveQueryEngine:
        return self._require(self._live, "live")

    @property
    def references(self) -> ReferenceResolver:
        return self._require(self._refs, "references")

    @property
    def attachments(self) -> AttachmentManager:
        return self._require(self._attachments, "attachments")

    def health(self) -> Dict[str, Any]:
        db = db_health(self._engine) if self._engine is not None else {"status": "error", "error": "not initialized"}
        return {"db": db, "storage": storage_health(self.storage_root)}
