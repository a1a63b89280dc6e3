"""
Document store: per-collection CRUD over the `documents` table.

- ids default to UUID4, timestamps are set by the store
- find order is insertion order (documents.seq)
- mutations of one (collection, id) are serialized by a keyed lock
- after every successful mutation the change listeners run synchronously
"""
from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .errors import DuplicateKeyError, NotFoundError
from .events import emit
from .ids import new_uuid, now_iso
from .models import DocumentRow
from .registry import SchemaRegistry

Selector = Union[None, Callable[[Dict[str, Any]], bool], Mapping[str, Any]]
# (collection, op, doc_id, document or None on delete)
ChangeListener = Callable[[str, str, str, Optional[Dict[str, Any]]], None]
DeleteHook = Callable[[str, str], Any]
# (session, collection, doc_id) -> optional callable to run once the delete has committed
CascadeHook = Callable[[Session, str, str], Optional[Callable[[], Any]]]

OP_INSERT = "insert"
OP_UPDATE = "update"
OP_DELETE = "delete"


def matches(doc: Mapping[str, Any], selector: Selector) -> bool:
    """
    Predicate or equality mapping. For list fields a scalar expected value
    matches by membership, e.g. {"characters": "<id>"}.
    """
    if selector is None:
        return True
    if callable(selector):
        return bool(selector(doc))
    for field, expected in selector.items():
        actual = doc.get(field)
        if isinstance(actual, list) and not isinstance(expected, list):
            if expected not in actual:
                return False
        elif actual != expected:
            return False
    return True


class KeyedLocks:
    """One RLock per (collection, id), dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> [lock, holders and waiters]
        self._locks: Dict[Tuple[str, str], List[Any]] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, collection: str, doc_id: str) -> Iterator[None]:
        key = (collection, doc_id)
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.RLock(), 0]
                self._locks[key] = entry
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


def _next_timestamp(previous: Optional[str], now: str) -> str:
    if not previous or now > previous:
        return now
    prev_dt = datetime.fromisoformat(previous.replace("Z", "+00:00"))
    return (prev_dt + timedelta(microseconds=1)).isoformat(timespec="microseconds").replace("+00:00", "Z")


class DocumentStore:
    def __init__(
        self,
        engine: Engine,
        registry: SchemaRegistry,
        clock: Callable[[], str] = now_iso,
        id_factory: Callable[[], str] = new_uuid,
    ) -> None:
        self._engine = engine
        self._registry = registry
        self._clock = clock
        self._new_id = id_factory
        self._locks = KeyedLocks()
        self._listeners: List[ChangeListener] = []
        self._cascades: List[CascadeHook] = []
        self._after_delete: List[DeleteHook] = []

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    def add_change_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def add_delete_hook(self, hook: DeleteHook) -> None:
        """Runs after the delete has committed and listeners were notified."""
        self._after_delete.append(hook)

    def add_cascade_hook(self, hook: CascadeHook) -> None:
        """
        Runs inside the delete, in the same session as the row delete, so its
        writes commit or roll back with it. A returned callable runs after commit.
        """
        self._cascades.append(hook)

    @contextmanager
    def locked(self, collection: str, doc_id: str) -> Iterator[None]:
        with self._locks.hold(collection, doc_id):
            yield

    # -------------------------
    # reads
    # -------------------------
    def _get_row(self, session: Session, collection: str, doc_id: str) -> Optional[DocumentRow]:
        stmt = select(DocumentRow).where(DocumentRow.collection == collection, DocumentRow.doc_id == doc_id)
        return session.exec(stmt).first()

    def find_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        self._registry.get(collection)
        with Session(self._engine) as session:
            row = self._get_row(session, collection, doc_id)
            if row is None:
                return None
            return json.loads(row.body_json)

    def find(self, collection: str, selector: Selector = None) -> List[Dict[str, Any]]:
        self._registry.get(collection)
        with Session(self._engine) as session:
            stmt = select(DocumentRow).where(DocumentRow.collection == collection).order_by(DocumentRow.seq)
            docs = [json.loads(r.body_json) for r in session.exec(stmt).all()]
        if selector is None:
            return docs
        return [d for d in docs if matches(d, selector)]

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        return self.find(collection)

    def count(self, collection: str) -> int:
        self._registry.get(collection)
        with Session(self._engine) as session:
            stmt = select(func.count()).select_from(DocumentRow).where(DocumentRow.collection == collection)
            return int(session.exec(stmt).one())

    # -------------------------
    # writes
    # -------------------------
    def insert(self, collection: str, partial: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        data = dict(partial or {})
        self._registry.get(collection)
        if not data.get("id"):
            data["id"] = self._new_id()
        now = self._clock()
        data["created_at"] = now
        data["updated_at"] = now
        doc = self._registry.validate(collection, data)
        doc_id = doc["id"]

        with self._locks.hold(collection, doc_id):
            with Session(self._engine) as session:
                if self._get_row(session, collection, doc_id) is not None:
                    raise DuplicateKeyError(collection, doc_id)
                session.add(
                    DocumentRow(
                        collection=collection,
                        doc_id=doc_id,
                        body_json=json.dumps(doc, ensure_ascii=False),
                        created_at=doc["created_at"],
                        updated_at=doc["updated_at"],
                    )
                )
                try:
                    session.commit()
                except IntegrityError as e:
                    session.rollback()
                    raise DuplicateKeyError(collection, doc_id) from e

        emit("debug", "store.insert", f"{collection}/{doc_id}", collection=collection, id=doc_id)
        self._notify(collection, OP_INSERT, doc_id, doc)
        return dict(doc)

    def update(self, collection: str, doc_id: str, patch: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Shallow merge: patch fields replace existing fields wholesale."""
        fixed = dict(patch or {})
        return self.modify(collection, doc_id, lambda _current: fixed)

    def modify(
        self,
        collection: str,
        doc_id: str,
        make_patch: Callable[[Dict[str, Any]], Optional[Mapping[str, Any]]],
    ) -> Dict[str, Any]:
        """
        Read-modify-write under the document lock. `make_patch` sees the
        current document; returning None leaves it untouched (no notification).
        """
        self._registry.get(collection)

        with self._locks.hold(collection, doc_id):
            with Session(self._engine) as session:
                row = self._get_row(session, collection, doc_id)
                if row is None:
                    raise NotFoundError(collection, doc_id)
                current = json.loads(row.body_json)
                computed = make_patch(dict(current))
                if computed is None:
                    return current
                patch = dict(computed)
                merged = {**current, **patch}
                merged["updated_at"] = _next_timestamp(current.get("updated_at"), self._clock())
                doc = self._registry.validate_update(collection, patch, current, merged)

                row.body_json = json.dumps(doc, ensure_ascii=False)
                row.updated_at = doc["updated_at"]
                session.add(row)
                session.commit()

        emit("debug", "store.update", f"{collection}/{doc_id}", collection=collection, id=doc_id, fields=sorted(patch))
        self._notify(collection, OP_UPDATE, doc_id, doc)
        return dict(doc)

    def touch(self, collection: str, doc_id: str) -> Dict[str, Any]:
        return self.update(collection, doc_id, {})

    def delete(self, collection: str, doc_id: str) -> Dict[str, Any]:
        """Hard delete. Returns the removed document."""
        self._registry.get(collection)

        with self._locks.hold(collection, doc_id):
            with Session(self._engine) as session:
                row = self._get_row(session, collection, doc_id)
                if row is None:
                    raise NotFoundError(collection, doc_id)
                doc = json.loads(row.body_json)

                finalizers = [hook(session, collection, doc_id) for hook in self._cascades]

                session.delete(row)
                session.commit()

            for fin in finalizers:
                if fin is not None:
                    fin()

        emit("debug", "store.delete", f"{collection}/{doc_id}", collection=collection, id=doc_id)
        self._notify(collection, OP_DELETE, doc_id, None)

        for hook in self._after_delete:
            hook(collection, doc_id)
        return doc

    def _notify(self, collection: str, op: str, doc_id: str, doc: Optional[Dict[str, Any]]) -> None:
        for listener in list(self._listeners):
            listener(collection, op, doc_id, doc)
