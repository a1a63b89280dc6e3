"""
Live queries.

A subscription is a standing query on one collection. After every mutation of
that collection the store calls `notify`, and each active subscription is
recomputed against the current store state and delivered (full result set,
not a diff) before the mutating call returns.

Cancellation is race-free: delivery and `unsubscribe` take the same
per-subscription lock, so once `unsubscribe` returns no callback runs again.
"""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .documents import DocumentStore, Selector, matches
from .events import emit

_log = logging.getLogger(__name__)

Snapshot = Any  # List[dict] for collection queries, dict | None for doc_id queries
Callback = Callable[[Snapshot], None]


@dataclass(frozen=True)
class LiveQuery:
    collection: str
    selector: Selector = None
    doc_id: Optional[str] = None
    sort_key: Optional[Callable[[Dict[str, Any]], Any]] = None


@dataclass
class _Subscription:
    handle: int
    query: LiveQuery
    callback: Callback
    lock: threading.RLock = field(default_factory=threading.RLock)
    active: bool = True
    deliveries: int = 0


class LiveQueryEngine:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._subs: Dict[int, _Subscription] = {}
        self._guard = threading.Lock()
        self._handles = itertools.count(1)
        store.add_change_listener(self._on_change)

    def evaluate(self, query: LiveQuery) -> Snapshot:
        if query.doc_id is not None:
            doc = self._store.find_by_id(query.collection, query.doc_id)
            if doc is not None and not matches(doc, query.selector):
                return None
            return doc
        docs = self._store.find(query.collection, query.selector)
        if query.sort_key is not None:
            docs.sort(key=query.sort_key)
        return docs

    def subscribe(self, query: LiveQuery, callback: Callback) -> Tuple[int, Snapshot]:
        self._store.registry.get(query.collection)
        sub = _Subscription(handle=next(self._handles), query=query, callback=callback)
        # registered under its own lock so a concurrent notify cannot deliver
        # before the initial snapshot has been taken
        with sub.lock:
            with self._guard:
                self._subs[sub.handle] = sub
            snapshot = self.evaluate(query)
        emit("debug", "live.subscribe", query.collection, handle=sub.handle, collection=query.collection)
        return sub.handle, snapshot

    def unsubscribe(self, handle: int) -> bool:
        with self._guard:
            sub = self._subs.pop(handle, None)
        if sub is None:
            return False
        with sub.lock:
            sub.active = False
        emit("debug", "live.unsubscribe", sub.query.collection, handle=handle)
        return True

    def active_count(self, collection: Optional[str] = None) -> int:
        with self._guard:
            return sum(1 for s in self._subs.values() if collection is None or s.query.collection == collection)

    def close(self) -> None:
        with self._guard:
            handles = list(self._subs.keys())
        for h in handles:
            self.unsubscribe(h)

    def notify(self, collection: str) -> None:
        with self._guard:
            subs = [s for s in self._subs.values() if s.query.collection == collection]
        for sub in subs:
            self._deliver(sub)

    def _on_change(self, collection: str, op: str, doc_id: str, doc: Optional[Dict[str, Any]]) -> None:
        self.notify(collection)

    def _deliver(self, sub: _Subscription) -> None:
        with sub.lock:
            if not sub.active:
                return
            snapshot = self.evaluate(sub.query)
            sub.deliveries += 1
            try:
                sub.callback(snapshot)
            except Exception as e:
                _log.exception("live query callback failed (handle=%s)", sub.handle)
                emit(
                    "error",
                    "live.delivery_failed",
                    str(e),
                    collection=sub.query.collection,
                    handle=sub.handle,
                    type=type(e).__name__,
                )
