"""
Reference fields between collections.

A `Reference` declares that `collection.field` holds the id (or, when
`many=True`, a list of ids) of documents in `target`. The store does not
enforce them on write; this resolver reads them, keeps them clean when a
target is deleted, and writes links on the owning side only. The reverse
direction is computed by filtering (`referrers`).
"""
from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from .documents import DocumentStore
from .errors import NotFoundError, SchemaError
from .events import emit


@dataclass(frozen=True)
class Reference:
    collection: str
    field: str
    target: str
    many: bool = False


Resolved = Union[Optional[Dict[str, Any]], List[Dict[str, Any]]]


class ReferenceResolver:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._refs: Dict[tuple, Reference] = {}
        store.add_delete_hook(self.on_delete)

    def declare(self, ref: Reference) -> None:
        model = self._store.registry.get(ref.collection)
        self._store.registry.get(ref.target)
        if ref.field not in model.model_fields:
            raise SchemaError(f"{ref.collection} has no field {ref.field!r}", {"collection": ref.collection, "field": ref.field})
        self._refs[(ref.collection, ref.field)] = ref

    def reference(self, collection: str, field: str) -> Reference:
        ref = self._refs.get((collection, field))
        if ref is None:
            raise SchemaError(f"{collection}.{field} is not a reference field", {"collection": collection, "field": field})
        return ref

    def references_to(self, target: str) -> List[Reference]:
        return [r for r in self._refs.values() if r.target == target]

    def resolve(self, collection: str, document: Mapping[str, Any], field: str) -> Resolved:
        """Dangling or empty references resolve to None / are left out, never raise."""
        ref = self.reference(collection, field)
        value = document.get(field)
        if ref.many:
            out: List[Dict[str, Any]] = []
            for target_id in value or []:
                doc = self._store.find_by_id(ref.target, target_id)
                if doc is not None:
                    out.append(doc)
            return out
        if not value:
            return None
        return self._store.find_by_id(ref.target, value)

    def referrers(self, collection: str, field: str, target_id: str) -> List[Dict[str, Any]]:
        self.reference(collection, field)
        return self._store.find(collection, {field: target_id})

    def link(self, collection: str, doc_id: str, field: str, target_id: str) -> Dict[str, Any]:
        ref = self.reference(collection, field)

        def make_patch(doc: Dict[str, Any]) -> Optional[Dict[str, Any]]:
            if ref.many:
                current = list(doc.get(field) or [])
                if target_id in current:
                    return None
                return {field: current + [target_id]}
            if doc.get(field) == target_id:
                return None
            return {field: target_id}

        # target and owner locks held across check and write, taken in sorted order
        with ExitStack() as stack:
            for key in sorted({(ref.target, target_id), (collection, doc_id)}):
                stack.enter_context(self._store.locked(*key))
            if self._store.find_by_id(ref.target, target_id) is None:
                raise NotFoundError(ref.target, target_id)
            updated = self._store.modify(collection, doc_id, make_patch)
        emit("debug", "references.link", f"{collection}/{doc_id}.{field} -> {ref.target}/{target_id}")
        return updated

    def unlink(self, collection: str, doc_id: str, field: str, target_id: Optional[str] = None) -> Dict[str, Any]:
        """Removes target_id (for single references, None clears whatever is set)."""
        ref = self.reference(collection, field)

        def make_patch(doc: Dict[str, Any]) -> Optional[Dict[str, Any]]:
            if ref.many:
                current = list(doc.get(field) or [])
                if target_id not in current:
                    return None
                return {field: [v for v in current if v != target_id]}
            value = doc.get(field)
            if value is None or (target_id is not None and value != target_id):
                return None
            return {field: None}

        updated = self._store.modify(collection, doc_id, make_patch)
        emit("debug", "references.unlink", f"{collection}/{doc_id}.{field} -x- {target_id}")
        return updated

    def on_delete(self, collection: str, doc_id: str) -> int:
        """Clears every reference to collection/doc_id. Returns documents touched."""
        touched = 0
        for ref in self.references_to(collection):
            for doc in self._store.find(ref.collection, {ref.field: doc_id}):
                try:
                    self.unlink(ref.collection, doc["id"], ref.field, doc_id)
                except NotFoundError:
                    # removed concurrently; nothing left to clean
                    continue
                touched += 1
        if touched:
            emit("info", "references.cleanup", f"{collection}/{doc_id}", touched=touched)
        return touched
