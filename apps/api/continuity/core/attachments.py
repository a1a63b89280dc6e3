"""
Attachment manager: binary blobs bound to one parent document.

Blobs are files under the storage root at <collection>/<sha256(parent_id)>/<attachment_id>;
metadata rows live in the `attachments` table. Parent ids are free-form
strings, so they never appear in paths. Adding or removing a blob touches the
parent's updated_at (which also refreshes live queries on the parent collection).
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from .documents import DocumentStore
from .errors import NotFoundError, ValidationError
from .events import emit
from .ids import new_ulid, now_iso
from .models import AttachmentRow
from .storage import ensure_storage_root, safe_under_root

DEFAULT_MAX_BYTES = 20 * 1024 * 1024


def _parent_key(parent_id: str) -> str:
    return hashlib.sha256(parent_id.encode("utf-8")).hexdigest()


def get_max_bytes() -> int:
    raw = os.getenv("ATTACHMENT_MAX_BYTES")
    if raw is None:
        return DEFAULT_MAX_BYTES
    try:
        v = int(raw)
    except ValueError:
        return DEFAULT_MAX_BYTES
    return v if v > 0 else DEFAULT_MAX_BYTES


class AttachmentManager:
    def __init__(self, engine: Engine, store: DocumentStore, storage_root: Path, max_bytes: Optional[int] = None) -> None:
        self._engine = engine
        self._store = store
        self._root = Path(storage_root)
        self._max_bytes = max_bytes or get_max_bytes()
        store.add_cascade_hook(self._cascade)

    @property
    def storage_root(self) -> Path:
        return self._root

    def _meta(self, row: AttachmentRow) -> Dict[str, Any]:
        return {
            "id": row.attachment_id,
            "collection": row.collection,
            "parent_id": row.parent_id,
            "filename": row.filename,
            "content_type": row.content_type,
            "size": row.size,
            "sha256": row.sha256,
            "created_at": row.created_at,
            "path": str((self._root / row.storage_path).as_posix()),
        }

    def parent_dir(self, collection: str, parent_id: str) -> Path:
        return self._root / collection / _parent_key(parent_id)

    def _blob_path(self, storage_path: str) -> Path:
        p = safe_under_root(self._root, storage_path)
        if p is None:
            raise ValueError(f"attachment path escapes storage root: {storage_path!r}")
        return p

    def _get_row(self, session: Session, collection: str, parent_id: str, attachment_id: str) -> Optional[AttachmentRow]:
        stmt = select(AttachmentRow).where(
            AttachmentRow.collection == collection,
            AttachmentRow.parent_id == parent_id,
            AttachmentRow.attachment_id == attachment_id,
        )
        return session.exec(stmt).first()

    def _require_parent(self, collection: str, parent_id: str) -> None:
        if self._store.find_by_id(collection, parent_id) is None:
            raise NotFoundError(collection, parent_id)

    def add(
        self,
        collection: str,
        parent_id: str,
        blob: bytes,
        content_type: str,
        filename: Optional[str] = None,
    ) -> Dict[str, Any]:
        errors: List[Dict[str, Any]] = []
        if not isinstance(blob, (bytes, bytearray)):
            errors.append({"field": "blob", "message": "must be bytes", "type": "bytes_type"})
        elif len(blob) > self._max_bytes:
            errors.append({"field": "blob", "message": f"larger than {self._max_bytes} bytes", "type": "too_large"})
        if not content_type or not str(content_type).strip():
            errors.append({"field": "content_type", "message": "required", "type": "missing"})
        if errors:
            raise ValidationError(collection, errors)

        data = bytes(blob)
        attachment_id = new_ulid()
        storage_path = f"{collection}/{_parent_key(parent_id)}/{attachment_id}"

        with self._store.locked(collection, parent_id):
            self._require_parent(collection, parent_id)
            path = self._blob_path(storage_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

            row = AttachmentRow(
                attachment_id=attachment_id,
                collection=collection,
                parent_id=parent_id,
                filename=filename,
                content_type=str(content_type).strip(),
                size=len(data),
                sha256=hashlib.sha256(data).hexdigest(),
                storage_path=storage_path,
                created_at=now_iso(),
            )
            try:
                with Session(self._engine) as session:
                    session.add(row)
                    session.commit()
                    session.refresh(row)
                    meta = self._meta(row)
            except Exception:
                path.unlink(missing_ok=True)
                raise

        emit("info", "attachments.add", f"{collection}/{parent_id}/{attachment_id}", size=len(data), content_type=meta["content_type"])
        self._store.touch(collection, parent_id)
        return meta

    def get_meta(self, collection: str, parent_id: str, attachment_id: str) -> Dict[str, Any]:
        with Session(self._engine) as session:
            row = self._get_row(session, collection, parent_id, attachment_id)
            if row is None:
                raise NotFoundError(collection, f"{parent_id}/{attachment_id}", what="attachment")
            return self._meta(row)

    def get(self, collection: str, parent_id: str, attachment_id: str) -> bytes:
        with Session(self._engine) as session:
            row = self._get_row(session, collection, parent_id, attachment_id)
            if row is None:
                raise NotFoundError(collection, f"{parent_id}/{attachment_id}", what="attachment")
            storage_path = row.storage_path
        try:
            return self._blob_path(storage_path).read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(collection, f"{parent_id}/{attachment_id}", what="attachment blob") from e

    def list_all(self, collection: str, parent_id: str) -> List[Dict[str, Any]]:
        with Session(self._engine) as session:
            stmt = (
                select(AttachmentRow)
                .where(AttachmentRow.collection == collection, AttachmentRow.parent_id == parent_id)
                .order_by(AttachmentRow.seq)
            )
            return [self._meta(r) for r in session.exec(stmt).all()]

    def remove(self, collection: str, parent_id: str, attachment_id: str) -> Dict[str, Any]:
        with self._store.locked(collection, parent_id):
            with Session(self._engine) as session:
                row = self._get_row(session, collection, parent_id, attachment_id)
                if row is None:
                    raise NotFoundError(collection, f"{parent_id}/{attachment_id}", what="attachment")
                meta = self._meta(row)
                storage_path = row.storage_path
                session.delete(row)
                session.commit()
            self._blob_path(storage_path).unlink(missing_ok=True)

        emit("info", "attachments.remove", f"{collection}/{parent_id}/{attachment_id}")
        if self._store.find_by_id(collection, parent_id) is not None:
            self._store.touch(collection, parent_id)
        return meta

    def remove_all(self, collection: str, parent_id: str) -> int:
        """Drops every attachment of the parent; does not touch the parent."""
        with self._store.locked(collection, parent_id):
            with Session(self._engine) as session:
                unlink_files = self._cascade(session, collection, parent_id)
                session.commit()
            return unlink_files()

    def _cascade(self, session: Session, collection: str, parent_id: str) -> Callable[[], int]:
        """
        Deletes the metadata rows in the caller's session. Files go only once
        that session has committed, through the returned callable.
        """
        stmt = select(AttachmentRow).where(AttachmentRow.collection == collection, AttachmentRow.parent_id == parent_id)
        rows = session.exec(stmt).all()
        paths = [r.storage_path for r in rows]
        for r in rows:
            session.delete(r)

        def unlink_files() -> int:
            for sp in paths:
                self._blob_path(sp).unlink(missing_ok=True)
            parent_dir = self.parent_dir(collection, parent_id)
            if parent_dir.is_dir() and not any(parent_dir.iterdir()):
                parent_dir.rmdir()
            if paths:
                emit("info", "attachments.cascade", f"{collection}/{parent_id}", removed=len(paths))
            return len(paths)

        return unlink_files

    def ensure_root(self) -> Path:
        return ensure_storage_root(self._root)
