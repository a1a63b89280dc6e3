from __future__ import annotations

from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


# One row per document; body_json holds the full validated document.
class DocumentRow(SQLModel, table=True):
    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc_id"),)

    seq: Optional[int] = Field(default=None, primary_key=True)  # insertion order
    collection: str = Field(index=True)
    doc_id: str = Field(max_length=100)
    body_json: str

    created_at: str
    updated_at: str


# Blob metadata; bytes live under STORAGE_ROOT at storage_path.
class AttachmentRow(SQLModel, table=True):
    __tablename__ = "attachments"
    __table_args__ = (UniqueConstraint("collection", "parent_id", "attachment_id", name="uq_attachments_parent_attachment"),)

    seq: Optional[int] = Field(default=None, primary_key=True)
    attachment_id: str = Field(index=True)
    collection: str
    parent_id: str = Field(index=True)
    filename: Optional[str] = Field(default=None)
    content_type: str
    size: int
    sha256: str
    storage_path: str

    created_at: str
