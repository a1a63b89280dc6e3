"""documents + attachments

Revision ID: 0001_documents_attachments
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_documents_attachments"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("collection", sa.String(), nullable=False),
        sa.Column("doc_id", sa.String(length=100), nullable=False),
        sa.Column("body_json", sa.String(), nullable=False),
        sa.Column("created_at", sa.String(), nullable=False),
        sa.Column("updated_at", sa.String(), nullable=False),
        sa.UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc_id"),
    )
    op.create_index("ix_documents_collection", "documents", ["collection"], unique=False)

    op.create_table(
        "attachments",
        sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("attachment_id", sa.String(), nullable=False),
        sa.Column("collection", sa.String(), nullable=False),
        sa.Column("parent_id", sa.String(), nullable=False),
        sa.Column("filename", sa.String(), nullable=True),
        sa.Column("content_type", sa.String(), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("sha256", sa.String(), nullable=False),
        sa.Column("storage_path", sa.String(), nullable=False),
        sa.Column("created_at", sa.String(), nullable=False),
        sa.UniqueConstraint("collection", "parent_id", "attachment_id", name="uq_attachments_parent_attachment"),
    )
    op.create_index("ix_attachments_attachment_id", "attachments", ["attachment_id"], unique=False)
    op.create_index("ix_attachments_parent_id", "attachments", ["parent_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_attachments_parent_id", table_name="attachments")
    op.drop_index("ix_attachments_attachment_id", table_name="attachments")
    op.drop_table("attachments")
    op.drop_index("ix_documents_collection", table_name="documents")
    op.drop_table("documents")
