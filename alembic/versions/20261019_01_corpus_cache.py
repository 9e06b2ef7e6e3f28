"""corpus cache snapshot and chunk tables

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "corpus_snapshots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("cache_version", sa.String(length=16), nullable=False),
        sa.Column("provider_id", sa.String(length=32), nullable=False),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("chunk_count", sa.Integer(), nullable=False),
        sa.Column("fetched_at", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_corpus_snapshots_cache_version", "corpus_snapshots", ["cache_version"], unique=False
    )
    op.create_index(
        "ix_corpus_snapshots_fetched_at", "corpus_snapshots", ["fetched_at"], unique=False
    )

    op.create_table(
        "corpus_chunks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("snapshot_id", sa.Integer(), nullable=False),
        sa.Column("chunk_index", sa.Integer(), nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["snapshot_id"], ["corpus_snapshots.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("snapshot_id", "chunk_index", name="uq_corpus_chunks_snapshot_index"),
    )
    op.create_index("ix_corpus_chunks_snapshot_id", "corpus_chunks", ["snapshot_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_corpus_chunks_snapshot_id", table_name="corpus_chunks")
    op.drop_table("corpus_chunks")
    op.drop_index("ix_corpus_snapshots_fetched_at", table_name="corpus_snapshots")
    op.drop_index("ix_corpus_snapshots_cache_version", table_name="corpus_snapshots")
    op.drop_table("corpus_snapshots")
