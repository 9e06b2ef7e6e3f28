from __future__ import annotations

from typing import Optional

from sqlalchemy import Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


class CorpusSnapshotTable(SQLModel, table=True):
    __tablename__ = "corpus_snapshots"

    id: Optional[int] = Field(default=None, primary_key=True)
    cache_version: str = Field(index=True, max_length=16)
    provider_id: str = Field(default="", max_length=32)
    record_count: int = 0
    chunk_count: int = 0
    # Epoch seconds; SQLite drops timezone info from datetimes.
    fetched_at: float = Field(index=True)


class CorpusChunkTable(SQLModel, table=True):
    __tablename__ = "corpus_chunks"
    __table_args__ = (
        UniqueConstraint("snapshot_id", "chunk_index", name="uq_corpus_chunks_snapshot_index"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    snapshot_id: int = Field(foreign_key="corpus_snapshots.id", index=True)
    chunk_index: int
    payload: str = Field(sa_column=Column(Text, nullable=False))
