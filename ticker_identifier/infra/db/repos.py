from __future__ import annotations

from typing import List, Optional

from sqlmodel import Session, select

from ticker_identifier.infra.db.models import CorpusChunkTable, CorpusSnapshotTable


class CorpusSnapshotRepo:
    def __init__(self, session: Session) -> None:
        self.session = session

    def latest(self) -> Optional[CorpusSnapshotTable]:
        return self.session.exec(
            select(CorpusSnapshotTable).order_by(CorpusSnapshotTable.id.desc()).limit(1)
        ).first()

    def chunks(self, snapshot_id: int) -> List[CorpusChunkTable]:
        return list(
            self.session.exec(
                select(CorpusChunkTable)
                .where(CorpusChunkTable.snapshot_id == snapshot_id)
                .order_by(CorpusChunkTable.chunk_index.asc())
            ).all()
        )

    def replace(
        self,
        cache_version: str,
        provider_id: str,
        payloads: List[str],
        record_count: int,
        fetched_at: float,
    ) -> CorpusSnapshotTable:
        # Only one snapshot is kept; a refresh swaps the whole corpus.
        self.clear()
        snapshot = CorpusSnapshotTable(
            cache_version=cache_version,
            provider_id=provider_id,
            record_count=record_count,
            chunk_count=len(payloads),
            fetched_at=fetched_at,
        )
        self.session.add(snapshot)
        self.session.flush()
        self.session.refresh(snapshot)
        for chunk_index, payload in enumerate(payloads):
            self.session.add(
                CorpusChunkTable(
                    snapshot_id=snapshot.id,
                    chunk_index=chunk_index,
                    payload=payload,
                )
            )
        self.session.flush()
        return snapshot

    def clear(self) -> int:
        snapshots = list(self.session.exec(select(CorpusSnapshotTable)).all())
        for snapshot in snapshots:
            for chunk in self.chunks(snapshot.id):
                self.session.delete(chunk)
            self.session.delete(snapshot)
        self.session.flush()
        return len(snapshots)
