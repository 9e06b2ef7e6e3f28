"""Compact on-disk form of the corpus: ``{s, n, e, x}`` records in chunks."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

import orjson

from ticker_identifier.core.types import Security

logger = logging.getLogger(__name__)

_SAMPLE_SIZE = 10


def minimize_security(security: Security) -> Dict[str, str]:
    return {
        "s": security.symbol,
        "n": security.name,
        "e": security.exchange_short_name,
        "x": security.exchange,
    }


def expand_security(record: Dict[str, str]) -> Security:
    return Security(
        symbol=record.get("s", ""),
        name=record.get("n", ""),
        exchange_short_name=record.get("e", ""),
        exchange=record.get("x", ""),
    )


def split_into_chunks(
    records: List[Dict[str, str]], chunk_bytes: int, min_records: int
) -> List[List[Dict[str, str]]]:
    if not records:
        return []
    sample = records[:_SAMPLE_SIZE]
    bytes_per_record = max(len(orjson.dumps(sample)) / len(sample), 1.0)
    per_chunk = max(min_records, int(chunk_bytes // bytes_per_record))
    return [records[start : start + per_chunk] for start in range(0, len(records), per_chunk)]


def encode_chunks(
    securities: Iterable[Security], chunk_bytes: int, min_records: int
) -> List[str]:
    records = [minimize_security(security) for security in securities]
    return [
        orjson.dumps(chunk).decode("utf-8")
        for chunk in split_into_chunks(records, chunk_bytes, min_records)
    ]


def decode_chunks(payloads: Iterable[str]) -> List[Security]:
    """Expand stored chunks; unreadable chunks and records are skipped."""
    securities: List[Security] = []
    for chunk_index, payload in enumerate(payloads):
        try:
            records = orjson.loads(payload)
        except orjson.JSONDecodeError as exc:
            logger.warning("skipping unreadable corpus chunk %d: %s", chunk_index, exc)
            continue
        if not isinstance(records, list):
            logger.warning("skipping corpus chunk %d: expected a list", chunk_index)
            continue
        for record in records:
            if isinstance(record, dict) and record.get("s") and record.get("n"):
                securities.append(expand_security(record))
    return securities
