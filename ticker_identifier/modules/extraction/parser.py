"""Parse the extraction oracle's delimited output into entity mentions.

Expected shape: ``"Alibaba [HKEX/NYSE], NVDA; PetroChina [SSE]"``.  A
semicolon separates mentions of the same company on different exchanges,
a comma separates unrelated mentions.  Anything that does not fit one of
the known token forms is kept as a plain name.
"""

from __future__ import annotations

import re
from typing import List

from ticker_identifier.core.types import ExtractedEntity
from ticker_identifier.modules.extraction.prompt_builder import PROMPT_ECHO_MARKERS

_RESPONSE_LABEL = "response:"
_TICKER_RE = re.compile(r"^[A-Z0-9.]+$")
_DUAL_EXCHANGE_RE = re.compile(r"(.+)\s*\[([A-Z]+)/([A-Z]+)\]")
_SINGLE_EXCHANGE_RE = re.compile(r"(.+)\s*\[([A-Z]+)\]")


def clean_oracle_text(text: str) -> str:
    cleaned = (text or "").strip()
    if cleaned.lower().startswith(_RESPONSE_LABEL):
        cleaned = cleaned[len(_RESPONSE_LABEL) :].strip()
    lines = [
        line
        for line in cleaned.split("\n")
        if not any(marker in line for marker in PROMPT_ECHO_MARKERS)
    ]
    return "\n".join(lines).strip()


def parse_token(token: str) -> List[ExtractedEntity]:
    if _TICKER_RE.match(token):
        return [ExtractedEntity(name=token, symbol=token, original_text=token)]

    dual = _DUAL_EXCHANGE_RE.search(token)
    if dual:
        name = dual.group(1).strip()
        return [
            ExtractedEntity(name=name, exchange=dual.group(2).strip(), original_text=token),
            ExtractedEntity(name=name, exchange=dual.group(3).strip(), original_text=token),
        ]

    single = _SINGLE_EXCHANGE_RE.search(token)
    if single:
        return [
            ExtractedEntity(
                name=single.group(1).strip(),
                exchange=single.group(2).strip(),
                original_text=token,
            )
        ]

    return [ExtractedEntity(name=token, original_text=token)]


def parse_extracted_entities(text: str) -> List[ExtractedEntity]:
    cleaned = clean_oracle_text(text)
    if not cleaned:
        return []

    entities: List[ExtractedEntity] = []
    for group in cleaned.split(";"):
        for raw_token in group.strip().split(","):
            token = raw_token.strip()
            if not token:
                continue
            entities.extend(parse_token(token))
    return [entity for entity in entities if entity.name]
