"""Keyword router — canned replies for trigger words in plain messages."""

from dataclasses import dataclass
from typing import Iterable, Optional

from .outbound import Controls


@dataclass(frozen=True, eq=False)
class ResponsePayload:
    """Reply text (Telegram HTML) plus optional inline keyboard rows.

    Compared by identity: aliased keywords share one instance.
    """

    text: str
    controls: Controls = ()


@dataclass(frozen=True)
class KeywordEntry:
    keyword: str
    response: ResponsePayload


KeywordTable = tuple[KeywordEntry, ...]


def build_keyword_table(entries: Iterable[tuple[str, ResponsePayload]]) -> KeywordTable:
    """Freeze (keyword, payload) pairs into a table in registration order.

    Keywords are stored lower-case. A duplicate keyword is rejected; several
    keywords pointing at the same payload object is fine.
    """
    table = []
    seen = set()
    for keyword, response in entries:
        key = keyword.strip().lower()
        if not key:
            raise ValueError("Empty keyword")
        if key in seen:
            raise ValueError(f"Duplicate keyword: {key}")
        seen.add(key)
        table.append(KeywordEntry(keyword=key, response=response))
    return tuple(table)


def match_keyword(table: KeywordTable, text: str) -> Optional[KeywordEntry]:
    """Return the first registered entry whose keyword occurs in `text`.

    Matching is plain substring containment on the lower-cased text.
    Registration order decides ties, not position in the message:
    with `kyc` registered before `issue`, "an issue with kyc" hits `kyc`.
    """
    if not text:
        return None
    incoming = text.lower()
    for entry in table:
        if entry.keyword in incoming:
            return entry
    return None


def route(table: KeywordTable, text: str) -> Optional[ResponsePayload]:
    """Return the reply payload for `text`, or None to let the message pass."""
    entry = match_keyword(table, text)
    return entry.response if entry else None
