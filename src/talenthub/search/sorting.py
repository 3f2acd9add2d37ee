"""Ordering of filtered collections.

Python's sort is stable, so records with equal keys keep their input order in
both directions. Records whose date or name is missing always go last, in
input order, whichever direction is requested. Missing score and salary count
as 0.
"""

import unicodedata
from datetime import datetime
from typing import List, Optional, Sequence, TypeVar, Union

from talenthub.models.records import Application, Candidate
from talenthub.models.search_models import SortKey, SortOrder

T = TypeVar("T", Candidate, Application)


def _candidate_of(record: Union[Candidate, Application]) -> Optional[Candidate]:
    if isinstance(record, Application):
        return record.candidate
    return record


def _score(record) -> float:
    return record.match_score or 0


def _salary(record) -> float:
    candidate = _candidate_of(record)
    if candidate is None:
        return 0
    return candidate.expected_salary or 0


def _date(record) -> Optional[datetime]:
    if isinstance(record, Application):
        return record.applied_at
    return record.created_at


def name_key(name: str) -> str:
    """Case- and accent-insensitive collation key."""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _name(record) -> Optional[str]:
    candidate = _candidate_of(record)
    if candidate is None or not candidate.name:
        return None
    return name_key(candidate.name)


KEY_FUNCTIONS: dict = {
    SortKey.SCORE: (_score, False),
    SortKey.SALARY: (_salary, False),
    SortKey.DATE: (_date, True),
    SortKey.NAME: (_name, True),
}


def sort_records(
    records: Sequence[T],
    sort_by: Union[SortKey, str] = SortKey.SCORE,
    order: Union[SortOrder, str] = SortOrder.DESC,
) -> List[T]:
    """Return a new list ordered by ``sort_by`` in ``order``."""
    key_fn, nullable = KEY_FUNCTIONS[SortKey(sort_by)]
    descending = SortOrder(order) == SortOrder.DESC

    if not nullable:
        return sorted(records, key=key_fn, reverse=descending)

    present = [record for record in records if key_fn(record) is not None]
    missing = [record for record in records if key_fn(record) is None]
    return sorted(present, key=key_fn, reverse=descending) + missing
