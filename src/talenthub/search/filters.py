"""Predicate filters over candidate and application collections.

A record survives when it satisfies every active dimension. Dimensions set to
the ``"all"`` sentinel (or left empty) are skipped. Applications are filtered
on their own status and on the joined candidate for everything else.
"""

import logging
from typing import Iterable, List, NamedTuple, Optional, Sequence, TypeVar, Union

from talenthub.models.records import Application, Candidate
from talenthub.models.search_models import ALL, FilterParams, TextMode
from talenthub.subscription import Capabilities

logger = logging.getLogger(__name__)

SearchRecord = TypeVar("SearchRecord", Candidate, Application)


class Bracket(NamedTuple):
    """A half-open numeric range ``[lower, upper)``."""

    key: str
    label: str
    lower: float
    upper: float

    def contains(self, value: Optional[float]) -> bool:
        if value is None:
            return False
        return self.lower <= value < self.upper


INF = float("inf")

EXPERIENCE_BRACKETS: Sequence[Bracket] = (
    Bracket("0-2", "0-2 years", 0, 3),
    Bracket("3-5", "3-5 years", 3, 6),
    Bracket("6-10", "6-10 years", 6, 10),
    Bracket("10+", "10+ years", 10, INF),
)

SALARY_BUCKETS: Sequence[Bracket] = (
    Bracket("0-50k", "$0-50k", 0, 50_000),
    Bracket("50k-100k", "$50k-100k", 50_000, 100_000),
    Bracket("100k-150k", "$100k-150k", 100_000, 150_000),
    Bracket("150k+", "$150k+", 150_000, INF),
)


class UnknownBucketError(ValueError):
    """Raised for a bracket key that is not one of the fixed ranges."""


def find_bracket(brackets: Iterable[Bracket], key: str) -> Bracket:
    for bracket in brackets:
        if bracket.key == key:
            return bracket
    raise UnknownBucketError(f"Unknown bucket: {key}")


def experience_bracket_for(value: Optional[float]) -> Optional[Bracket]:
    """Bracket holding ``value``; ``None`` experience belongs to no bracket."""
    for bracket in EXPERIENCE_BRACKETS:
        if bracket.contains(value):
            return bracket
    return None


def _candidate_of(record: Union[Candidate, Application]) -> Optional[Candidate]:
    if isinstance(record, Application):
        return record.candidate
    return record


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def matches_phrase(candidate: Optional[Candidate], query: str) -> bool:
    """Whole-query substring match on the candidate's searchable fields."""
    needle = query.strip().lower()
    if not needle:
        return True
    if candidate is None:
        return False
    if any(
        _contains(value, needle)
        for value in (candidate.name, candidate.email, candidate.title, candidate.location)
    ):
        return True
    return any(needle in item.lower() for item in [*candidate.skills, *candidate.tags])


def matches_any_term(candidate: Optional[Candidate], terms: Sequence[str]) -> bool:
    """OR-per-term match on name, title, email and location."""
    terms = [term for term in terms if term]
    if not terms:
        return True
    if candidate is None:
        return False
    fields = (candidate.name, candidate.title, candidate.email, candidate.location)
    return any(_contains(value, term.lower()) for term in terms for value in fields)


def matches_text(candidate: Optional[Candidate], params: FilterParams) -> bool:
    if params.text_mode == TextMode.ANY_TERM:
        return matches_any_term(candidate, params.search_terms())
    return matches_phrase(candidate, params.query)


def _in_range(value: Optional[float], low: Optional[float], high: Optional[float]) -> bool:
    if low is None and high is None:
        return True
    if value is None:
        return False
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _matches_advanced(candidate: Optional[Candidate], params: FilterParams) -> bool:
    if candidate is None:
        return not params.has_advanced_filters()

    if params.availability != ALL and candidate.availability != params.availability:
        return False
    if params.skill != ALL and params.skill not in candidate.skills:
        return False
    if params.experience_bucket != ALL:
        bracket = find_bracket(EXPERIENCE_BRACKETS, params.experience_bucket)
        if not bracket.contains(candidate.experience_years):
            return False
    if params.salary_bucket != ALL:
        bucket = find_bracket(SALARY_BUCKETS, params.salary_bucket)
        if not bucket.contains(candidate.expected_salary or 0):
            return False
    if not _in_range(candidate.experience_years, params.experience_min, params.experience_max):
        return False
    if params.salary_min is not None or params.salary_max is not None:
        if not _in_range(candidate.expected_salary or 0, params.salary_min, params.salary_max):
            return False
    return True


def record_matches(
    record: Union[Candidate, Application],
    params: FilterParams,
    advanced: bool = True,
) -> bool:
    """True when ``record`` passes every active filter dimension."""
    candidate = _candidate_of(record)

    if params.status != ALL and record.status != params.status:
        return False
    if params.location:
        if candidate is None or not _contains(candidate.location, params.location.lower()):
            return False
    if not matches_text(candidate, params):
        return False
    if advanced and not _matches_advanced(candidate, params):
        return False
    return True


def apply_filters(
    records: Iterable[SearchRecord],
    params: FilterParams,
    capabilities: Optional[Capabilities] = None,
) -> List[SearchRecord]:
    """Return the records that satisfy all active filters.

    Without ``advanced_filters`` in ``capabilities`` only the text, status
    and location dimensions are applied. Input order is preserved.
    """
    advanced = capabilities is None or capabilities.advanced_filters
    if not advanced and params.has_advanced_filters():
        logger.debug(
            "Advanced filters ignored for tier %s", capabilities.tier_id if capabilities else None
        )
    return [record for record in records if record_matches(record, params, advanced)]
