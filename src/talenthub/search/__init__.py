"""Candidate filtering, heuristic ranking and sorting."""

from .filters import EXPERIENCE_BRACKETS, SALARY_BUCKETS, apply_filters, record_matches
from .ranking import (
    candidate_insights,
    enrich_for_matching,
    match_score,
    rank_candidates,
    search_suggestions,
)
from .sorting import sort_records

__all__ = [
    "EXPERIENCE_BRACKETS",
    "SALARY_BUCKETS",
    "apply_filters",
    "candidate_insights",
    "enrich_for_matching",
    "match_score",
    "rank_candidates",
    "record_matches",
    "search_suggestions",
    "sort_records",
]
