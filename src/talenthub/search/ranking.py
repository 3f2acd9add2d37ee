"""Heuristic candidate scoring.

Nothing here is a learned model. The match score is a fixed additive formula
over a handful of candidate fields, and the insight and suggestion strings
come from plain threshold checks. There are no weights to train and no
feedback loop, so no statistical guarantee should be read into the numbers.
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from talenthub.models.records import Availability, Candidate, CandidateStatus, ensure_utc, utc_now

BASE_SCORE = 50
TITLE_MATCH_POINTS = 20
SKILL_MATCH_POINTS = 5
EXPERIENCE_POINTS = 10
RECENT_CONTACT_POINTS = 5

MIN_SKILL_TERM_LENGTH = 4
EXPERIENCED_YEARS = 3
SENIOR_YEARS = 5
LEADERSHIP_YEARS = 8
DIVERSE_SKILL_COUNT = 5
RECENT_CONTACT_DAYS = 30

MAX_SUGGESTIONS = 3
TOP_SKILL_SHARE = 0.3

INSIGHT_SEPARATOR = " • "
NO_INSIGHTS = "No specific insights available"

HIGH_COMPETITION_CITIES = ("san francisco", "new york")

ROLE_RECOMMENDATIONS = (
    ("developer", ("Senior Software Engineer", "Full Stack Developer", "Tech Lead")),
    ("manager", ("Product Manager", "Project Manager", "Operations Manager")),
    ("design", ("UI/UX Designer", "Product Designer", "Design Lead")),
)


def clamp_score(raw: int) -> int:
    return max(0, min(100, raw))


def _skill_terms(query: str) -> List[str]:
    return [term for term in query.lower().split() if len(term) >= MIN_SKILL_TERM_LENGTH]


def _contacted_recently(
    last_contacted: Optional[datetime], now: datetime, window_days: int
) -> bool:
    if last_contacted is None:
        return False
    return now - ensure_utc(last_contacted) < timedelta(days=window_days)


def match_score(
    candidate: Candidate,
    query: str,
    now: Optional[datetime] = None,
    recent_contact_days: int = RECENT_CONTACT_DAYS,
) -> int:
    """Score ``candidate`` against ``query`` on a 0-100 scale.

    Starts at 50 and adds 20 for a title contained in the query, 5 for each
    skill containing a query term of four or more characters, 10 for three or
    more years of experience and 5 for contact within the last 30 days.
    """
    now = ensure_utc(now) if now else utc_now()
    lowered = query.lower()
    score = BASE_SCORE

    if candidate.title and candidate.title.lower() in lowered:
        score += TITLE_MATCH_POINTS

    terms = _skill_terms(query)
    if terms:
        matched = [
            skill for skill in candidate.skills if any(term in skill.lower() for term in terms)
        ]
        score += SKILL_MATCH_POINTS * len(matched)

    if candidate.experience_years is not None and candidate.experience_years >= EXPERIENCED_YEARS:
        score += EXPERIENCE_POINTS

    if _contacted_recently(candidate.last_contacted, now, recent_contact_days):
        score += RECENT_CONTACT_POINTS

    return clamp_score(score)


def candidate_insights(candidate: Candidate) -> str:
    insights = []
    if candidate.experience_years is not None and candidate.experience_years >= SENIOR_YEARS:
        insights.append("Senior-level experience")
    if len(candidate.skills) >= DIVERSE_SKILL_COUNT:
        insights.append("Diverse skill set")
    if candidate.availability == Availability.IMMEDIATE:
        insights.append("Immediately available")
    if candidate.status == CandidateStatus.ACTIVE:
        insights.append("Currently active in job search")
    return INSIGHT_SEPARATOR.join(insights) or NO_INSIGHTS


def search_suggestions(query: str, candidates: Sequence[Candidate]) -> List[str]:
    """Up to three hints about the result set, in fixed priority order."""
    suggestions = []

    if len(query) < 3:
        suggestions.append("Try using more specific keywords for better results")

    if len(candidates) > 10:
        suggestions.append("Consider adding location filters to narrow down results")

    if any(
        c.experience_years is not None and c.experience_years >= LEADERSHIP_YEARS
        for c in candidates
    ):
        suggestions.append("Senior candidates available. Consider leadership roles")

    skill_counts = Counter(skill for c in candidates for skill in c.skills)
    if skill_counts:
        # most_common keeps first-seen order among equal counts
        top_skill, count = skill_counts.most_common(1)[0]
        if count > len(candidates) * TOP_SKILL_SHARE:
            suggestions.append(
                f'Many candidates have "{top_skill}" skill - consider specializing your search'
            )

    return suggestions[:MAX_SUGGESTIONS]


def rank_candidates(
    candidates: Iterable[Candidate],
    query: str,
    now: Optional[datetime] = None,
    recent_contact_days: int = RECENT_CONTACT_DAYS,
    with_insights: bool = True,
) -> List[Candidate]:
    """Copies of ``candidates`` with ``match_score`` (and insights) filled in.

    Order is left alone; sorting is up to the caller.
    """
    now = ensure_utc(now) if now else utc_now()
    ranked = []
    for candidate in candidates:
        update = {"match_score": match_score(candidate, query, now, recent_contact_days)}
        if with_insights:
            update["ai_insights"] = candidate_insights(candidate)
        ranked.append(candidate.model_copy(update=update))
    return ranked


def predictive_hiring_score(candidate: Candidate) -> int:
    score = 60
    if candidate.experience_years is not None and candidate.experience_years >= EXPERIENCED_YEARS:
        score += 15
    if len(candidate.skills) >= DIVERSE_SKILL_COUNT:
        score += 10
    if candidate.availability == Availability.IMMEDIATE:
        score += 5
    if candidate.status == CandidateStatus.ACTIVE:
        score += 5
    if candidate.location and "remote" in candidate.location.lower():
        score -= 5
    return clamp_score(score)


def recommend_jobs(candidate: Candidate) -> List[str]:
    title = (candidate.title or "").lower()
    for keyword, roles in ROLE_RECOMMENDATIONS:
        if keyword in title:
            return list(roles[:3])
    return []


def retention_risk(candidate: Candidate) -> int:
    risk = 30
    if candidate.experience_years is not None and candidate.experience_years >= SENIOR_YEARS:
        risk -= 10
    if candidate.status == CandidateStatus.ACTIVE:
        risk -= 5
    if candidate.availability == Availability.IMMEDIATE:
        risk += 10
    location = (candidate.location or "").lower()
    if any(city in location for city in HIGH_COMPETITION_CITIES):
        risk += 15
    return clamp_score(risk)


def enrich_for_matching(candidates: Iterable[Candidate]) -> List[Candidate]:
    """Add predictive hiring score, job recommendations and retention risk."""
    return [
        candidate.model_copy(
            update={
                "predictive_hiring_score": predictive_hiring_score(candidate),
                "recommended_jobs": recommend_jobs(candidate),
                "retention_risk": retention_risk(candidate),
            }
        )
        for candidate in candidates
    ]
