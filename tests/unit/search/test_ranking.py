from datetime import timedelta

import pytest

from talenthub.search.ranking import (
    NO_INSIGHTS,
    candidate_insights,
    enrich_for_matching,
    match_score,
    predictive_hiring_score,
    rank_candidates,
    recommend_jobs,
    retention_risk,
    search_suggestions,
)


def test_full_match_scores_ninety(make_candidate, now):
    candidate = make_candidate(
        title="Senior Engineer",
        skills=["Go", "Rust"],
        experience_years=6,
        last_contacted=now - timedelta(days=10),
    )

    assert match_score(candidate, "senior engineer rust", now) == 90


def test_bare_candidate_scores_base(make_candidate, now):
    candidate = make_candidate(skills=[], experience_years=None, last_contacted=None)

    assert match_score(candidate, "anything at all", now) == 50
    assert match_score(candidate, "", now) == 50


def test_short_terms_do_not_match_skills(make_candidate, now):
    candidate = make_candidate(skills=["Go"])
    assert match_score(candidate, "go", now) == 50


def test_stale_contact_earns_nothing(make_candidate, now):
    candidate = make_candidate(last_contacted=now - timedelta(days=31))
    assert match_score(candidate, "", now) == 50


def test_naive_last_contacted_is_treated_as_utc(make_candidate, now):
    candidate = make_candidate(last_contacted=(now - timedelta(days=1)).replace(tzinfo=None))
    assert match_score(candidate, "", now) == 55


@pytest.mark.parametrize("skill_count", [0, 1, 5, 20, 50])
def test_score_stays_in_bounds(make_candidate, now, skill_count):
    candidate = make_candidate(
        title="Python Developer",
        skills=[f"python{i}" for i in range(skill_count)],
        experience_years=15,
        last_contacted=now,
    )

    score = match_score(candidate, "python developer", now)

    assert 0 <= score <= 100


def test_score_is_capped(make_candidate, now):
    candidate = make_candidate(skills=[f"python{i}" for i in range(20)])
    assert match_score(candidate, "python", now) == 100


def test_insights_joined_in_order(make_candidate):
    candidate = make_candidate(
        experience_years=6,
        skills=["a", "b", "c", "d", "e"],
        availability="immediate",
        status="active",
    )

    assert candidate_insights(candidate) == (
        "Senior-level experience • Diverse skill set • Immediately available"
        " • Currently active in job search"
    )


def test_insights_fallback(make_candidate):
    candidate = make_candidate(status="inactive")
    assert candidate_insights(candidate) == NO_INSIGHTS


def test_suggestions_keep_priority_and_cap(make_candidate):
    candidates = [make_candidate(skills=["Python"]) for _ in range(11)]
    candidates.append(make_candidate(experience_years=9, skills=["Python"]))

    suggestions = search_suggestions("go", candidates)

    assert suggestions == [
        "Try using more specific keywords for better results",
        "Consider adding location filters to narrow down results",
        "Senior candidates available. Consider leadership roles",
    ]


def test_top_skill_suggestion(make_candidate):
    candidates = [
        make_candidate(skills=["Python", "SQL"]),
        make_candidate(skills=["Python"]),
        make_candidate(skills=["Java"]),
    ]

    assert search_suggestions("python developer", candidates) == [
        'Many candidates have "Python" skill - consider specializing your search'
    ]


def test_no_suggestions_for_empty_results():
    assert search_suggestions("data engineer", []) == []


def test_rank_candidates_copies_and_keeps_order(make_candidate, now):
    first = make_candidate(experience_years=1)
    second = make_candidate(experience_years=8)

    ranked = rank_candidates([first, second], "engineer", now)

    assert [c.id for c in ranked] == [first.id, second.id]
    assert [c.match_score for c in ranked] == [50, 60]
    assert all(c.ai_insights for c in ranked)
    assert first.match_score is None


def test_predictive_fields(make_candidate):
    candidate = make_candidate(
        title="Senior Developer",
        experience_years=6,
        skills=["a", "b", "c", "d", "e"],
        availability="immediate",
        status="active",
        location="San Francisco (Remote)",
    )

    assert predictive_hiring_score(candidate) == 90
    assert retention_risk(candidate) == 40
    assert recommend_jobs(candidate) == [
        "Senior Software Engineer",
        "Full Stack Developer",
        "Tech Lead",
    ]

    enriched = enrich_for_matching([candidate])[0]
    assert enriched.predictive_hiring_score == 90
    assert enriched.retention_risk == 40
    assert len(enriched.recommended_jobs) == 3


def test_no_recommendations_for_unknown_titles(make_candidate):
    assert recommend_jobs(make_candidate(title="Chef")) == []
    assert recommend_jobs(make_candidate(title=None)) == []
