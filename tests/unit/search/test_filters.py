from typing import get_args

import pytest
from pydantic import ValidationError

from talenthub.models.records import Application
from talenthub.models.search_models import ALL, ExperienceBucket, FilterParams, SalaryBucket
from talenthub.search.filters import (
    EXPERIENCE_BRACKETS,
    SALARY_BUCKETS,
    UnknownBucketError,
    apply_filters,
    experience_bracket_for,
    find_bracket,
    record_matches,
)


def ids(records):
    return [record.id for record in records]


def test_ten_plus_bracket_boundary(make_candidate):
    nine = make_candidate(experience_years=9)
    ten = make_candidate(experience_years=10)

    result = apply_filters([nine, ten], FilterParams(experience_bucket="10+"))

    assert ids(result) == [ten.id]


@pytest.mark.parametrize(
    "years,expected",
    [(0, "0-2"), (2.5, "0-2"), (3, "3-5"), (5.9, "3-5"), (6, "6-10"), (9.99, "6-10"), (10, "10+"), (40, "10+")],
)
def test_experience_brackets_are_half_open(years, expected):
    assert experience_bracket_for(years).key == expected


def test_null_experience_is_in_no_bracket(make_candidate):
    assert experience_bracket_for(None) is None
    candidate = make_candidate(experience_years=None)
    for bracket in EXPERIENCE_BRACKETS:
        assert apply_filters([candidate], FilterParams(experience_bucket=bracket.key)) == []


def test_null_experience_fails_active_range(make_candidate):
    candidate = make_candidate(experience_years=None)
    assert apply_filters([candidate], FilterParams(experience_min=0)) == []
    assert apply_filters([candidate], FilterParams()) == [candidate]


def test_missing_salary_counts_as_zero(make_candidate):
    unknown = make_candidate(expected_salary=None)
    rich = make_candidate(expected_salary=160_000)

    assert ids(apply_filters([unknown, rich], FilterParams(salary_bucket="0-50k"))) == [unknown.id]
    assert ids(apply_filters([unknown, rich], FilterParams(salary_bucket="150k+"))) == [rich.id]


def test_salary_bucket_upper_bound_is_exclusive(make_candidate):
    candidate = make_candidate(expected_salary=100_000)
    assert apply_filters([candidate], FilterParams(salary_bucket="50k-100k")) == []
    assert apply_filters([candidate], FilterParams(salary_bucket="100k-150k")) == [candidate]


def test_unknown_bucket_raises():
    with pytest.raises(UnknownBucketError):
        find_bracket(SALARY_BUCKETS, "1m+")


def test_phrase_matches_skills_and_tags(make_candidate):
    by_skill = make_candidate(skills=["PostgreSQL"])
    by_tag = make_candidate(tags=["postgres-fan"])
    other = make_candidate(skills=["Go"])

    result = apply_filters([by_skill, by_tag, other], FilterParams(query="Postgres"))

    assert ids(result) == [by_skill.id, by_tag.id]


def test_phrase_needs_the_whole_query(make_candidate):
    candidate = make_candidate(name="Ada Lovelace", title="Engineer")
    assert apply_filters([candidate], FilterParams(query="ada engineer")) == []
    assert apply_filters([candidate], FilterParams(query="ada engineer", text_mode="any_term")) == [
        candidate
    ]


def test_any_term_ignores_skills(make_candidate):
    candidate = make_candidate(name="Grace", skills=["rust"])
    assert apply_filters([candidate], FilterParams(query="rust", text_mode="any_term")) == []


def test_status_and_location(make_candidate):
    match = make_candidate(status="active", location="Cape Town")
    wrong_status = make_candidate(status="placed", location="Cape Town")
    wrong_place = make_candidate(status="active", location="Durban")

    params = FilterParams(status="active", location="cape")

    assert ids(apply_filters([match, wrong_status, wrong_place], params)) == [match.id]


def test_skill_and_availability(make_candidate):
    match = make_candidate(skills=["Python", "SQL"], availability="immediate")
    no_skill = make_candidate(skills=["Java"], availability="immediate")
    later = make_candidate(skills=["Python"], availability="1-month")

    params = FilterParams(skill="Python", availability="immediate")

    assert ids(apply_filters([match, no_skill, later], params)) == [match.id]


def test_dimensions_are_anded(make_candidate):
    candidate = make_candidate(status="active", experience_years=4, expected_salary=60_000)
    assert apply_filters(
        [candidate], FilterParams(status="active", experience_bucket="3-5", salary_bucket="50k-100k")
    ) == [candidate]
    assert (
        apply_filters(
            [candidate],
            FilterParams(status="active", experience_bucket="3-5", salary_bucket="0-50k"),
        )
        == []
    )


def test_filtering_is_idempotent(make_candidate):
    candidates = [
        make_candidate(experience_years=years, skills=skills, status=status)
        for years, skills, status in [
            (1, ["Python"], "active"),
            (4, ["Python", "Go"], "active"),
            (7, ["Go"], "inactive"),
            (None, [], "active"),
        ]
    ]
    params = FilterParams(query="candidate", status="active", skill="Python")

    once = apply_filters(candidates, params)
    twice = apply_filters(once, params)

    assert ids(once) == ids(twice)


def test_basic_tier_ignores_advanced_dimensions(make_candidate, free_caps, starter_caps):
    python = make_candidate(skills=["Python"])
    java = make_candidate(skills=["Java"])
    params = FilterParams(skill="Python")

    assert ids(apply_filters([python, java], params, free_caps)) == [python.id, java.id]
    assert ids(apply_filters([python, java], params, starter_caps)) == [python.id]


def test_applications_use_own_status_and_candidate_fields(make_candidate):
    senior = make_candidate(experience_years=12, status="placed")
    junior = make_candidate(experience_years=1)
    applications = [
        Application(id="a1", candidate_id=senior.id, job_id="j", status="interview", candidate=senior),
        Application(id="a2", candidate_id=junior.id, job_id="j", status="interview", candidate=junior),
        Application(id="a3", candidate_id=senior.id, job_id="j", status="rejected", candidate=senior),
    ]

    result = apply_filters(applications, FilterParams(status="interview", experience_bucket="10+"))

    assert ids(result) == ["a1"]


def test_application_without_candidate_fails_text_filter():
    application = Application(id="a1", candidate_id="c", job_id="j")
    assert record_matches(application, FilterParams())
    assert not record_matches(application, FilterParams(query="anything"))


def test_invalid_text_mode_rejected():
    with pytest.raises(ValidationError):
        FilterParams(text_mode="fuzzy")


@pytest.mark.parametrize("field", ["experience_bucket", "salary_bucket"])
def test_unknown_bucket_keys_rejected(field):
    with pytest.raises(ValidationError):
        FilterParams(**{field: "11+"})


def test_bucket_keys_match_brackets():
    assert get_args(ExperienceBucket) == (ALL, *(b.key for b in EXPERIENCE_BRACKETS))
    assert get_args(SalaryBucket) == (ALL, *(b.key for b in SALARY_BUCKETS))
