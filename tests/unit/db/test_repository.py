from datetime import timedelta

import pytest

import talenthub.db  # noqa: F401 -- for coverage
from talenthub.db.repository import DatabaseError, TalentHubDatabase
from talenthub.models.records import Application, Interview, Job, TeamMember
from talenthub.models.search_models import FilterParams, SavedSearch
from talenthub.permissions import permissions_for_role


@pytest.mark.asyncio
async def test_foreign_key_enforcement(db):
    """Applications must point at existing candidates and jobs."""
    async with db._connection() as conn:
        async with conn.execute("PRAGMA foreign_keys") as cursor:
            result = await cursor.fetchone()
            assert result[0] == 1, "Foreign keys should be enabled"

    with pytest.raises(DatabaseError):
        await db.insert_application(
            "tenant", Application(id="a1", candidate_id="missing", job_id="missing")
        )


@pytest.mark.asyncio
async def test_check_connection(db):
    assert await db.check_connection()


@pytest.mark.asyncio
async def test_candidate_round_trip(db, make_candidate, now):
    candidate = make_candidate(
        skills=["Python", "SQL"],
        tags=["referral"],
        experience_years=4.5,
        availability="2-weeks",
        last_contacted=now - timedelta(days=2),
    )
    await db.insert_candidate("tenant", candidate)

    [stored] = await db.fetch_candidates("tenant")

    assert stored.id == candidate.id
    assert stored.skills == ["Python", "SQL"]
    assert stored.tags == ["referral"]
    assert stored.availability == "2-weeks"
    assert stored.created_at == candidate.created_at
    assert stored.last_contacted == candidate.last_contacted
    assert stored.user_id == "tenant"


@pytest.mark.asyncio
async def test_fetch_candidates_is_tenant_scoped_and_newest_first(db, make_candidate, now):
    older = make_candidate(created_at=now - timedelta(days=3))
    newer = make_candidate(created_at=now - timedelta(days=1))
    foreign = make_candidate(created_at=now)
    await db.insert_candidate("tenant", older)
    await db.insert_candidate("tenant", newer)
    await db.insert_candidate("other", foreign)

    result = await db.fetch_candidates("tenant")

    assert [c.id for c in result] == [newer.id, older.id]
    assert [c.id for c in await db.fetch_candidates("tenant", limit=1)] == [newer.id]


@pytest.mark.asyncio
async def test_fetch_candidates_terms_are_ored(db, make_candidate):
    ada = make_candidate(name="Ada Lovelace", title="Analyst")
    grace = make_candidate(name="Grace Hopper", location="Arlington")
    linus = make_candidate(name="Linus", title="Kernel Hacker")
    for candidate in (ada, grace, linus):
        await db.insert_candidate("tenant", candidate)

    result = await db.fetch_candidates("tenant", terms=["lovelace", "arlington"])

    assert sorted(c.id for c in result) == sorted([ada.id, grace.id])


@pytest.mark.asyncio
async def test_fetch_candidates_escapes_like_wildcards(db, make_candidate):
    await db.insert_candidate("tenant", make_candidate(name="Plain Name"))
    assert await db.fetch_candidates("tenant", terms=["%"]) == []
    assert await db.fetch_candidates("tenant", terms=["_"]) == []


@pytest.mark.asyncio
async def test_fetch_candidates_status_location_and_dates(db, make_candidate, now):
    match = make_candidate(status="active", location="Cape Town", created_at=now - timedelta(days=2))
    placed = make_candidate(status="placed", location="Cape Town", created_at=now - timedelta(days=2))
    old = make_candidate(status="active", location="Cape Town", created_at=now - timedelta(days=60))
    for candidate in (match, placed, old):
        await db.insert_candidate("tenant", candidate)

    result = await db.fetch_candidates(
        "tenant", status="active", location="cape", since=now - timedelta(days=30), until=now
    )

    assert [c.id for c in result] == [match.id]


@pytest.mark.asyncio
async def test_import_candidates_collects_errors(db):
    result = await db.import_candidates(
        "tenant",
        [
            {"name": "Good Row", "email": "good@example.com", "skills": ["Go"]},
            {"name": "Bad Row", "email": "bad@example.com", "experience_years": -1},
        ],
    )

    assert result.success == 1
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Failed to import Bad Row:")
    [stored] = await db.fetch_candidates("tenant")
    assert stored.name == "Good Row"


@pytest.mark.asyncio
async def test_applications_with_candidates(db, make_candidate, now):
    candidate = make_candidate()
    await db.insert_candidate("tenant", candidate)
    await db.insert_job("tenant", Job(id="job-1", title="Engineer", created_at=now))
    await db.insert_application(
        "tenant",
        Application(id="app-1", candidate_id=candidate.id, job_id="job-1", applied_at=now),
    )

    [plain] = await db.fetch_applications("tenant")
    [joined] = await db.fetch_applications("tenant", with_candidates=True)

    assert plain.candidate is None
    assert joined.candidate.id == candidate.id


@pytest.mark.asyncio
async def test_update_application_status(db, make_candidate, now):
    candidate = make_candidate()
    await db.insert_candidate("tenant", candidate)
    await db.insert_job("tenant", Job(id="job-1", title="Engineer", created_at=now))
    await db.insert_application(
        "tenant",
        Application(id="app-1", candidate_id=candidate.id, job_id="job-1", status="hired", applied_at=now),
    )

    # any transition is accepted, including back to applied
    await db.update_application_status("app-1", "applied")
    [application] = await db.fetch_applications("tenant")
    assert application.status == "applied"

    with pytest.raises(ValueError):
        await db.update_application_status("app-1", "ghosted")


@pytest.mark.asyncio
async def test_count_interviews_uses_exclusive_end(db, make_candidate, now):
    candidate = make_candidate()
    await db.insert_candidate("tenant", candidate)
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    end = start.replace(month=start.month + 1)
    for i, scheduled in enumerate([start, now, end]):
        await db.insert_interview(
            "tenant",
            Interview(id=f"i{i}", candidate_id=candidate.id, title="Chat", scheduled_at=scheduled),
        )

    assert await db.count_interviews("tenant", since=start, until=end) == 2


@pytest.mark.asyncio
async def test_active_team_members_are_counted(db):
    for i, status in enumerate(["active", "pending", "active"]):
        await db.insert_team_member(
            "tenant",
            TeamMember(
                id=f"m{i}",
                email=f"m{i}@example.com",
                role="member",
                status=status,
                permissions=permissions_for_role("member"),
            ),
        )

    assert await db.count_active_team_members("tenant") == 2


@pytest.mark.asyncio
async def test_subscription_upsert(db):
    assert await db.fetch_subscription("tenant") is None

    await db.set_subscription("tenant", "starter-monthly", "active")
    await db.set_subscription("tenant", "enterprise-monthly", "past_due")

    subscription = await db.fetch_subscription("tenant")
    assert subscription.plan_id == "enterprise-monthly"
    assert subscription.status == "past_due"


@pytest.mark.asyncio
async def test_search_history_and_saved_searches(db, now):
    params = FilterParams(query="python", skill="Python")
    await db.save_search_history("tenant", "python", 3, "candidates", params, now - timedelta(days=40))
    await db.save_search_history("tenant", "python", 5, "candidates", params, now)

    history = await db.fetch_search_history("tenant", since=now - timedelta(days=30))
    assert [row["result_count"] for row in history] == [5]
    assert history[0]["filters_applied"]["skill"] == "Python"

    saved = await db.save_search(SavedSearch(user_id="tenant", name="Search: python", search_query="python", filters=params))
    assert saved.id is not None

    [loaded] = await db.fetch_saved_searches("tenant")
    assert loaded.filters.skill == "Python"
    assert loaded.search_type == "candidates"


@pytest.mark.asyncio
async def test_readonly_refuses_writes(test_db_path, make_candidate):
    writer = await TalentHubDatabase(test_db_path).ainit()
    await writer.close()

    reader = await TalentHubDatabase(test_db_path, readonly=True).ainit()
    try:
        with pytest.raises(DatabaseError):
            await reader.insert_candidate("tenant", make_candidate())
        assert await reader.fetch_candidates("tenant") == []
    finally:
        await reader.close()
