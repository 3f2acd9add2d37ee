"""Test configuration and fixtures."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

# Test configuration
TEST_LOG_DIR = tempfile.mkdtemp(prefix="talenthub_test_logs_")
os.environ.setdefault("LOG_DIR", TEST_LOG_DIR)

from talenthub.db.repository import TalentHubDatabase  # noqa: E402
from talenthub.models.records import Application, Candidate, Interview, Job  # noqa: E402
from talenthub.subscription import (  # noqa: E402
    ENTERPRISE,
    FREE_TRIAL,
    PROFESSIONAL,
    STARTER,
    Capabilities,
)

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_candidate():
    """Factory for candidates with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "id": f"cand-{n}",
            "name": f"Candidate {n}",
            "email": f"candidate{n}@example.com",
            "created_at": NOW - timedelta(days=n),
        }
        data.update(overrides)
        return Candidate(**data)

    return _make


@pytest.fixture
def make_application():
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "id": f"app-{n}",
            "candidate_id": "cand-1",
            "job_id": "job-1",
            "applied_at": NOW - timedelta(days=n),
        }
        data.update(overrides)
        return Application(**data)

    return _make


@pytest.fixture
def make_job():
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        data = {"id": f"job-{n}", "title": f"Job {n}", "created_at": NOW - timedelta(days=n)}
        data.update(overrides)
        return Job(**data)

    return _make


@pytest.fixture
def make_interview():
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "id": f"int-{n}",
            "candidate_id": "cand-1",
            "title": f"Interview {n}",
            "created_at": NOW - timedelta(days=n),
        }
        data.update(overrides)
        return Interview(**data)

    return _make


@pytest.fixture
def free_caps():
    return Capabilities.for_plan(FREE_TRIAL)


@pytest.fixture
def starter_caps():
    return Capabilities.for_plan(STARTER)


@pytest.fixture
def professional_caps():
    return Capabilities.for_plan(PROFESSIONAL)


@pytest.fixture
def enterprise_caps():
    return Capabilities.for_plan(ENTERPRISE)


@pytest.fixture
def test_db_path(tmp_path):
    """Provide a throwaway database path."""
    return str(tmp_path / "talenthub_test.db")


@pytest_asyncio.fixture
async def db(test_db_path):
    """Initialised database, closed after the test."""
    database = await TalentHubDatabase(test_db_path).ainit()
    yield database
    await database.close()
