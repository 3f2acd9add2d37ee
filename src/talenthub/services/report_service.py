"""
Analytics Report Service

Loads the four record collections for a reporting window, limited by the
subscriber's tier, and turns them into an ``AnalyticsReport``.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from talenthub.analytics.reports import build_report, resolve_date_range
from talenthub.config import Settings, settings as default_settings
from talenthub.db.repository import DatabaseError, TalentHubDatabase
from talenthub.models.analytics_models import ReportResult
from talenthub.models.records import ensure_utc, utc_now
from talenthub.permissions import TeamCapacity, team_capacity
from talenthub.services.generation import RequestGenerations
from talenthub.services.search_service import resolve_capabilities
from talenthub.subscription import Capabilities, InterviewAccess, check_interview_access

logger = logging.getLogger(__name__)

REPORT_FAILED_MESSAGE = "Failed to fetch analytics data"


def month_bounds(now: datetime):
    """First instant of the current UTC month and of the next one."""
    now = ensure_utc(now)
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


class ReportService:
    def __init__(
        self,
        db: TalentHubDatabase,
        config: Settings = default_settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.config = config
        self.clock = clock
        self.generations = RequestGenerations()

    async def build(
        self,
        user_id: str,
        range_key: str = "30",
        capabilities: Optional[Capabilities] = None,
    ) -> Optional[ReportResult]:
        """Build the report for ``user_id``.

        Returns ``None`` if a newer report request for the same tenant started
        meanwhile; a failed fetch gives a result with ``error`` and no report.
        """
        channel = ("report", user_id)
        generation = self.generations.begin(channel)
        try:
            return await self._build(channel, generation, user_id, range_key, capabilities)
        finally:
            self.generations.finish(channel)

    async def _build(
        self,
        channel: tuple,
        generation: int,
        user_id: str,
        range_key: str,
        capabilities: Optional[Capabilities],
    ) -> Optional[ReportResult]:
        now = self.clock()

        try:
            if capabilities is None:
                capabilities = await resolve_capabilities(self.db, user_id, self.config)
            start = resolve_date_range(range_key, capabilities, now)
            limits = capabilities.tier.limits
            candidates, jobs, applications, interviews = await asyncio.gather(
                self.db.fetch_candidates(
                    user_id, since=start, until=now, limit=limits.report_candidate_limit
                ),
                self.db.fetch_jobs(user_id, since=start, until=now, limit=limits.report_job_limit),
                self.db.fetch_applications(
                    user_id, since=start, until=now, limit=limits.report_candidate_limit * 2
                ),
                self.db.fetch_interviews(
                    user_id, since=start, until=now, limit=limits.report_candidate_limit
                ),
            )
        except DatabaseError as e:
            logger.exception("Error fetching analytics for %s", user_id)
            if not self.generations.is_current(channel, generation):
                return None
            return ReportResult(error=f"{REPORT_FAILED_MESSAGE}: {e}", generation=generation)

        if not self.generations.is_current(channel, generation):
            logger.info("Discarding stale report", extra={"extra": {"generation": generation}})
            return None

        report = build_report(
            candidates, jobs, applications, interviews, capabilities, now, range_start=start
        )
        return ReportResult(report=report, generation=generation)

    async def interview_access(
        self, user_id: str, capabilities: Optional[Capabilities] = None
    ) -> InterviewAccess:
        """Interview quota for the current calendar month (UTC)."""
        if capabilities is None:
            capabilities = await resolve_capabilities(self.db, user_id, self.config)
        start, end = month_bounds(self.clock())
        used = await self.db.count_interviews(user_id, since=start, until=end)
        return check_interview_access(capabilities.tier, used)

    async def team_capacity(
        self, user_id: str, capabilities: Optional[Capabilities] = None
    ) -> TeamCapacity:
        if capabilities is None:
            capabilities = await resolve_capabilities(self.db, user_id, self.config)
        active = await self.db.count_active_team_members(user_id)
        return team_capacity(active, capabilities.tier)
