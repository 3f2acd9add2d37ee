#!/usr/bin/env python3
"""
Candidate Search Service

Fetches a tenant's candidates (and optionally jobs) from the store, applies
the in-memory filters, scores and sorts the results according to the
subscriber's capabilities and records the search in the history.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from talenthub.analytics.aggregator import top_skills
from talenthub.config import Settings, settings as default_settings
from talenthub.db.repository import DatabaseError, TalentHubDatabase
from talenthub.models.records import utc_now
from talenthub.models.search_models import (
    FilterParams,
    SavedSearch,
    SearchResult,
    SearchType,
    TextMode,
)
from talenthub.search.filters import apply_filters
from talenthub.search.ranking import enrich_for_matching, rank_candidates, search_suggestions
from talenthub.search.sorting import sort_records
from talenthub.services.generation import RequestGenerations
from talenthub.subscription import Capabilities

logger = logging.getLogger(__name__)

SEARCH_FAILED_MESSAGE = "Search failed. Please try again."
SAVED_SEARCH_NAME_LENGTH = 30
TOP_SKILLS_IN_RESULTS = 10


class SearchServiceError(Exception):
    """Base exception for search service errors."""

    pass


class FeatureNotAvailableError(SearchServiceError):
    """Raised when the subscriber's tier lacks a feature."""

    def __init__(self, feature: str, tier_id: str):
        super().__init__(f"{feature} is not available on the {tier_id} plan")
        self.feature = feature
        self.tier_id = tier_id


class LimitExceededError(SearchServiceError):
    """Raised when a numeric plan limit has been reached."""

    pass


def require_feature(capabilities: Capabilities, feature: str) -> None:
    if not capabilities.has_feature(feature):
        raise FeatureNotAvailableError(feature, capabilities.tier_id)


def saved_search_name(query: str) -> str:
    suffix = "..." if len(query) > SAVED_SEARCH_NAME_LENGTH else ""
    return f"Search: {query[:SAVED_SEARCH_NAME_LENGTH]}{suffix}"


async def resolve_capabilities(
    db: TalentHubDatabase, user_id: str, config: Settings = default_settings
) -> Capabilities:
    """Derive the subscriber's capabilities from the stored subscription."""
    subscription = await db.fetch_subscription(user_id)
    if subscription is None:
        return Capabilities.for_plan(config.default_plan)
    return Capabilities.for_plan(subscription.plan_id, subscription.status)


class SearchService:
    """Runs searches for one or more tenants against a ``TalentHubDatabase``."""

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

    async def capabilities_for(self, user_id: str) -> Capabilities:
        return await resolve_capabilities(self.db, user_id, self.config)

    async def search(
        self,
        user_id: str,
        params: FilterParams,
        capabilities: Optional[Capabilities] = None,
        search_type: SearchType = SearchType.CANDIDATES,
    ) -> Optional[SearchResult]:
        """Run one search.

        Returns ``None`` when a newer search for the same tenant was started
        while this one was waiting on the store. A failed fetch yields an
        empty result carrying ``error``.
        """
        channel = ("search", user_id)
        generation = self.generations.begin(channel)
        try:
            return await self._search(channel, generation, user_id, params, capabilities, search_type)
        finally:
            self.generations.finish(channel)

    async def _search(
        self,
        channel: tuple,
        generation: int,
        user_id: str,
        params: FilterParams,
        capabilities: Optional[Capabilities],
        search_type: SearchType,
    ) -> Optional[SearchResult]:
        started = time.monotonic()
        search_type = SearchType(search_type)

        try:
            if capabilities is None:
                capabilities = await self.capabilities_for(user_id)

            terms = params.search_terms() if params.text_mode == TextMode.ANY_TERM else None
            candidates = []
            jobs = []
            if search_type in (SearchType.CANDIDATES, SearchType.ALL):
                candidates = await self.db.fetch_candidates(
                    user_id,
                    terms=terms,
                    status=None if params.status == "all" else params.status,
                    location=params.location or None,
                    limit=capabilities.max_results,
                )
            if search_type in (SearchType.JOBS, SearchType.ALL):
                jobs = await self.db.fetch_jobs(
                    user_id, terms=params.search_terms() or None, limit=capabilities.max_results
                )
        except DatabaseError:
            logger.exception("Error searching candidates for %s", user_id)
            if not self.generations.is_current(channel, generation):
                return None
            return SearchResult(error=SEARCH_FAILED_MESSAGE, generation=generation)

        if not self.generations.is_current(channel, generation):
            logger.info(
                "Discarding stale search result",
                extra={"extra": {"generation": generation, "latest": self.generations.latest(channel)}},
            )
            return None

        now = self.clock()
        results = apply_filters(candidates, params, capabilities)
        suggestions: List[str] = []
        if capabilities.ai_search:
            results = rank_candidates(
                results, params.query, now, self.config.recent_contact_days
            )
            suggestions = search_suggestions(params.query, results)
        if capabilities.ai_matching:
            results = enrich_for_matching(results)
        results = sort_records(results, params.sort_by, params.sort_order)

        result = SearchResult(
            candidates=results,
            jobs=jobs,
            total_results=len(results) + len(jobs),
            search_time_ms=int((time.monotonic() - started) * 1000),
            suggestions=suggestions,
            top_skills=top_skills(results, TOP_SKILLS_IN_RESULTS),
            generation=generation,
        )
        logger.info(
            f"Search returned {result.total_results} results in {result.search_time_ms}ms",
            extra={"extra": {"tier": capabilities.tier_id, "generation": generation}},
        )

        await self._record_history(user_id, params, search_type, result.total_results)
        return result

    async def _record_history(
        self, user_id: str, params: FilterParams, search_type: SearchType, result_count: int
    ) -> None:
        """Store the search in the history; failures here never fail the search."""
        try:
            await self.db.save_search_history(
                user_id, params.query, result_count, search_type.value, params, self.clock()
            )
        except DatabaseError as e:
            logger.warning(f"Error saving search history: {e}")

    async def save_search(
        self,
        user_id: str,
        params: FilterParams,
        capabilities: Capabilities,
        search_type: SearchType = SearchType.CANDIDATES,
        last_results_count: int = 0,
    ) -> SavedSearch:
        """Save the current search, within the tier's saved-search allowance."""
        require_feature(capabilities, "save_searches")
        limit = capabilities.tier.limits.max_saved_searches
        existing = await self.db.fetch_saved_searches(user_id)
        if len(existing) >= limit:
            raise LimitExceededError(f"You can save at most {limit} searches on your plan")

        saved = SavedSearch(
            user_id=user_id,
            name=saved_search_name(params.query),
            search_query=params.query,
            search_type=search_type,
            filters=params,
            last_results_count=last_results_count,
        )
        return await self.db.save_search(saved)

    async def load_saved_searches(self, user_id: str, capabilities: Capabilities) -> List[SavedSearch]:
        if not capabilities.has_feature("save_searches"):
            return []
        try:
            return await self.db.fetch_saved_searches(
                user_id, limit=capabilities.tier.limits.max_saved_searches
            )
        except DatabaseError as e:
            logger.error(f"Error loading saved searches: {e}")
            return []

    async def load_search_history(self, user_id: str, capabilities: Capabilities) -> List[dict]:
        """Searches within the tier's history retention window, newest first."""
        cutoff = self.clock() - timedelta(days=capabilities.tier.limits.search_history_days)
        try:
            return await self.db.fetch_search_history(
                user_id, since=cutoff, limit=self.config.search_history_limit
            )
        except DatabaseError as e:
            logger.error(f"Error loading search history: {e}")
            return []

    def check_bulk_action(self, capabilities: Capabilities, record_count: int) -> None:
        """Bulk actions need the feature and may not exceed the tier's result cap."""
        require_feature(capabilities, "bulk_actions")
        if record_count > capabilities.max_results:
            raise LimitExceededError(
                f"Bulk actions are limited to {capabilities.max_results} records on your plan"
            )

    def check_export(self, capabilities: Capabilities) -> None:
        require_feature(capabilities, "export_results")
