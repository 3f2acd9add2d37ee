"""Subscription tiers and the capability object derived from them.

The tier table is static configuration. Callers resolve a ``Capabilities``
object once per request from the subscriber's plan and pass it explicitly to
the search and report functions; nothing reads the tier from ambient state.
"""

import logging
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

FREE_TRIAL = "free-trial"
STARTER = "starter-monthly"
PROFESSIONAL = "professional-monthly"
ENTERPRISE = "enterprise-monthly"

ACTIVE_STATUSES = ("active", "trialing")


class SearchFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    basic_search: bool = True
    advanced_filters: bool = False
    ai_search: bool = False
    ai_matching: bool = False
    bulk_actions: bool = False
    save_searches: bool = False
    export_results: bool = False
    real_time_updates: bool = False
    candidate_insights: bool = False
    predictive_hiring: bool = False


class AnalyticsAccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    basic: bool = True
    advanced: bool = False
    predictive: bool = False
    exports: bool = False


class TierLimits(BaseModel):
    """Numeric limits; ``None`` means unlimited."""

    model_config = ConfigDict(frozen=True)

    max_results: int
    max_saved_searches: int
    search_history_days: int
    max_team_members: Optional[int]
    max_active_jobs: Optional[int]
    max_candidates: Optional[int]
    max_interviews_per_month: Optional[int]
    report_candidate_limit: int
    report_job_limit: int


class SubscriptionTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price_in_cents: int
    currency: str = "usd"
    search_features: SearchFeatures
    analytics_access: AnalyticsAccess
    limits: TierLimits


SUBSCRIPTION_TIERS: Dict[str, SubscriptionTier] = {
    FREE_TRIAL: SubscriptionTier(
        id=FREE_TRIAL,
        name="Free Trial",
        price_in_cents=0,
        search_features=SearchFeatures(),
        analytics_access=AnalyticsAccess(),
        limits=TierLimits(
            max_results=50,
            max_saved_searches=0,
            search_history_days=7,
            max_team_members=1,
            max_active_jobs=5,
            max_candidates=10,
            max_interviews_per_month=3,
            report_candidate_limit=100,
            report_job_limit=50,
        ),
    ),
    STARTER: SubscriptionTier(
        id=STARTER,
        name="Starter",
        price_in_cents=4900,
        search_features=SearchFeatures(
            advanced_filters=True,
            bulk_actions=True,
            save_searches=True,
            export_results=True,
        ),
        analytics_access=AnalyticsAccess(exports=True),
        limits=TierLimits(
            max_results=200,
            max_saved_searches=5,
            search_history_days=30,
            max_team_members=2,
            max_active_jobs=10,
            max_candidates=50,
            max_interviews_per_month=10,
            report_candidate_limit=500,
            report_job_limit=200,
        ),
    ),
    PROFESSIONAL: SubscriptionTier(
        id=PROFESSIONAL,
        name="Professional",
        price_in_cents=12900,
        search_features=SearchFeatures(
            advanced_filters=True,
            ai_search=True,
            bulk_actions=True,
            save_searches=True,
            export_results=True,
            real_time_updates=True,
            candidate_insights=True,
        ),
        analytics_access=AnalyticsAccess(advanced=True, exports=True),
        limits=TierLimits(
            max_results=1000,
            max_saved_searches=20,
            search_history_days=90,
            max_team_members=10,
            max_active_jobs=50,
            max_candidates=None,
            max_interviews_per_month=None,
            report_candidate_limit=5000,
            report_job_limit=1000,
        ),
    ),
    ENTERPRISE: SubscriptionTier(
        id=ENTERPRISE,
        name="Enterprise",
        price_in_cents=29900,
        search_features=SearchFeatures(
            advanced_filters=True,
            ai_search=True,
            ai_matching=True,
            bulk_actions=True,
            save_searches=True,
            export_results=True,
            real_time_updates=True,
            candidate_insights=True,
            predictive_hiring=True,
        ),
        analytics_access=AnalyticsAccess(advanced=True, predictive=True, exports=True),
        limits=TierLimits(
            max_results=10000,
            max_saved_searches=100,
            search_history_days=365,
            max_team_members=None,
            max_active_jobs=None,
            max_candidates=None,
            max_interviews_per_month=None,
            report_candidate_limit=10000,
            report_job_limit=5000,
        ),
    ),
}


def tier_id_from_plan_id(plan_id: Optional[str]) -> str:
    """Map a stored plan id onto a tier id.

    Tier ids are accepted as-is; billing plan ids are matched on the
    ``basic``/``premium``/``enterprise`` markers they carry.
    """
    if not plan_id:
        return FREE_TRIAL
    if plan_id in SUBSCRIPTION_TIERS:
        return plan_id
    lowered = plan_id.lower()
    if "basic" in lowered:
        return STARTER
    if "premium" in lowered:
        return PROFESSIONAL
    if "enterprise" in lowered:
        return ENTERPRISE
    logger.warning(f"Unknown plan id {plan_id!r}, falling back to {FREE_TRIAL}")
    return FREE_TRIAL


def resolve_tier(plan_id: Optional[str], status: Optional[str] = "active") -> SubscriptionTier:
    """Return the tier a subscriber is entitled to right now."""
    if status not in ACTIVE_STATUSES:
        return SUBSCRIPTION_TIERS[FREE_TRIAL]
    return SUBSCRIPTION_TIERS[tier_id_from_plan_id(plan_id)]


class Capabilities(BaseModel):
    """Immutable, per-request view of what a subscriber may do."""

    model_config = ConfigDict(frozen=True)

    tier: SubscriptionTier

    @classmethod
    def for_plan(cls, plan_id: Optional[str], status: Optional[str] = "active") -> "Capabilities":
        return cls(tier=resolve_tier(plan_id, status))

    @property
    def tier_id(self) -> str:
        return self.tier.id

    @property
    def is_free_trial(self) -> bool:
        return self.tier.id == FREE_TRIAL

    @property
    def advanced_filters(self) -> bool:
        return self.tier.search_features.advanced_filters

    @property
    def ai_search(self) -> bool:
        return self.tier.search_features.ai_search

    @property
    def ai_matching(self) -> bool:
        return self.tier.search_features.ai_matching

    @property
    def max_results(self) -> int:
        return self.tier.limits.max_results

    def has_feature(self, feature: str) -> bool:
        return bool(getattr(self.tier.search_features, feature, False))


class InterviewAccess(BaseModel):
    can_schedule: bool
    limit: Optional[int]
    used: int
    remaining: Optional[int]
    has_unlimited: bool
    needs_upgrade: bool


def check_interview_access(tier: SubscriptionTier, used: int) -> InterviewAccess:
    """Decide whether another interview fits in this month's quota."""
    limit = tier.limits.max_interviews_per_month
    has_unlimited = limit is None
    can_schedule = has_unlimited or used < limit
    return InterviewAccess(
        can_schedule=can_schedule,
        limit=limit,
        used=used,
        remaining=None if has_unlimited else max(0, limit - used),
        has_unlimited=has_unlimited,
        needs_upgrade=not can_schedule,
    )


def format_price(price_in_cents: int, currency: str = "usd") -> str:
    symbol = "$" if currency.lower() == "usd" else f"{currency.upper()} "
    amount = price_in_cents / 100
    if amount == int(amount):
        return f"{symbol}{int(amount):,}"
    return f"{symbol}{amount:,.2f}"
