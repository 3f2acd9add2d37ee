"""Assembly of the analytics report shown on the reports dashboard.

Which sections are filled depends on the subscriber's analytics access:
everyone gets the basic sections, advanced access adds quality and benchmark
figures, predictive access adds forecasts and recommendations.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from talenthub.analytics import aggregator
from talenthub.models.analytics_models import (
    AdvancedSection,
    AnalyticsReport,
    ApplicationsSection,
    CandidatesSection,
    HiringForecast,
    HiringMetrics,
    InterviewsSection,
    JobsSection,
    Overview,
    PerformanceSection,
    PredictiveSection,
)
from talenthub.models.records import (
    Application,
    ApplicationStatus,
    Candidate,
    CandidateStatus,
    Interview,
    Job,
    JobStatus,
    ensure_utc,
)
from talenthub.subscription import Capabilities, ENTERPRISE

logger = logging.getLogger(__name__)

DEFAULT_RANGE = "30"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

BENCHMARKS: Dict[str, int] = {
    "time_to_hire": 32,
    "cost_per_hire": 2800,
    "offer_acceptance_rate": 78,
}

# Quality points per application status; anything else scores the base value
QUALITY_POINTS = {
    ApplicationStatus.HIRED.value: 9.0,
    ApplicationStatus.INTERVIEW.value: 8.0,
    ApplicationStatus.OFFER.value: 8.0,
    ApplicationStatus.SCREENING.value: 6.5,
}
BASE_QUALITY = 5.0
DEFAULT_QUALITY = 7.5

ROLE_CATEGORIES = (
    ("Senior Roles", ("senior", "lead", "principal")),
    ("Developers", ("developer", "engineer", "software")),
    ("Data Professionals", ("data", "analyst", "scientist")),
    ("Product/Management", ("product", "manager", "director")),
    ("Designers", ("design", "ux", "ui")),
)
DEFAULT_HIGH_DEMAND_ROLES = ["Senior Developer", "Data Scientist", "Product Manager"]

GENERAL_RECOMMENDATIONS = (
    "Diversify your candidate sourcing channels to attract more qualified applicants",
    "Implement structured interviews to improve hiring consistency",
    "Regularly update job descriptions to attract relevant candidates",
)


def range_options(capabilities: Capabilities) -> List[str]:
    """Date-range keys the subscriber may pick."""
    options = ["7", "30"]
    if capabilities.tier.analytics_access.advanced:
        options += ["90", "year"]
    if capabilities.tier_id == ENTERPRISE:
        options.append("all")
    return options


def resolve_date_range(range_key: str, capabilities: Capabilities, now: datetime) -> datetime:
    """Start of the reporting window.

    Ranges the tier is not entitled to fall back to the last 30 days.
    """
    now = ensure_utc(now)
    if range_key not in range_options(capabilities):
        if range_key not in ("7", "30", "90", "year", "all"):
            logger.warning(f"Unknown report range {range_key!r}, using {DEFAULT_RANGE} days")
        range_key = DEFAULT_RANGE

    if range_key == "all":
        return EPOCH
    if range_key == "year":
        return now - timedelta(days=365)
    return now - timedelta(days=int(range_key))


def candidate_quality(applications: Sequence[Application]) -> float:
    """Mean pipeline-stage quality on a 5-10 scale."""
    if not applications:
        return DEFAULT_QUALITY
    total = sum(QUALITY_POINTS.get(a.status, BASE_QUALITY) for a in applications)
    return round(min(10.0, max(5.0, total / len(applications))), 1)


def high_demand_roles(jobs: Sequence[Job]) -> List[str]:
    if not jobs:
        return list(DEFAULT_HIGH_DEMAND_ROLES)
    counts: Dict[str, int] = {}
    for job in jobs:
        title = job.title.lower()
        for category, keywords in ROLE_CATEGORIES:
            if any(keyword in title for keyword in keywords):
                counts[category] = counts.get(category, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [category for category, _ in ranked[:3]]


def attrition_risk(candidates: Sequence[Candidate]) -> int:
    """Base risk of 15 plus half the withdrawal rate, capped at 50."""
    if not candidates:
        return 20
    withdrawn = sum(1 for c in candidates if c.status == CandidateStatus.WITHDRAWN)
    withdrawal_rate = withdrawn / len(candidates) * 100
    return min(50, aggregator.round_half_up(15 + withdrawal_rate * 0.5))


def hiring_forecast(applications: Sequence[Application], now: datetime) -> HiringForecast:
    if not applications:
        return HiringForecast(next_month=12, next_quarter=35, next_year=150)

    now = ensure_utc(now)
    month_ago = now - timedelta(days=30)
    recent = sum(1 for a in applications if a.applied_at and ensure_utc(a.applied_at) >= month_ago)
    hire_rate = sum(1 for a in applications if a.status == ApplicationStatus.HIRED) / len(applications)

    next_month = max(5, aggregator.round_half_up(recent * 1.1 * hire_rate))
    next_quarter = aggregator.round_half_up(next_month * 3 * 0.9)
    next_year = aggregator.round_half_up(next_quarter * 4 * 0.85)
    return HiringForecast(next_month=next_month, next_quarter=next_quarter, next_year=next_year)


def recommendations(report: AnalyticsReport) -> List[str]:
    """At most three process recommendations drawn from the report's figures."""
    advice = []
    if report.hiring_metrics.time_to_hire > 45:
        advice.append("Consider streamlining your interview process to reduce time-to-hire")
    if report.hiring_metrics.offer_acceptance_rate < 80:
        advice.append(
            "Review your compensation packages and offer process to improve acceptance rates"
        )
    if report.interviews.completion_rate < 90:
        advice.append(
            "Implement reminder systems to reduce interview no-shows and cancellations"
        )
    if len(advice) < 3:
        advice.extend(GENERAL_RECOMMENDATIONS)
    return advice[:3]


def build_report(
    candidates: Sequence[Candidate],
    jobs: Sequence[Job],
    applications: Sequence[Application],
    interviews: Sequence[Interview],
    capabilities: Capabilities,
    now: datetime,
    range_start: Optional[datetime] = None,
) -> AnalyticsReport:
    """Aggregate the four collections into an ``AnalyticsReport``."""
    now = ensure_utc(now)
    free_trial = capabilities.is_free_trial
    time_to_hire = aggregator.average_time_to_hire(applications)

    report = AnalyticsReport(
        tier_id=capabilities.tier_id,
        range_start=range_start or now,
        range_end=now,
        overview=Overview(
            total_candidates=len(candidates),
            active_candidates=sum(1 for c in candidates if c.status == CandidateStatus.ACTIVE),
            placed_candidates=sum(1 for c in candidates if c.status == CandidateStatus.PLACED),
            total_jobs=len(jobs),
            open_jobs=sum(1 for j in jobs if j.status == JobStatus.OPEN),
            hired_count=sum(1 for a in applications if a.status == ApplicationStatus.HIRED),
            average_time_to_hire=time_to_hire,
            total_applications=len(applications),
            total_interviews=len(interviews),
        ),
        hiring_metrics=HiringMetrics(
            time_to_hire=time_to_hire,
            offer_acceptance_rate=aggregator.offer_acceptance_rate(applications),
            interview_success_rate=aggregator.interview_completion_rate(interviews),
        ),
        applications=ApplicationsSection(
            by_status=aggregator.applications_by_status(applications),
            monthly_trend=aggregator.monthly_trend(applications, now),
            conversion_funnel=aggregator.conversion_funnel(applications),
        ),
        candidates=CandidatesSection(
            by_status=aggregator.candidates_by_status(candidates),
            by_experience=aggregator.candidates_by_experience(candidates),
            by_availability=aggregator.candidates_by_availability(candidates),
            top_skills=aggregator.top_skills(candidates, 5 if free_trial else 10),
        ),
        jobs=JobsSection(
            by_status=aggregator.jobs_by_status(jobs),
            by_department=aggregator.jobs_by_department(jobs),
            top_performing=aggregator.top_jobs(jobs, applications, 3 if free_trial else 5),
        ),
        interviews=InterviewsSection(
            by_status=aggregator.interviews_by_status(interviews),
            by_type=aggregator.interviews_by_type(interviews),
            completion_rate=aggregator.interview_completion_rate(interviews),
            no_show_rate=aggregator.interview_no_show_rate(interviews),
        ),
        recent_activity=aggregator.recent_activity(
            candidates, jobs, applications, interviews, 3 if free_trial else 5
        ),
        performance=PerformanceSection(
            interviewer_performance=aggregator.interviewer_performance(interviews, applications),
        ),
    )

    access = capabilities.tier.analytics_access
    if access.advanced:
        report.advanced = AdvancedSection(
            candidate_quality=candidate_quality(applications),
            benchmark_comparison=dict(BENCHMARKS),
        )
    if access.predictive:
        report.predictive = PredictiveSection(
            high_demand_roles=high_demand_roles(jobs),
            attrition_risk=attrition_risk(candidates),
            hiring_forecast=hiring_forecast(applications, now),
            recommendations=recommendations(report),
        )
    return report
