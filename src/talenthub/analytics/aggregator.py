"""Grouped counts, percentages and rates for dashboard and report widgets.

Groups come out in first-seen order unless a function says otherwise. Where
a percentage is computed it is ``round(count / total * 100)`` with halves
rounded up, and 0 when the collection is empty.
"""

import calendar
import math
from collections import Counter
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from talenthub.models.analytics_models import (
    ActivityItem,
    FunnelStage,
    InterviewerPerformance,
    JobPerformance,
    MonthlyTrendPoint,
)
from talenthub.models.records import (
    Application,
    ApplicationStatus,
    Candidate,
    Interview,
    InterviewStatus,
    Job,
    ensure_utc,
)
from talenthub.models.search_models import GroupCount
from talenthub.search.filters import EXPERIENCE_BRACKETS

UNKNOWN = "unknown"
SECONDS_PER_DAY = 86400

FUNNEL_STAGES = (
    ("Applied", ApplicationStatus.APPLIED.value),
    ("Screened", ApplicationStatus.SCREENING.value),
    ("Interviewed", ApplicationStatus.INTERVIEW.value),
    ("Offered", ApplicationStatus.OFFER.value),
    ("Hired", ApplicationStatus.HIRED.value),
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(count: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(count / total * 100)


def capitalize(label: str) -> str:
    return label[:1].upper() + label[1:]


def group_counts(
    records: Iterable,
    key: Callable[[object], Optional[str]],
    with_percentage: bool = False,
    label: Callable[[str], str] = str,
    default: str = UNKNOWN,
) -> List[GroupCount]:
    """Count records per group in first-seen order.

    Records whose key is ``None`` or empty are counted under ``default``.
    """
    counts: Dict[str, int] = {}
    total = 0
    for record in records:
        group = key(record) or default
        counts[group] = counts.get(group, 0) + 1
        total += 1

    return [
        GroupCount(
            group=label(group),
            count=count,
            percentage=percentage(count, total) if with_percentage else None,
        )
        for group, count in counts.items()
    ]


def applications_by_status(applications: Sequence[Application]) -> List[GroupCount]:
    return group_counts(applications, lambda a: a.status, with_percentage=True, label=capitalize)


def candidates_by_status(candidates: Sequence[Candidate]) -> List[GroupCount]:
    return group_counts(candidates, lambda c: c.status, label=capitalize)


def _availability_label(value: str) -> str:
    return capitalize(value.replace("-", " ", 1))


def candidates_by_availability(candidates: Sequence[Candidate]) -> List[GroupCount]:
    return group_counts(candidates, lambda c: c.availability, label=_availability_label)


def candidates_by_experience(candidates: Sequence[Candidate]) -> List[GroupCount]:
    """Count per experience bracket; every bracket is listed, even when empty.

    Candidates without ``experience_years`` are in no bracket.
    """
    if not candidates:
        return []
    return [
        GroupCount(
            group=bracket.label,
            count=sum(1 for c in candidates if bracket.contains(c.experience_years)),
        )
        for bracket in EXPERIENCE_BRACKETS
    ]


def jobs_by_status(jobs: Sequence[Job]) -> List[GroupCount]:
    return group_counts(jobs, lambda j: j.status, label=capitalize)


def jobs_by_department(jobs: Sequence[Job]) -> List[GroupCount]:
    return group_counts(jobs, lambda j: j.department, default="Unknown")


def interviews_by_status(interviews: Sequence[Interview]) -> List[GroupCount]:
    return group_counts(interviews, lambda i: i.status, label=capitalize)


def _type_label(value: str) -> str:
    return " ".join(capitalize(word) for word in value.split("-"))


def interviews_by_type(interviews: Sequence[Interview]) -> List[GroupCount]:
    return group_counts(interviews, lambda i: i.interview_type, label=_type_label)


def top_skills(candidates: Sequence[Candidate], limit: int = 10) -> List[GroupCount]:
    """Most frequent skills, trimmed and case-folded; ties keep first-seen order."""
    counts = Counter(
        skill.strip().lower() for candidate in candidates for skill in candidate.skills if skill.strip()
    )
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [GroupCount(group=capitalize(skill), count=count) for skill, count in ranked[:limit]]


def top_jobs(
    jobs: Sequence[Job], applications: Sequence[Application], limit: int = 5
) -> List[JobPerformance]:
    """Jobs with the most applications; ties keep the jobs' original order."""
    performance: Dict[str, JobPerformance] = {
        job.id: JobPerformance(id=job.id, title=job.title) for job in jobs
    }
    for application in applications:
        entry = performance.get(application.job_id)
        if entry is None:
            continue
        entry.applications += 1
        if application.status == ApplicationStatus.HIRED:
            entry.hires += 1

    for entry in performance.values():
        entry.fill_rate = percentage(entry.hires, entry.applications)

    ranked = sorted(performance.values(), key=lambda entry: entry.applications, reverse=True)
    return ranked[:limit]


def interviewer_performance(
    interviews: Sequence[Interview], applications: Sequence[Application]
) -> List[InterviewerPerformance]:
    """Interviews held and hires credited per interviewer, in first-seen order.

    A hire is credited to whoever ran the candidate's first listed interview.
    Interviews without an interviewer name are not counted.
    """
    performance: Dict[str, InterviewerPerformance] = {}
    first_interview: Dict[str, Interview] = {}
    for interview in interviews:
        first_interview.setdefault(interview.candidate_id, interview)
        name = interview.interviewer_name
        if not name:
            continue
        entry = performance.setdefault(name, InterviewerPerformance(name=name))
        entry.interviews += 1

    for application in applications:
        if application.status != ApplicationStatus.HIRED:
            continue
        interview = first_interview.get(application.candidate_id)
        if interview is not None and interview.interviewer_name:
            performance[interview.interviewer_name].hires += 1

    for entry in performance.values():
        entry.hire_rate = percentage(entry.hires, entry.interviews)
    return list(performance.values())


def _shift_month(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def monthly_trend(
    applications: Sequence[Application], now: datetime, months: int = 6
) -> List[MonthlyTrendPoint]:
    """Applications and hires per calendar month for the trailing ``months``.

    Months without applications are present with zero counts.
    """
    now = ensure_utc(now)
    points: Dict[tuple, MonthlyTrendPoint] = {}
    for offset in range(months - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        points[(year, month)] = MonthlyTrendPoint(
            month=calendar.month_abbr[month], key=f"{year:04d}-{month:02d}"
        )

    for application in applications:
        if application.applied_at is None:
            continue
        applied = ensure_utc(application.applied_at)
        point = points.get((applied.year, applied.month))
        if point is None:
            continue
        point.applications += 1
        if application.status == ApplicationStatus.HIRED:
            point.hires += 1

    return list(points.values())


def days_between(later: datetime, earlier: datetime) -> int:
    """Whole days from ``earlier`` to ``later``, partial days rounded up."""
    seconds = (ensure_utc(later) - ensure_utc(earlier)).total_seconds()
    return math.ceil(seconds / SECONDS_PER_DAY)


def average_time_to_hire(applications: Sequence[Application]) -> int:
    """Mean days from application to hire over hired applications; 0 without hires."""
    durations = [
        max(0, days_between(a.updated_at, a.applied_at))
        for a in applications
        if a.status == ApplicationStatus.HIRED and a.applied_at and a.updated_at
    ]
    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations))


def offer_acceptance_rate(applications: Sequence[Application]) -> int:
    offers = sum(1 for a in applications if a.status == ApplicationStatus.OFFER)
    hires = sum(1 for a in applications if a.status == ApplicationStatus.HIRED)
    return percentage(hires, offers)


def interview_completion_rate(interviews: Sequence[Interview]) -> int:
    completed = sum(1 for i in interviews if i.status == InterviewStatus.COMPLETED)
    return percentage(completed, len(interviews))


def interview_no_show_rate(interviews: Sequence[Interview]) -> int:
    cancelled = sum(1 for i in interviews if i.status == InterviewStatus.CANCELLED)
    return percentage(cancelled, len(interviews))


def conversion_funnel(applications: Sequence[Application]) -> List[FunnelStage]:
    """How many applications reached each stage of the hiring pipeline.

    An application counts towards every stage up to its current one; rejected
    applications only count as applied.
    """
    stage_index = {key: index for index, (_, key) in enumerate(FUNNEL_STAGES)}
    total = len(applications)

    counts = []
    for index, _ in enumerate(FUNNEL_STAGES):
        counts.append(
            sum(1 for a in applications if index == 0 or stage_index.get(a.status, -1) >= index)
        )

    funnel = []
    for index, (name, key) in enumerate(FUNNEL_STAGES):
        previous = counts[index - 1] if index > 0 else 0
        drop_off = percentage(previous - counts[index], previous) if index > 0 else 0
        funnel.append(
            FunnelStage(
                stage=index + 1,
                name=name,
                key=key,
                count=counts[index],
                percentage=percentage(counts[index], total),
                drop_off=drop_off,
            )
        )
    return funnel


def _latest(records: Iterable, stamp: Callable, limit: int) -> list:
    dated = [record for record in records if stamp(record) is not None]
    return sorted(dated, key=lambda record: ensure_utc(stamp(record)), reverse=True)[:limit]


def recent_activity(
    candidates: Sequence[Candidate],
    jobs: Sequence[Job],
    applications: Sequence[Application],
    interviews: Sequence[Interview],
    limit: int = 5,
) -> List[ActivityItem]:
    """Latest applications, interviews and new candidates, newest first."""
    candidates_by_id = {c.id: c for c in candidates}
    jobs_by_id = {j.id: j for j in jobs}
    activities = []

    for application in _latest(applications, lambda a: a.applied_at, 3):
        candidate = candidates_by_id.get(application.candidate_id) or application.candidate
        if candidate is None:
            continue
        job = jobs_by_id.get(application.job_id)
        activities.append(
            ActivityItem(
                id=application.id,
                type="application",
                title=f"New application for {job.title if job else 'a job'}",
                description=f"{candidate.name} applied",
                timestamp=application.applied_at,
                user=candidate.name,
            )
        )

    interview_titles = {
        InterviewStatus.SCHEDULED.value: "Scheduled interview",
        InterviewStatus.COMPLETED.value: "Completed interview",
    }
    for interview in _latest(interviews, lambda i: i.created_at, 2):
        activities.append(
            ActivityItem(
                id=interview.id,
                type="interview",
                title=interview_titles.get(interview.status, "Updated interview"),
                description=interview.title,
                timestamp=interview.created_at,
                user="System",
            )
        )

    for candidate in _latest(candidates, lambda c: c.created_at, 2):
        activities.append(
            ActivityItem(
                id=candidate.id,
                type="candidate",
                title="New candidate added",
                description=candidate.name,
                timestamp=candidate.created_at,
                user="Recruiter",
            )
        )

    return _latest(activities, lambda a: a.timestamp, limit)
