"""Record models for the TalentHub collections.

Every collection is owned by the backing store; these models are transient,
read-mostly copies. Optional fields are explicit: ``None`` means "missing" and
every consumer treats it the same way (excluded from brackets, zero for
arithmetic).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Interpret naive timestamps as UTC so they compare with aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CandidateStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PLACED = "placed"
    WITHDRAWN = "withdrawn"


class Availability(str, Enum):
    IMMEDIATE = "immediate"
    TWO_WEEKS = "2-weeks"
    ONE_MONTH = "1-month"
    THREE_MONTHS = "3-months"
    NOT_AVAILABLE = "not-available"


class JobStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class ApplicationStatus(str, Enum):
    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEW = "interview"
    OFFER = "offer"
    HIRED = "hired"
    REJECTED = "rejected"


class InterviewType(str, Enum):
    VIDEO = "video"
    PHONE = "phone"
    IN_PERSON = "in-person"
    OTHER = "other"


class InterviewStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class TeamRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class TeamMemberStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class Record(BaseModel):
    """Base for all store records."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class Candidate(Record):
    """A person in the recruiter's pipeline."""

    id: str
    name: str
    email: str
    user_id: Optional[str] = None
    phone: Optional[str] = None
    title: Optional[str] = None
    location: Optional[str] = None
    experience_years: Optional[float] = Field(default=None, ge=0)
    skills: List[str] = Field(default_factory=list)
    availability: Optional[Availability] = None
    status: CandidateStatus = CandidateStatus.ACTIVE
    current_salary: Optional[float] = Field(default=None, ge=0)
    expected_salary: Optional[float] = Field(default=None, ge=0)
    notice_period: Optional[int] = Field(default=None, ge=0)
    resume_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_contacted: Optional[datetime] = None

    # Filled in by the ranking heuristic, never persisted
    match_score: Optional[int] = None
    ai_insights: Optional[str] = None
    predictive_hiring_score: Optional[int] = None
    recommended_jobs: List[str] = Field(default_factory=list)
    retention_risk: Optional[int] = None

    @field_validator("skills", "tags", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    @field_validator("created_at", "updated_at", "last_contacted")
    @classmethod
    def _utc(cls, value):
        return ensure_utc(value)


class Job(Record):
    id: str
    title: str
    user_id: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    status: JobStatus = JobStatus.OPEN
    skills: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    match_score: Optional[int] = None

    @field_validator("skills", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value):
        return ensure_utc(value)


class Application(Record):
    """Links a candidate to a job. Any status transition is accepted."""

    id: str
    candidate_id: str
    job_id: str
    user_id: Optional[str] = None
    status: ApplicationStatus = ApplicationStatus.APPLIED
    match_score: Optional[int] = Field(default=None, ge=0, le=100)
    applied_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    notes: Optional[str] = None
    candidate: Optional[Candidate] = None

    @field_validator("applied_at", "updated_at")
    @classmethod
    def _utc(cls, value):
        return ensure_utc(value)


class Interview(Record):
    id: str
    candidate_id: str
    title: str
    user_id: Optional[str] = None
    application_id: Optional[str] = None
    interview_type: Optional[InterviewType] = None
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    location: Optional[str] = None
    status: InterviewStatus = InterviewStatus.SCHEDULED
    interviewer_name: Optional[str] = None
    interviewer_email: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("scheduled_at", "created_at")
    @classmethod
    def _utc(cls, value):
        return ensure_utc(value)


class TeamPermissions(BaseModel):
    can_view_candidates: bool = False
    can_edit_candidates: bool = False
    can_view_jobs: bool = False
    can_edit_jobs: bool = False
    can_schedule_interviews: bool = False
    can_view_reports: bool = False
    can_manage_team: bool = False


class TeamMember(Record):
    """Permissions are derived from the role at invite time and stored as-is."""

    id: str
    email: str
    role: TeamRole = TeamRole.MEMBER
    status: TeamMemberStatus = TeamMemberStatus.PENDING
    permissions: TeamPermissions = Field(default_factory=TeamPermissions)
    invited_by: Optional[str] = None
    invited_at: Optional[datetime] = None
    joined_at: Optional[datetime] = None
