"""
Data models and schemas for TalentHub.
"""

from .analytics_models import AnalyticsReport, ReportResult
from .records import (
    Application,
    ApplicationStatus,
    Availability,
    Candidate,
    CandidateStatus,
    Interview,
    InterviewStatus,
    InterviewType,
    Job,
    JobStatus,
    TeamMember,
    TeamMemberStatus,
    TeamPermissions,
    TeamRole,
)
from .search_models import (
    ALL,
    FilterParams,
    GroupCount,
    SavedSearch,
    SearchResult,
    SearchType,
    SortKey,
    SortOrder,
    TextMode,
)

__all__ = [
    "ALL",
    "AnalyticsReport",
    "Application",
    "ApplicationStatus",
    "Availability",
    "Candidate",
    "CandidateStatus",
    "FilterParams",
    "GroupCount",
    "Interview",
    "InterviewStatus",
    "InterviewType",
    "Job",
    "JobStatus",
    "ReportResult",
    "SavedSearch",
    "SearchResult",
    "SearchType",
    "SortKey",
    "SortOrder",
    "TeamMember",
    "TeamMemberStatus",
    "TeamPermissions",
    "TeamRole",
    "TextMode",
]
