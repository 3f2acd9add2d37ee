"""Search and reporting services."""

from .report_service import ReportService
from .search_service import (
    FeatureNotAvailableError,
    LimitExceededError,
    SearchService,
    SearchServiceError,
)

__all__ = [
    "FeatureNotAvailableError",
    "LimitExceededError",
    "ReportService",
    "SearchService",
    "SearchServiceError",
]
