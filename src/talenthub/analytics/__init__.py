"""Aggregations and reports over TalentHub collections."""

from .reports import build_report, resolve_date_range

__all__ = ["build_report", "resolve_date_range"]
