"""Storage layer for TalentHub."""

from .repository import DatabaseConnectionError, DatabaseError, ImportResult, TalentHubDatabase

__all__ = ["DatabaseConnectionError", "DatabaseError", "ImportResult", "TalentHubDatabase"]
