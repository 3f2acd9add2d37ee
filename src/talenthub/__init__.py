"""TalentHub: candidate search, heuristic ranking and recruitment analytics."""

__version__ = "0.1.0"
