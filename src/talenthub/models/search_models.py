"""Search parameters and result models."""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from talenthub.models.records import Candidate, Job

ALL = "all"

ExperienceBucket = Literal["all", "0-2", "3-5", "6-10", "10+"]
SalaryBucket = Literal["all", "0-50k", "50k-100k", "100k-150k", "150k+"]


class TextMode(str, Enum):
    """How the free-text query is matched.

    ``phrase`` checks the whole query against name, email, title, location,
    skills and tags. ``any_term`` splits it on whitespace and matches when
    any term appears in name, title, email or location.
    """

    PHRASE = "phrase"
    ANY_TERM = "any_term"


class SortKey(str, Enum):
    SCORE = "score"
    DATE = "date"
    NAME = "name"
    SALARY = "salary"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SearchType(str, Enum):
    CANDIDATES = "candidates"
    JOBS = "jobs"
    ALL = "all"


class FilterParams(BaseModel):
    """Filter dimensions; ``"all"`` disables an enum dimension."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    query: str = ""
    text_mode: TextMode = TextMode.PHRASE
    status: str = ALL
    availability: str = ALL
    skill: str = ALL
    salary_bucket: SalaryBucket = ALL
    experience_bucket: ExperienceBucket = ALL
    location: str = ""
    experience_min: Optional[float] = None
    experience_max: Optional[float] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    sort_by: SortKey = SortKey.SCORE
    sort_order: SortOrder = SortOrder.DESC

    def search_terms(self) -> List[str]:
        return self.query.lower().split()

    def has_advanced_filters(self) -> bool:
        return any(
            [
                self.availability != ALL,
                self.skill != ALL,
                self.salary_bucket != ALL,
                self.experience_bucket != ALL,
                self.experience_min is not None,
                self.experience_max is not None,
                self.salary_min is not None,
                self.salary_max is not None,
            ]
        )


class GroupCount(BaseModel):
    group: str
    count: int
    percentage: Optional[int] = None


class SearchResult(BaseModel):
    """Outcome of one search request.

    When ``error`` is set the collections are empty; a failed fetch never
    yields partial results.
    """

    candidates: List[Candidate] = Field(default_factory=list)
    jobs: List[Job] = Field(default_factory=list)
    total_results: int = 0
    search_time_ms: int = 0
    suggestions: List[str] = Field(default_factory=list)
    top_skills: List[GroupCount] = Field(default_factory=list)
    error: Optional[str] = None
    generation: int = 0


class SavedSearch(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: Optional[int] = None
    user_id: str
    name: str
    search_query: str
    search_type: SearchType = SearchType.CANDIDATES
    filters: FilterParams = Field(default_factory=FilterParams)
    last_results_count: int = 0
