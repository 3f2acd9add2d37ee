"""Report sections produced by the analytics layer."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from talenthub.models.search_models import GroupCount


class MonthlyTrendPoint(BaseModel):
    month: str
    key: str
    applications: int = 0
    hires: int = 0


class JobPerformance(BaseModel):
    id: str
    title: str
    applications: int = 0
    hires: int = 0
    fill_rate: int = 0


class InterviewerPerformance(BaseModel):
    name: str
    interviews: int = 0
    hires: int = 0
    hire_rate: int = 0


class FunnelStage(BaseModel):
    stage: int
    name: str
    key: str
    count: int
    percentage: int
    drop_off: int


class ActivityItem(BaseModel):
    id: str
    type: str
    title: str
    description: str
    timestamp: Optional[datetime] = None
    user: str


class Overview(BaseModel):
    total_candidates: int = 0
    active_candidates: int = 0
    placed_candidates: int = 0
    total_jobs: int = 0
    open_jobs: int = 0
    hired_count: int = 0
    average_time_to_hire: int = 0
    total_applications: int = 0
    total_interviews: int = 0


class HiringMetrics(BaseModel):
    time_to_hire: int = 0
    offer_acceptance_rate: int = 0
    interview_success_rate: int = 0


class ApplicationsSection(BaseModel):
    by_status: List[GroupCount] = Field(default_factory=list)
    monthly_trend: List[MonthlyTrendPoint] = Field(default_factory=list)
    conversion_funnel: List[FunnelStage] = Field(default_factory=list)


class CandidatesSection(BaseModel):
    by_status: List[GroupCount] = Field(default_factory=list)
    by_experience: List[GroupCount] = Field(default_factory=list)
    by_availability: List[GroupCount] = Field(default_factory=list)
    top_skills: List[GroupCount] = Field(default_factory=list)


class JobsSection(BaseModel):
    by_status: List[GroupCount] = Field(default_factory=list)
    by_department: List[GroupCount] = Field(default_factory=list)
    top_performing: List[JobPerformance] = Field(default_factory=list)


class InterviewsSection(BaseModel):
    by_status: List[GroupCount] = Field(default_factory=list)
    by_type: List[GroupCount] = Field(default_factory=list)
    completion_rate: int = 0
    no_show_rate: int = 0


class PerformanceSection(BaseModel):
    interviewer_performance: List[InterviewerPerformance] = Field(default_factory=list)


class AdvancedSection(BaseModel):
    candidate_quality: float = 0.0
    benchmark_comparison: Dict[str, int] = Field(default_factory=dict)


class HiringForecast(BaseModel):
    next_month: int
    next_quarter: int
    next_year: int


class PredictiveSection(BaseModel):
    high_demand_roles: List[str] = Field(default_factory=list)
    attrition_risk: int = 0
    hiring_forecast: HiringForecast
    recommendations: List[str] = Field(default_factory=list)


class AnalyticsReport(BaseModel):
    tier_id: str
    range_start: datetime
    range_end: datetime
    overview: Overview = Field(default_factory=Overview)
    hiring_metrics: HiringMetrics = Field(default_factory=HiringMetrics)
    applications: ApplicationsSection = Field(default_factory=ApplicationsSection)
    candidates: CandidatesSection = Field(default_factory=CandidatesSection)
    jobs: JobsSection = Field(default_factory=JobsSection)
    interviews: InterviewsSection = Field(default_factory=InterviewsSection)
    recent_activity: List[ActivityItem] = Field(default_factory=list)
    performance: PerformanceSection = Field(default_factory=PerformanceSection)
    advanced: Optional[AdvancedSection] = None
    predictive: Optional[PredictiveSection] = None


class ReportResult(BaseModel):
    report: Optional[AnalyticsReport] = None
    error: Optional[str] = None
    generation: int = 0
