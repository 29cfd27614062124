from __future__ import annotations

from .common import CamelModel
from .project import Project


class UserStats(CamelModel):
    total_users: int
    active_users: int
    new_users_this_month: int
    user_growth_rate: float


class ProjectStats(CamelModel):
    total_projects: int
    active_projects: int
    completed_projects: int
    projects_by_status: dict[str, int]
    average_project_duration: float


class EngagementStats(CamelModel):
    daily_active_users: int
    weekly_active_users: int
    average_session_duration: int
    page_views: int


class RevenueStats(CamelModel):
    total_revenue: float
    monthly_revenue: float
    average_project_value: float
    revenue_growth_rate: float


class CountPoint(CamelModel):
    date: str
    count: int


class AmountPoint(CamelModel):
    date: str
    amount: float


class TimeSeriesData(CamelModel):
    user_registrations: list[CountPoint]
    project_creations: list[CountPoint]
    revenue: list[AmountPoint]


class AnalyticsSnapshot(CamelModel):
    """Dashboard summary derived from the current users and projects."""

    user_stats: UserStats
    project_stats: ProjectStats
    engagement_stats: EngagementStats
    revenue_stats: RevenueStats
    time_series_data: TimeSeriesData


class ProjectAnalytics(CamelModel):
    project: Project
    duration: int
    timeline_events: int
    status: str
    estimated_value: float
    completion_rate: float
