from __future__ import annotations

import random
from collections import Counter
from collections.abc import Callable
from datetime import datetime, timedelta

from charlieverse.models.analytics import (
    AmountPoint,
    AnalyticsSnapshot,
    CountPoint,
    EngagementStats,
    ProjectAnalytics,
    ProjectStats,
    RevenueStats,
    TimeSeriesData,
    UserStats,
)
from charlieverse.models.common import utcnow
from charlieverse.models.project import ACTIVE_STATUSES, Project, ProjectStatus
from charlieverse.repositories.base import Storage
from charlieverse.tools.exceptions import NotFound

BASE_PROJECT_VALUES = {
    "web_development": 5000.0,
    "mobile_app": 8000.0,
    "design": 3000.0,
    "consulting": 2000.0,
    "other": 1000.0,
}
VALUE_JITTER = 1000.0
SECONDS_PER_DAY = 24 * 60 * 60


def _percent(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole else 0.0


class AnalyticsService:
    """Dashboard figures computed from the current users and projects.

    Engagement and revenue numbers are estimates, not measurements. Project
    values come from a per-type base price plus uniform jitter drawn from
    *rng*; each snapshot draws one value per project.
    """

    def __init__(
        self,
        storage: Storage,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
        window_days: int = 30,
    ):
        self.storage = storage
        self.rng = rng or random.Random()
        self.clock = clock or utcnow
        self.window_days = window_days

    def estimate_project_value(self, project: Project) -> float:
        base = BASE_PROJECT_VALUES.get(project.project_type or "other", BASE_PROJECT_VALUES["other"])
        return base + self.rng.uniform(-VALUE_JITTER, VALUE_JITTER)

    async def get_analytics_data(self) -> AnalyticsSnapshot:
        users = await self.storage.list_users()
        projects = await self.storage.list_all_projects()
        now = self.clock()
        window_start = now - timedelta(days=self.window_days)

        new_users = sum(1 for user in users if user.created_at >= window_start)
        user_stats = UserStats(
            total_users=len(users),
            active_users=sum(1 for user in users if user.is_active),
            new_users_this_month=new_users,
            user_growth_rate=_percent(new_users, len(users)),
        )

        by_status = Counter(project.status.value for project in projects)
        completed = [p for p in projects if p.status == ProjectStatus.COMPLETED]
        durations = [
            (p.updated_at - p.created_at).total_seconds() / SECONDS_PER_DAY for p in completed
        ]
        project_stats = ProjectStats(
            total_projects=len(projects),
            active_projects=sum(1 for p in projects if p.status in ACTIVE_STATUSES),
            completed_projects=len(completed),
            projects_by_status=dict(by_status),
            average_project_duration=sum(durations) / len(durations) if durations else 0.0,
        )

        engagement_stats = EngagementStats(
            daily_active_users=int(len(users) * 0.3),
            weekly_active_users=int(len(users) * 0.6),
            average_session_duration=1800,
            page_views=len(projects) * 10 + len(users) * 5,
        )

        values = {project.id: self.estimate_project_value(project) for project in completed}
        total_revenue = sum(values.values())
        monthly_revenue = sum(
            values[p.id] for p in completed if p.created_at >= window_start
        )
        revenue_stats = RevenueStats(
            total_revenue=total_revenue,
            monthly_revenue=monthly_revenue,
            average_project_value=total_revenue / len(projects) if projects else 0.0,
            revenue_growth_rate=_percent(monthly_revenue, total_revenue),
        )

        days = self._window_days(now)
        registrations = Counter(user.created_at.date().isoformat() for user in users)
        creations = Counter(project.created_at.date().isoformat() for project in projects)
        revenue_by_day: Counter[str] = Counter()
        for project in completed:
            revenue_by_day[project.created_at.date().isoformat()] += values[project.id]

        time_series = TimeSeriesData(
            user_registrations=[CountPoint(date=day, count=registrations[day]) for day in days],
            project_creations=[CountPoint(date=day, count=creations[day]) for day in days],
            revenue=[AmountPoint(date=day, amount=revenue_by_day[day]) for day in days],
        )

        return AnalyticsSnapshot(
            user_stats=user_stats,
            project_stats=project_stats,
            engagement_stats=engagement_stats,
            revenue_stats=revenue_stats,
            time_series_data=time_series,
        )

    def _window_days(self, now: datetime) -> list[str]:
        """UTC dates of the trailing window, oldest first, ending today."""
        return [
            (now - timedelta(days=offset)).date().isoformat()
            for offset in range(self.window_days - 1, -1, -1)
        ]

    async def get_project_analytics(self, project_id: int) -> ProjectAnalytics:
        project = await self.storage.get_project(project_id)
        if project is None:
            raise NotFound("Project not found")
        updates = await self.storage.list_project_updates(project_id)
        completed_updates = sum(1 for update in updates if update.status == ProjectStatus.COMPLETED)
        elapsed = self.clock() - project.created_at
        return ProjectAnalytics(
            project=project,
            duration=max(int(elapsed.total_seconds() // SECONDS_PER_DAY), 0),
            timeline_events=len(updates),
            status=project.status.value,
            estimated_value=self.estimate_project_value(project),
            completion_rate=_percent(completed_updates, len(updates)),
        )
