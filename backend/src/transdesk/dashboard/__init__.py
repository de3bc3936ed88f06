from transdesk.dashboard.service import (
    CachedDashboardService,
    DashboardOperations,
    DashboardService,
    DashboardStats,
)

__all__ = [
    "CachedDashboardService",
    "DashboardOperations",
    "DashboardService",
    "DashboardStats",
]
