from typing import Any

from fastapi import APIRouter

from transdesk.api.deps import DashboardServiceDep
from transdesk.dashboard import DashboardStats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def read_dashboard_stats(service: DashboardServiceDep) -> Any:
    return service.get_stats()
