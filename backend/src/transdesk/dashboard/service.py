from typing import Protocol

from sqlmodel import Session, SQLModel

from transdesk.core.cache import DASHBOARD_STATS_KEY, ReadThroughCache
from transdesk.languages.crud import count_languages
from transdesk.projects.crud import count_projects
from transdesk.translations.crud import count_distinct_keys, count_translations


class DashboardStats(SQLModel):
    total_projects: int
    total_languages: int
    total_translations: int
    total_keys: int


class DashboardOperations(Protocol):
    def get_stats(self) -> DashboardStats: ...


class DashboardService:
    def __init__(self, session: Session):
        self.session = session

    def get_stats(self) -> DashboardStats:
        return DashboardStats(
            total_projects=count_projects(session=self.session),
            total_languages=count_languages(session=self.session),
            total_translations=count_translations(session=self.session),
            total_keys=count_distinct_keys(session=self.session),
        )


class CachedDashboardService:
    """Stats are cached under one key and dropped by every directory write."""

    def __init__(self, inner: DashboardOperations, cache: ReadThroughCache):
        self._inner = inner
        self._cache = cache

    def get_stats(self) -> DashboardStats:
        return self._cache.fetch(
            DASHBOARD_STATS_KEY,
            self._inner.get_stats,
            dump=lambda stats: stats.model_dump_json(),
            load=DashboardStats.model_validate_json,
            empty=lambda: DashboardStats(
                total_projects=0, total_languages=0, total_translations=0, total_keys=0
            ),
            is_empty=lambda stats: stats.total_projects == 0 and stats.total_languages == 0,
        )
