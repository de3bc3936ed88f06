from fastapi import APIRouter

from transdesk.api.routes import (
    cli,
    dashboard,
    history,
    languages,
    projects,
    translations,
    users,
)

api_router = APIRouter()
api_router.include_router(translations.router)
api_router.include_router(translations.project_router)
api_router.include_router(history.router)
api_router.include_router(projects.router)
api_router.include_router(languages.router)
api_router.include_router(users.router)
api_router.include_router(dashboard.router)
api_router.include_router(cli.router)
