"""
Pytest configuration and fixtures for the translation backend.

The database is an in-memory SQLite shared through a static pool; the
cache store is fakeredis. Both are configured through the environment
before the application package is imported.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "local"
os.environ.pop("REDIS_URL", None)

import fakeredis  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from transdesk.core.cache import CacheStore, ReadThroughCache, get_cache  # noqa: E402
from transdesk.core.db import engine, get_db, init_db  # noqa: E402
from transdesk.languages import Language, LanguageCreate, create_language  # noqa: E402
from transdesk.main import create_app  # noqa: E402
from transdesk.projects import Project, ProjectCreate, create_project  # noqa: E402
from transdesk.translations import TranslationCreate, TranslationService  # noqa: E402

ACTOR_ID = 7
ACTOR_HEADERS = {"X-Actor-ID": str(ACTOR_ID), "X-Actor-Name": "tester"}


@pytest.fixture(scope="session", autouse=True)
def database():
    """Create every table once for the test session."""
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(database):
    """A fresh session over emptied tables."""
    with Session(database) as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            session.exec(table.delete())
        session.commit()
        yield session
        session.rollback()


@pytest.fixture
def redis_client():
    client = fakeredis.FakeRedis(decode_responses=True)
    client.flushall()
    yield client
    client.flushall()


@pytest.fixture
def cache_store(redis_client):
    return CacheStore(redis_client, prefix="test:")


@pytest.fixture
def cache(cache_store):
    return ReadThroughCache(cache_store, default_ttl=1800, empty_ttl=300)


@pytest.fixture
def app(session):
    application = create_app()
    application.dependency_overrides[get_db] = lambda: session
    application.dependency_overrides[get_cache] = lambda: None
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def cached_client(app, cache):
    """Client whose services are wrapped in the read-through cache."""
    app.dependency_overrides[get_cache] = lambda: cache
    with TestClient(app) as test_client:
        yield test_client


def _create_project(session: Session, name: str = "Web App") -> Project:
    return create_project(
        session=session, project_in=ProjectCreate(name=name), created_by=ACTOR_ID
    )


def _create_language(
    session: Session, code: str, name: str | None = None, is_default: bool = False
) -> Language:
    return create_language(
        session=session,
        language_in=LanguageCreate(code=code, name=name or code.upper(), is_default=is_default),
        created_by=ACTOR_ID,
    )


@pytest.fixture
def project(session):
    return _create_project(session)


@pytest.fixture
def other_project(session):
    return _create_project(session, name="Mobile App")


@pytest.fixture
def languages(session):
    """English (default) and French."""
    return {
        "en": _create_language(session, "en", "English", is_default=True),
        "fr": _create_language(session, "fr", "French"),
    }


@pytest.fixture
def service(session):
    return TranslationService(session)


@pytest.fixture
def seeded_project(service, project, languages):
    """Project with a.b (en, fr) and c.d (en)."""
    service.create_batch(
        [
            TranslationCreate(
                project_id=project.id, key_name="a.b", language_id=languages["en"].id, value="Hello"
            ),
            TranslationCreate(
                project_id=project.id, key_name="a.b", language_id=languages["fr"].id, value="Bonjour"
            ),
            TranslationCreate(
                project_id=project.id, key_name="c.d", language_id=languages["en"].id, value="World"
            ),
        ]
    )
    return project


def make_input(project_id: int, key: str, language_id: int, value: str) -> TranslationCreate:
    return TranslationCreate(
        project_id=project_id, key_name=key, language_id=language_id, value=value
    )
