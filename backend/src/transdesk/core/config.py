from functools import lru_cache
import os
from typing import Annotated, Any, Literal
import warnings

from pydantic import (
    AnyUrl,
    BeforeValidator,
    ValidationInfo,
    computed_field,
    field_validator,
)
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    if isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Transdesk API"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Admin frontend origins, comma separated or a JSON list
    CORS_ORIGINS: Annotated[list[AnyUrl] | str, BeforeValidator(parse_cors)] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.CORS_ORIGINS]

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "changethis"
    POSTGRES_DB: str = "transdesk"

    # Full SQLAlchemy URL; wins over the POSTGRES_* fields when set
    DATABASE_URL: str | None = None
    DB_STATEMENT_TIMEOUT_MS: int = 15000
    AUTO_CREATE_TABLES: bool = True

    @field_validator("POSTGRES_PASSWORD", mode="after")
    @classmethod
    def validate_postgres_password(cls, v: str, info: ValidationInfo) -> str:
        """Refuse the default database password outside local development."""
        env = (
            info.data.get("ENVIRONMENT")
            if info.data
            else os.getenv("ENVIRONMENT", "local")
        )
        if v == "changethis" and env == "production":
            raise ValueError(
                "POSTGRES_PASSWORD must be changed from default value in production."
            )
        if v == "changethis" and env != "local":
            warnings.warn(
                "POSTGRES_PASSWORD is set to default value 'changethis'.",
                UserWarning,
                stacklevel=2,
            )
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Connection URI for SQLAlchemy, PostgreSQL unless DATABASE_URL is set."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return str(
            MultiHostUrl.build(
                scheme="postgresql+psycopg",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_SERVER,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )

    REDIS_URL: str | None = None
    REDIS_SOCKET_TIMEOUT: float = 2.0
    REDIS_CONNECT_TIMEOUT: float = 2.0

    CACHE_ENABLED: bool = True
    CACHE_KEY_PREFIX: str = "transdesk:"
    CACHE_DEFAULT_TTL_SECONDS: int = 1800
    CACHE_SEARCH_TTL_SECONDS: int = 300
    CACHE_EMPTY_TTL_SECONDS: int = 300
    CACHE_JITTER_MIN_SECONDS: int = 60
    CACHE_JITTER_MAX_SECONDS: int = 600

    @field_validator("CACHE_JITTER_MAX_SECONDS", mode="after")
    @classmethod
    def validate_jitter_range(cls, v: int, info: ValidationInfo) -> int:
        low = info.data.get("CACHE_JITTER_MIN_SECONDS", 0) if info.data else 0
        if v < low:
            raise ValueError("CACHE_JITTER_MAX_SECONDS must be >= CACHE_JITTER_MIN_SECONDS")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cache_enabled(self) -> bool:
        """Check if the shared cache store is configured and switched on."""
        return bool(self.CACHE_ENABLED and self.REDIS_URL)

    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
