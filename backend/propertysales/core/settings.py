# backend/propertysales/core/settings.py
from __future__ import annotations

import re
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

# backend name -> (sync driver, async driver)
_DRIVERS = {
    "postgresql": ("psycopg", "asyncpg"),
    "sqlite": ("pysqlite", "aiosqlite"),
}

_DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "null",  # srcdoc/sandbox opaque origin
]


def _normalize_database_url(raw_url: str) -> str:
    cleaned = re.sub(r"\s+", "", (raw_url or "").strip())
    if cleaned.startswith("postgres://"):
        cleaned = "postgresql://" + cleaned[len("postgres://"):]
    return cleaned


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # connection string wins over the discrete POSTGRES_* form
    DATABASE_URL: Optional[str] = Field(None, alias="DATABASE_URL")
    POSTGRES_HOST: str = Field("localhost", alias="POSTGRES_HOST")
    POSTGRES_PORT: int = Field(5432, alias="POSTGRES_PORT")
    POSTGRES_USER: Optional[str] = Field(None, alias="POSTGRES_USER")
    POSTGRES_PASSWORD: Optional[str] = Field(None, alias="POSTGRES_PASSWORD")
    POSTGRES_DATABASE: Optional[str] = Field(None, alias="POSTGRES_DATABASE")
    DB_SSL: bool = Field(False, alias="DB_SSL")

    DB_POOL_SIZE: int = Field(5, alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(10, alias="DB_MAX_OVERFLOW")
    DB_POOL_TIMEOUT: float = Field(5.0, alias="DB_POOL_TIMEOUT")
    DB_POOL_RECYCLE: int = Field(1800, alias="DB_POOL_RECYCLE")

    REQUEST_TIMEOUT_SECONDS: float = Field(10.0, alias="REQUEST_TIMEOUT_SECONDS")

    SALES_DATA_DIR: str = Field("public/salesdata", alias="SALES_DATA_DIR")
    COMPARISON_YEAR: int = Field(2024, alias="COMPARISON_YEAR")
    COMPARISON_COUNTY: str = Field("Dublin", alias="COMPARISON_COUNTY")

    IMPORT_MAX_RETRIES: int = Field(3, alias="IMPORT_MAX_RETRIES")
    IMPORT_RETRY_DELAY_SECONDS: float = Field(5.0, alias="IMPORT_RETRY_DELAY_SECONDS")

    API_ALLOWED_ORIGINS: str = Field("", alias="API_ALLOWED_ORIGINS")
    API_ALLOW_ALL: bool = Field(False, alias="API_ALLOW_ALL")

    def database_url(self, *, async_: bool) -> URL:
        """Driver-qualified URL for the async (web) or sync (scripts/alembic) engine."""
        if self.DATABASE_URL:
            url = make_url(_normalize_database_url(self.DATABASE_URL))
        else:
            if not self.POSTGRES_DATABASE:
                raise RuntimeError(
                    "Database is not configured. Set DATABASE_URL or POSTGRES_HOST/POSTGRES_DATABASE."
                )
            url = URL.create(
                "postgresql",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_HOST,
                port=self.POSTGRES_PORT,
                database=self.POSTGRES_DATABASE,
            )

        backend = url.get_backend_name()
        drivers = _DRIVERS.get(backend)
        if drivers is None:
            return url
        driver = drivers[1] if async_ else drivers[0]
        return url.set(drivername=f"{backend}+{driver}")

    def cors_origins(self) -> List[str]:
        raw = self.API_ALLOWED_ORIGINS.strip()
        if raw:
            return [o.strip() for o in raw.split(",") if o.strip()]
        return list(_DEFAULT_ORIGINS)


@lru_cache
def get_settings() -> Settings:
    return Settings()
