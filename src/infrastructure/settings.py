"""Application settings loaded from environment variables via Pydantic."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """Central configuration for the tenant lifecycle service."""

    model_config = {"env_prefix": "APP_", "case_sensitive": False}

    # Service
    service_name: str = "tenant-lifecycle"
    service_version: str = "0.1.0"
    request_timeout_seconds: float = 10.0
    host: str = "127.0.0.1"
    port: int = 8080

    # Database
    database_url: str = "sqlite:///tenants.db"
    db_pool_size: int = 5
    db_echo: bool = False
    run_migrations_on_startup: bool = True

    # Adapter selection
    repository_backend: Literal["sqlalchemy", "memory"] = "sqlalchemy"
    publisher_backend: Literal["celery", "logging"] = "celery"
    transition_validator: Literal["table", "machine"] = "table"

    # Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    # Tracing
    otel_exporter_type: Literal["none", "console", "otlp"] = "none"
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: str = "*"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return the application settings singleton."""
    return AppSettings()
