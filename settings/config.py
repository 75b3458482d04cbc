"""
Settings module for the organizational hierarchy service.

Environment-based configuration with sensible defaults.
All settings can be overridden via environment variables prefixed with ORGHIER_.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults target local development. In QA/prod the database and
    JWT settings must be provided through the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="ORGHIER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Environment name (development, qa, prod)"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    service_name: str = Field(
        default="OrgHierarchy",
        description="Service name reported to logs and traces"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Database
    # Either a full SQLAlchemy URL or the individual parts below.
    database_url: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy database URL (overrides the db_* parts)"
    )
    db_host: str = Field(default="localhost", description="PostgreSQL host")
    db_port: int = Field(default=5432, description="PostgreSQL port")
    db_user: str = Field(default="postgres", description="PostgreSQL user")
    db_password: Optional[str] = Field(default=None, description="PostgreSQL password")
    db_name: str = Field(default="org_hierarchy", description="PostgreSQL database name")
    db_pool_pre_ping: bool = Field(
        default=True,
        description="Test pooled connections before use"
    )

    # Auth
    jwt_secret_key: str = Field(
        default="change-me",
        description="HS256 secret used to verify bearer tokens"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    local_tenant_id: str = Field(
        default="local-tenant",
        description="Tenant used when no token is sent in local development"
    )
    local_user_id: str = Field(
        default="local-user",
        description="User used when no token is sent in local development"
    )

    # Champion assignment
    system_actor: str = Field(
        default="system",
        description="Marker stored as assigned_by when the acting user is unknown"
    )

    # Datadog logging
    datadog_api_key: Optional[str] = Field(
        default=None,
        description="Datadog API key (logs are not shipped without it)"
    )
    datadog_log_url: str = Field(
        default="https://http-intake.logs.datadoghq.com/v1/input",
        description="Datadog HTTP log intake URL"
    )
    datadog_include_loggers: Optional[str] = Field(
        default=None,
        description="Comma-separated logger prefixes to ship (allowlist mode)"
    )

    # Tracing
    tracing_enabled: bool = Field(default=False, description="Enable OpenTelemetry tracing")
    jaeger_host: str = Field(
        default="jaeger-agent.jaeger.svc.cluster.local",
        description="Jaeger agent host"
    )
    jaeger_port: int = Field(default=6831, description="Jaeger agent port")

    @property
    def is_local(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local", "test")

    @property
    def include_loggers(self) -> Optional[List[str]]:
        if not self.datadog_include_loggers:
            return None
        return [p.strip() for p in self.datadog_include_loggers.split(",") if p.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
