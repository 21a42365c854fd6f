"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All deployment values come from environment variables (or .env)
    - get_settings() is cached (lru_cache) — single instance per process
    - Permissive CORS is its own flag, never derived from node_env

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for every setting: works out-of-the-box for local development
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STATIC_ALLOWED_ORIGINS = ("http://localhost:3001", "http://localhost:3000")


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "Gateway API"
    app_version: str = "1.0.0"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    node_env: str = "development"

    # CORS
    frontend_url: str | None = None
    cors_allow_any_origin: bool = False

    # Request bodies
    max_body_bytes: int = 100 * 1024

    # Database
    database_url: str = "postgresql+asyncpg://gateway:gateway@db:5432/gateway"
    database_pool_size: int = 20
    database_max_overflow: int = 10

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str):
            for prefix in ("postgresql://", "postgres://"):
                if v.startswith(prefix):
                    return v.replace(prefix, "postgresql+asyncpg://", 1)
        return v

    @field_validator("frontend_url", mode="before")
    @classmethod
    def blank_frontend_url(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # Startup: "package.module:callable", awaited with the GatewayContext
    bootstrap_target: str | None = None

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def is_production(self) -> bool:
        return self.node_env.lower() == "production"

    @property
    def allowed_origins(self) -> tuple[str, ...]:
        """Static origins followed by FRONTEND_URL, de-duplicated in order."""
        origins = list(STATIC_ALLOWED_ORIGINS)
        if self.frontend_url:
            origins.append(self.frontend_url.rstrip("/"))
        return tuple(dict.fromkeys(origins))


@lru_cache
def get_settings() -> Settings:
    return Settings()
