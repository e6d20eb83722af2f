"""
Centralized configuration for the Portcullis backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., JWT_*, SMTP_*, SUPABASE_*).
"""

from datetime import timedelta
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Portcullis API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8080"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    cors_allow_headers: list[str] = ["*"]

    # Rate limiting
    rate_limit_requests: int = 100
    rate_limit_window: int = 60  # seconds

    # JWT
    jwt_access_secret: str = "your-super-secret-access-key-change-this-in-production"
    jwt_refresh_secret: str = "your-super-secret-refresh-key-change-this-in-production"
    jwt_access_ttl_minutes: int = 30
    jwt_refresh_ttl_days: int = 7
    jwt_issuer: str = "portcullis"
    jwt_algorithm: str = "HS256"

    # Credentials and one-time tokens
    bcrypt_rounds: int = 12
    secret_token_ttl_hours: int = 24

    # User store
    user_store_backend: str = "memory"  # "memory" or "supabase"
    collaborator_timeout_seconds: float = 5.0

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_db_url: str = ""  # direct Postgres URL, used by run_migrations.py

    # Email (SMTP)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_from_email: str = "noreply@portcullis.dev"
    smtp_from_name: str = "Portcullis"

    # Public URL used to build links in outbound emails
    public_base_url: str = "http://localhost:8080"

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.jwt_access_ttl_minutes)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self.jwt_refresh_ttl_days)

    @property
    def secret_token_ttl(self) -> timedelta:
        return timedelta(hours=self.secret_token_ttl_hours)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
