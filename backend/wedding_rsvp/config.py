"""Application configuration using pydantic-settings."""

import warnings
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_JWT_DEFAULT = "your-super-secret-jwt-key-change-in-production"
_INSECURE_ACCESS_CODE_DEFAULT = "admin123"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Wedding RSVP"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"  # development, staging, production

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Guest storage
    storage_backend: Literal["file", "redis", "kv"] = "file"
    data_dir: str = "data"

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Managed KV store (Upstash / Vercel KV REST API)
    kv_rest_api_url: str = ""
    kv_rest_api_token: str = ""

    # Admin session (JWT in an HTTP-only cookie)
    jwt_secret: str = _INSECURE_JWT_DEFAULT
    jwt_algorithm: str = "HS256"
    session_max_age_hours: int = 24
    session_cookie_name: str = "admin-session"
    admin_access_code: str = _INSECURE_ACCESS_CODE_DEFAULT
    admin_login_path: str = "/admin/login"

    # RSVP rate limiting
    rsvp_rate_limit_max_attempts: int = 3
    rsvp_rate_limit_window_hours: float = 1
    rate_limit_ttl_seconds: int = 60 * 60

    # Frontend
    frontend_url: str = "http://localhost:3000"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    @model_validator(mode="after")
    def _ensure_frontend_in_cors(self) -> "Settings":
        """Ensure the configured frontend_url is always in cors_origins."""
        if self.frontend_url and self.frontend_url not in self.cors_origins:
            self.cors_origins.append(self.frontend_url)
        return self

    @model_validator(mode="after")
    def _validate_secrets(self) -> "Settings":
        """Reject insecure defaults in production and warn in development."""
        insecure = []
        if self.jwt_secret == _INSECURE_JWT_DEFAULT:
            insecure.append("JWT_SECRET")
        if self.admin_access_code == _INSECURE_ACCESS_CODE_DEFAULT:
            insecure.append("ADMIN_ACCESS_CODE")

        if insecure:
            names = ", ".join(insecure)
            if self.is_production:
                raise ValueError(
                    f"{names} must be set to a strong random value in production. "
                    'Generate one with: python -c "import secrets; print(secrets.token_urlsafe(64))"'
                )
            warnings.warn(
                f"Using default {names}; this is insecure and only acceptable for local development. "
                "Set them in your .env file.",
                UserWarning,
                stacklevel=1,
            )
        return self

    @model_validator(mode="after")
    def _validate_kv_credentials(self) -> "Settings":
        """The managed KV backend cannot work without its REST endpoint and token."""
        if self.storage_backend == "kv" and not (self.kv_rest_api_url and self.kv_rest_api_token):
            raise ValueError("KV_REST_API_URL and KV_REST_API_TOKEN are required when STORAGE_BACKEND=kv")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def session_max_age_seconds(self) -> int:
        """Cookie Max-Age, matching the token lifetime."""
        return self.session_max_age_hours * 60 * 60


settings = Settings()
