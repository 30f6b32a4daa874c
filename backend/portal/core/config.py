"""Application configuration loaded from environment variables.

Settings for the database, the Supabase-style backend (auth, REST, storage),
provider selection, authentication, résumé uploads, and onboarding policy.
Uses pydantic-settings for validation and .env file support.
"""

import uuid
from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "rightboss_dev_password"  # nosec B105

# Minimum length for the Supabase JWT secret in production (256 bits = 32 bytes)
_MIN_JWT_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database (used by the "postgres" data store)
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "rightboss"
    database_user: str = "rightboss_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # CORS (Security)
    # CRITICAL: Never set to ["*"] when allow_credentials=True
    allowed_origins: list[str] = ["http://localhost:5173"]

    # Backend-as-a-Service
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: SecretStr = SecretStr("")
    supabase_jwt_secret: SecretStr = SecretStr("")
    supabase_jwt_audience: str = "authenticated"

    # Provider selection
    identity_provider: Literal["supabase", "mock"] = "supabase"
    data_store: Literal["supabase", "postgres", "mock"] = "supabase"
    object_storage: Literal["supabase", "mock"] = "supabase"

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Authentication
    # Local-first mode: DEFAULT_USER_ID provides identity without a token
    # Hosted mode: auth_enabled=True, Supabase access token required
    default_user_id: uuid.UUID | None = None
    default_user_email: str = ""
    auth_enabled: bool = False
    auth_cookie_name: str = "sb-access-token"
    auth_refresh_cookie_name: str = "sb-refresh-token"
    auth_cookie_secure: bool = True
    auth_cookie_samesite: Literal["lax", "strict", "none"] = "lax"

    # OAuth sign-in (delegated to the identity service, PKCE code flow)
    # The state cookie is signed with oauth_state_secret, or the JWT secret
    # when unset; the callback redirects the browser back to frontend_url
    oauth_providers: list[str] = ["google"]
    oauth_state_secret: SecretStr = SecretStr("")
    frontend_url: str = "http://localhost:5173"

    # Résumé uploads
    resume_max_size_mb: int = 5
    resume_bucket: str = "resumes"

    # Onboarding
    # explicit_or_heuristic: persisted flag OR (roles selected AND >= 2 steps)
    # explicit_only: persisted flag alone
    completion_policy: Literal["explicit_or_heuristic", "explicit_only"] = (
        "explicit_or_heuristic"
    )

    # Per-identity state held in memory; idle or least-recently-used entries
    # beyond the cap are dropped and reloaded on the next request
    experience_idle_seconds: int = 1800
    experience_max_entries: int = 1000

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_uploads: str = "5/minute"
    rate_limit_auth: str = "10/minute"
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Sync database URL for Alembic."""
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def resume_max_size_bytes(self) -> int:
        """Résumé size limit in bytes."""
        return self.resume_max_size_mb * 1024 * 1024

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate production security requirements.

        Security: Prevents deployment with known insecure defaults.
        Checks:
        - SameSite=None requires Secure flag (browser requirement)
        - CORS must not use wildcard origin (incompatible with credentials)
        - Résumé size limit must be positive
        - Database password must not be the default in production
        - JWT secret must be set and >= 32 chars when auth is enabled in production
        """
        if self.auth_cookie_samesite == "none" and not self.auth_cookie_secure:
            msg = (
                "AUTH_COOKIE_SECURE must be true when AUTH_COOKIE_SAMESITE=none. "
                "Browsers reject SameSite=None cookies without the Secure flag."
            )
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "This application uses credentials (cookies) which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.resume_max_size_mb <= 0:
            msg = f"RESUME_MAX_SIZE_MB must be positive. Got: {self.resume_max_size_mb}"
            raise ValueError(msg)

        if self.environment == "production":
            if (
                self.data_store == "postgres"
                and self.database_password == _INSECURE_DEFAULT_PASSWORD
            ):
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            if self.auth_enabled:
                secret_value = self.supabase_jwt_secret.get_secret_value()
                if not secret_value:
                    msg = (
                        "SUPABASE_JWT_SECRET must be set when AUTH_ENABLED=true "
                        "in production."
                    )
                    raise ValueError(msg)
                if len(secret_value) < _MIN_JWT_SECRET_LENGTH:
                    msg = (
                        f"SUPABASE_JWT_SECRET must be at least "
                        f"{_MIN_JWT_SECRET_LENGTH} characters for adequate security."
                    )
                    raise ValueError(msg)

        return self


settings = Settings()
