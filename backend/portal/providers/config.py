"""Provider configuration management.

Centralized configuration for the identity, data store and object storage
adapters.
"""

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from portal.core.config import Settings


@dataclass
class ProviderConfig:
    """Centralized provider configuration.

    Attributes:
        identity_provider: Which identity adapter to use ("supabase", "mock").
        data_store: Which data store adapter to use
            ("supabase", "postgres", "mock").
        object_storage: Which storage adapter to use ("supabase", "mock").
        supabase_url: Base URL of the backend project.
        supabase_anon_key: Public API key sent as the ``apikey`` header.
        resume_bucket: Storage bucket holding résumés.
        request_timeout_seconds: Timeout for every remote HTTP call.
    """

    identity_provider: str = "supabase"
    data_store: str = "supabase"
    object_storage: str = "supabase"

    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""

    resume_bucket: str = "resumes"

    request_timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Load configuration from environment variables.

        Returns:
            ProviderConfig instance with values from environment.
        """
        return cls(
            identity_provider=os.getenv("IDENTITY_PROVIDER", "supabase"),
            data_store=os.getenv("DATA_STORE", "supabase"),
            object_storage=os.getenv("OBJECT_STORAGE", "supabase"),
            supabase_url=os.getenv("SUPABASE_URL", "http://localhost:54321"),
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
            resume_bucket=os.getenv("RESUME_BUCKET", "resumes"),
            request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10")),
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ProviderConfig":
        """Build configuration from application settings (includes .env values).

        Args:
            settings: Loaded application settings.

        Returns:
            ProviderConfig mirroring the provider-related settings.
        """
        return cls(
            identity_provider=settings.identity_provider,
            data_store=settings.data_store,
            object_storage=settings.object_storage,
            supabase_url=settings.supabase_url,
            supabase_anon_key=settings.supabase_anon_key.get_secret_value(),
            resume_bucket=settings.resume_bucket,
        )

    @property
    def rest_url(self) -> str:
        """Base URL of the REST (PostgREST) endpoint."""
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        """Base URL of the auth (GoTrue) endpoint."""
        return f"{self.supabase_url.rstrip('/')}/auth/v1"

    @property
    def storage_url(self) -> str:
        """Base URL of the storage endpoint."""
        return f"{self.supabase_url.rstrip('/')}/storage/v1"
