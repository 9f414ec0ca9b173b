"""Centralized settings management for activity ingestion."""

from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings powered by pydantic-settings.

    Loads credentials from environment variables and a ``.env.local`` file in
    the working directory. Tunables such as delays and page caps are not
    settings; they live as constants next to the code that uses them.
    """

    # -------------------------------------------------------------------------
    # ENVIRONMENT
    # -------------------------------------------------------------------------
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # -------------------------------------------------------------------------
    # STORAGE
    # -------------------------------------------------------------------------
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: SecretStr | None = None
    SUPABASE_ANON_KEY: SecretStr | None = None

    # -------------------------------------------------------------------------
    # ENRICHMENT SERVICES
    # -------------------------------------------------------------------------
    UNSPLASH_ACCESS_KEY: SecretStr | None = None
    GOOGLE_PLACES_API_KEY: SecretStr | None = None

    # -------------------------------------------------------------------------
    # HTTP ROUTES
    # -------------------------------------------------------------------------
    CRON_SECRET: SecretStr | None = None

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def supabase_key(self) -> str | None:
        """Service-role key when present, otherwise the anon key."""
        key = self.SUPABASE_SERVICE_ROLE_KEY or self.SUPABASE_ANON_KEY
        return key.get_secret_value() if key else None

    def require_supabase(self) -> tuple[str, str]:
        """
        Return the Supabase URL and key, or fail naming what is missing.

        Raises
        ------
        ValueError
            If the URL or both keys are unset.
        """
        missing = []
        if not self.SUPABASE_URL:
            missing.append("SUPABASE_URL")
        if not self.supabase_key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY)")
        if missing:
            raise ValueError(f"Missing Supabase credentials: {', '.join(missing)}")
        return self.SUPABASE_URL, self.supabase_key


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns
    -------
    Settings
        The singleton settings instance.
    """
    return Settings()
