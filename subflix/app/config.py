from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: Optional[AnyUrl] = None
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    APP_ENV: str = "local"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
    )

    # Which SubtitleStore backs the workflow
    SUBTITLE_BACKEND: Literal["remote", "local", "mirrored"] = "remote"
    LOCAL_CACHE_PATH: str = "subflix_cache.sqlite3"

    # Where the privileged-identity set is read from
    ADMIN_SOURCE: Literal["remote", "settings"] = "remote"
    ADMIN_IDS: str = ""  # comma separated

    # R2 blob storage for uploaded subtitle files
    R2_ACCOUNT_ID: str = ""
    R2_ACCESS_KEY_ID: str = ""
    R2_SECRET_ACCESS_KEY: str = ""
    R2_BUCKET_NAME: str = ""
    R2_PUBLIC_URL: str = ""

    @property
    def admin_ids(self) -> frozenset[str]:
        return frozenset(part.strip() for part in self.ADMIN_IDS.split(",") if part.strip())

    def supabase_errors(self) -> list[str]:
        """Validate supabase settings and return list of errors."""
        errors = []
        if not self.SUPABASE_URL:
            errors.append("SUPABASE_URL is required")
        if not self.SUPABASE_SERVICE_ROLE_KEY:
            errors.append("SUPABASE_SERVICE_ROLE_KEY is required")
        return errors


@lru_cache
def get_settings() -> Settings:
    return Settings()
