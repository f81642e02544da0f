"""LRS settings using Pydantic BaseSettings."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """LRS configuration loaded from ``LRS_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LRS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080)

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./lrs.db")
    database_echo: bool = Field(default=False)

    # xAPI surface
    url_prefix: str = Field(default="/xapi")
    # Empty means "more" links are built from url_prefix.
    stmt_more_url_prefix: str = Field(default="")
    stmt_get_default: int = Field(default=50, ge=1)
    stmt_get_max: int = Field(default=50, ge=1)
    authority_url: str = Field(default="http://example.org")

    # Seeded credential, inserted on start with the "all" scope
    api_key_default: Optional[str] = Field(default=None)
    api_secret_default: Optional[str] = Field(default=None)

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)
    log_file: Optional[str] = Field(default=None)

    @field_validator("url_prefix", "stmt_more_url_prefix")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def more_url_prefix(self) -> str:
        return self.stmt_more_url_prefix or self.url_prefix

    @property
    def has_default_credentials(self) -> bool:
        return bool(self.api_key_default and self.api_secret_default)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
