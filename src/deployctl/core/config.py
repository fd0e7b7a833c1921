"""Configuration management for deployctl."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """CLI configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # API
    deploy_token: Optional[str] = Field(
        None,
        description="API token used when --token is not given",
        validation_alias="DENO_DEPLOY_TOKEN",
    )
    api_endpoint: str = Field(
        "https://dash.deno.com",
        description="Base URL of the deployment API",
        validation_alias="DEPLOY_API_ENDPOINT",
    )
    request_timeout_seconds: float = Field(
        30.0,
        description="Timeout for a single API request",
        validation_alias="REQUEST_TIMEOUT_SECONDS",
    )

    # Observability
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field("console", validation_alias="LOG_FORMAT")

    @field_validator("api_endpoint")
    @classmethod
    def normalize_endpoint(cls, v: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"DEPLOY_API_ENDPOINT must be an http(s) URL, got: {v}")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got: {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("console", "json"):
            raise ValueError(f"LOG_FORMAT must be 'console' or 'json', got: {v}")
        return v

    @property
    def token(self) -> Optional[str]:
        """Configured token, or None when unset or blank."""
        if self.deploy_token and self.deploy_token.strip():
            return self.deploy_token.strip()
        return None
