"""
Application configuration (HTTP surface, logging).

Provider specific settings live in core.settings so the payment adapter can
be used without the web layer.
"""
import json

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = Field(default="Vipps Payment Adapter")
    VERSION: str = Field(default="0.1.0")
    DEBUG: bool = Field(default=False)

    API_PREFIX: str = Field(default="/api/v1")
    CORS_ORIGINS: list[str] = Field(default=["http://localhost:3000"])

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_JSON: bool = Field(default=True, description="Render JSON logs outside DEBUG")
    LOG_REDACT_FIELDS: list[str] = Field(
        default=[
            "client_id",
            "client_secret",
            "subscription_key",
            "access_token",
            "authorization",
            "Ocp-Apim-Subscription-Key",
        ],
        description="Keys whose values are masked in every log event, at any depth",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """Accept a JSON list or a comma separated string."""
        if not isinstance(v, str):
            return v
        s = v.strip()
        if s.startswith("["):
            return json.loads(s)
        return [item.strip() for item in s.split(",") if item.strip()]


settings = Settings()
