"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (or a .env file in dev).
Variable names match the field names case-insensitively, e.g. ``LLM_PROVIDER``,
``LLM_API_URL``, ``LLM_API_KEY``, ``LLM_MODEL``.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEV = "dev"
    PROD = "prod"
    TEST = "test"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Application
    # ------------------------------------------------------------------ #
    environment: Environment = Environment.DEV
    debug: bool = False

    # ------------------------------------------------------------------ #
    # Model Gateway
    # ------------------------------------------------------------------ #
    llm_provider: Literal["google", "openai"] = Field(
        default="google",
        description="Wire shape spoken by the backend: 'google' (candidates/parts) or 'openai' (choices)",
    )
    llm_api_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent",
        description="Full generation endpoint URL (google) or API base URL (openai)",
    )
    llm_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="API key sent as ?key= (google) or bearer token (openai)",
    )
    llm_model: str = Field(
        default="gemini-2.0-flash",
        description="Model identifier reported in results and sent to choices-shaped backends",
    )
    llm_timeout_seconds: float = Field(default=20.0, gt=0)
    llm_max_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Attempts per generation call for transient transport failures",
    )

    # ------------------------------------------------------------------ #
    # Program-aided reasoning sandbox
    # ------------------------------------------------------------------ #
    sandbox_timeout_ms: int = Field(default=1000, ge=50, le=30_000)
    sandbox_memory_limit_mb: int = Field(default=256, ge=32)

    # ------------------------------------------------------------------ #
    # Documents
    # ------------------------------------------------------------------ #
    uploads_dir: str = Field(
        default="./uploads",
        description="Directory where uploaded originals are kept for direct model analysis",
    )
    max_upload_bytes: int = Field(default=50_000_000, gt=0)

    # ------------------------------------------------------------------ #
    # ReAct
    # ------------------------------------------------------------------ #
    react_tool_backend: Literal["simulated", "documents"] = Field(
        default="simulated",
        description="'simulated' returns canned observations; 'documents' searches uploaded documents",
    )

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    cors_allowed_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins. In production, set to actual frontend URLs.",
    )

    # ------------------------------------------------------------------ #
    # Derived / Computed
    # ------------------------------------------------------------------ #
    @model_validator(mode="after")
    def _set_debug_from_env(self) -> Settings:
        if self.environment == Environment.DEV:
            self.debug = True
        return self

    @model_validator(mode="after")
    def _validate_production_key(self) -> Settings:
        """Refuse to start in production without a model API key."""
        if self.environment == Environment.PROD and not self.llm_api_key.get_secret_value():
            raise RuntimeError(
                "PRODUCTION STARTUP BLOCKED -- LLM_API_KEY is not set."
            )
        return self

    @property
    def is_dev(self) -> bool:
        return self.environment in (Environment.DEV, Environment.TEST)

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PROD


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings singleton.

    Use FastAPI dependency injection via Depends(get_settings) in endpoints,
    or call directly in non-request contexts (startup, scripts).
    """
    return Settings()
