# python
# app/core/config.py
"""Configuration settings for the AI Component Generator application.

Uses Pydantic BaseSettings for environment variable management.
"""
from enum import Enum

from pydantic import AnyHttpUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentEnum(str, Enum):
    development = "development"
    testing = "testing"
    staging = "staging"
    production = "production"


class LogLevelEnum(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormatEnum(str, Enum):
    simple = "simple"
    json = "json"


class DispatchEnum(str, Enum):
    local = "local"
    celery = "celery"


class Settings(BaseSettings):
    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Application Settings =====
    app_name: str = Field(default="AI Component Generator API", description="Application name")
    environment: EnvironmentEnum = Field(
        default=EnvironmentEnum.development, description="Environment type"
    )
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")

    # ===== Database Settings =====
    database_url: str | None = Field(default=None, description="Database connection URL")
    test_database_url: str | None = Field(default=None, description="Test database URL")

    # ===== Authentication (Clerk) =====
    clerk_secret_key: str | None = Field(default=None, description="Clerk secret key")
    clerk_api_url: AnyHttpUrl = Field(default="https://api.clerk.com", description="Clerk API URL")

    # ===== AI Providers =====
    openrouter_api_key: str | None = Field(default=None, description="OpenRouter API key")
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1", description="OpenRouter API base URL"
    )
    openrouter_referer: str = Field(
        default="http://localhost:3000", description="HTTP-Referer sent to OpenRouter"
    )
    openrouter_app_title: str = Field(
        default="Component Generator Platform", description="X-Title sent to OpenRouter"
    )
    gemini_api_key: str | None = Field(default=None, description="Google Gemini API key")

    # ===== Component Generation =====
    default_model: str = Field(default="gpt-4o-mini", description="Model used when none is requested")
    fallback_model: str = Field(default="gemini-1.5-flash", description="Model used after a primary failure")
    ai_max_tokens: int = Field(default=4000, description="Maximum output tokens per generation")
    ai_temperature: float = Field(default=0.7, description="Default sampling temperature")
    ai_request_timeout: float = Field(default=60.0, description="Per provider call timeout in seconds")
    context_window_size: int = Field(default=5, description="Completed turns sent as conversation context")
    context_fetch_limit: int = Field(default=10, description="Messages loaded when building context")

    # ===== Background Generation =====
    generation_dispatch: DispatchEnum = Field(
        default=DispatchEnum.local, description="Where generation jobs run (local or celery)"
    )
    finalize_max_attempts: int = Field(default=3, description="Attempts to persist a generation outcome")
    finalize_retry_min_wait: float = Field(default=0.5, description="Minimum wait between finalize attempts")
    finalize_retry_max_wait: float = Field(default=5.0, description="Maximum wait between finalize attempts")

    # ===== Redis / Celery =====
    celery_broker_url: str = Field(
        default="redis://localhost:6379/1", description="Celery broker URL"
    )
    celery_result_backend: str = Field(
        default="redis://localhost:6379/2", description="Celery result backend"
    )

    # ===== CORS Settings =====
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    # ===== Monitoring & Logging =====
    log_level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Logging level")
    log_format: LogFormatEnum = Field(default=LogFormatEnum.json, description="Log format")

    # ===== Server Settings =====
    host: str = Field(default="127.0.0.1", description="Host to bind the server")
    port: int = Field(default=8000, description="Port to bind the server")

    # ===== Computed Properties =====
    @property
    def is_development(self) -> bool:
        return self.environment == EnvironmentEnum.development

    @property
    def is_production(self) -> bool:
        return self.environment == EnvironmentEnum.production

    @property
    def is_testing(self) -> bool:
        return self.environment == EnvironmentEnum.testing

    @property
    def has_openrouter(self) -> bool:
        return bool(self.openrouter_api_key)

    @property
    def has_gemini(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_ai_enabled(self) -> bool:
        return self.has_openrouter or self.has_gemini

    # ===== Validation Methods =====
    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        if v and isinstance(v, str):
            lv = v.lower()
            if lv in ["dev", "develop"]:
                return "development"
            if lv in ["prod"]:
                return "production"
            return lv
        return v

    @field_validator("ai_temperature")
    @classmethod
    def validate_temperature(cls, v):
        if not 0 <= v <= 2:
            raise ValueError("Temperature must be between 0 and 2")
        return v

    @field_validator("ai_request_timeout")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("AI request timeout must be positive")
        return v

    @field_validator("context_window_size")
    @classmethod
    def validate_context_window(cls, v):
        if not 1 <= v <= 20:
            raise ValueError("Context window size must be between 1 and 20")
        return v

    @model_validator(mode="after")
    def set_computed_fields(self):
        if self.context_fetch_limit < self.context_window_size:
            self.context_fetch_limit = self.context_window_size
        return self


settings = Settings()


class ConfigValidator:
    @staticmethod
    def validate_required_settings():
        errors = []
        if not settings.database_url:
            errors.append("DATABASE_URL is required")
        if not settings.clerk_secret_key:
            errors.append("CLERK_SECRET_KEY is required")
        if settings.is_production and not settings.has_ai_enabled:
            errors.append("OPENROUTER_API_KEY or GEMINI_API_KEY is required in production")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

    @staticmethod
    def get_feature_status() -> dict:
        return {
            "ai_enabled": settings.has_ai_enabled,
            "providers": {
                "openrouter": settings.has_openrouter,
                "gemini": settings.has_gemini,
            },
            "generation_dispatch": settings.generation_dispatch.value,
            "environment": settings.environment,
        }


def get_config_summary() -> dict:
    return {
        "app_name": settings.app_name,
        "version": settings.version,
        "environment": settings.environment,
        "debug": settings.debug,
        "features": ConfigValidator.get_feature_status(),
        "database_configured": bool(settings.database_url),
        "auth_configured": bool(settings.clerk_secret_key),
        "default_model": settings.default_model,
        "fallback_model": settings.fallback_model,
    }


__all__ = [
    "settings",
    "Settings",
    "ConfigValidator",
    "get_config_summary",
    "EnvironmentEnum",
    "LogLevelEnum",
    "LogFormatEnum",
    "DispatchEnum",
]
