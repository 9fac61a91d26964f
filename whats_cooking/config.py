# whats_cooking/config.py — Pydantic settings (env vars)

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Supabase
    supabase_url: str
    supabase_service_key: str

    # Auth
    jwt_secret: str
    session_ttl_hours: int = 24
    pending_signup_ttl_minutes: int = 10
    otp_length: int = 6

    # Recipe generation (model provider + runtime settings)
    llm_provider: str = "gemini"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-1.5-flash"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 60.0
    llm_temperature: float = 0.7
    llm_max_output_tokens: int = 8192
    recipe_count: int = 6
    recipe_ttl_minutes: int = 60

    # Email (Resend)
    resend_api_key: str | None = None
    email_from: str = "What's Cooking <noreply@whatscooking.app>"
    site_url: str = "https://whatscooking.app"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @field_validator("jwt_secret")
    @classmethod
    def _validate_jwt_secret(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("JWT_SECRET must be set and non-empty")
        return cleaned

    @field_validator("llm_provider")
    @classmethod
    def _validate_llm_provider(cls, value: str) -> str:
        cleaned = value.strip().lower()
        if cleaned not in {"gemini", "openai"}:
            raise ValueError("LLM_PROVIDER must be 'gemini' or 'openai'")
        return cleaned


@lru_cache
def get_settings() -> Settings:
    return Settings()
