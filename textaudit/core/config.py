from functools import lru_cache
import json
from urllib.parse import urlsplit

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="TextAudit API", alias="APP_NAME")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    api_prefix: str = Field(default="/v1", alias="API_PREFIX")

    cors_allowed_origins: str = Field(default="http://localhost:3000", alias="CORS_ALLOWED_ORIGINS")

    groq_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GROQ_API_KEY", "API_KEY", "GEMINI_API_KEY"),
    )
    groq_base_url: str = Field(default="https://api.groq.com/openai/v1", alias="GROQ_BASE_URL")
    groq_model: str = Field(default="llama-3.3-70b-versatile", alias="GROQ_MODEL")
    groq_max_completion_tokens: int = Field(default=4096, alias="GROQ_MAX_COMPLETION_TOKENS")
    groq_max_input_chars: int = Field(default=12000, alias="GROQ_MAX_INPUT_CHARS")

    engine_max_attempts: int = Field(default=3, alias="ENGINE_MAX_ATTEMPTS")
    engine_backoff_base_seconds: float = Field(default=0.5, alias="ENGINE_BACKOFF_BASE_SECONDS")
    engine_attempt_timeout_seconds: float = Field(default=30.0, alias="ENGINE_ATTEMPT_TIMEOUT_SECONDS")
    engine_min_text_chars: int = Field(default=10, alias="ENGINE_MIN_TEXT_CHARS")
    audit_min_text_chars: int = Field(default=100, alias="AUDIT_MIN_TEXT_CHARS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    @field_validator("groq_api_key", mode="before")
    @classmethod
    def strip_api_key(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("groq_base_url", mode="before")
    @classmethod
    def normalize_base_url(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if not isinstance(value, str):
            return "INFO"
        normalized = value.strip().upper()
        if normalized in _LOG_LEVELS:
            return normalized
        return "INFO"

    @field_validator("engine_max_attempts", mode="after")
    @classmethod
    def bound_attempts(cls, value: int) -> int:
        return max(1, value)

    @field_validator("engine_backoff_base_seconds", "engine_attempt_timeout_seconds", mode="after")
    @classmethod
    def non_negative_seconds(cls, value: float) -> float:
        return max(0.0, value)

    @property
    def has_api_key(self) -> bool:
        key = self.groq_api_key
        return bool(key) and "PLACEHOLDER" not in key.upper()

    @staticmethod
    def _normalize_origin(origin: str) -> str:
        candidate = origin.strip().strip("'\"")
        if not candidate:
            return ""

        if "://" not in candidate:
            candidate = f"https://{candidate}"

        parsed = urlsplit(candidate)
        if not parsed.scheme or not parsed.netloc:
            return ""

        # CORS matching is exact on scheme+host+port; paths must be removed.
        return f"{parsed.scheme}://{parsed.netloc}".rstrip("/")

    @property
    def cors_origins(self) -> list[str]:
        raw = self.cors_allowed_origins.strip()
        if not raw:
            return []

        values: list[str]
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
                if isinstance(parsed, list):
                    values = [str(item) for item in parsed]
                else:
                    values = [raw]
            except json.JSONDecodeError:
                values = [raw]
        else:
            values = raw.split(",")

        normalized = [self._normalize_origin(value) for value in values]
        return [origin for origin in normalized if origin]


@lru_cache
def get_settings() -> Settings:
    return Settings()
