from functools import lru_cache
import json
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_list_value(value: str) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return []
        try:
            parsed = json.loads(raw)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except ValueError:
            pass
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )
    database_url: str = ""
    log_level: str = "INFO"

    docs_enabled: bool = Field(default=True)
    openapi_enabled: bool = Field(default=True)
    expose_error_details: bool = False

    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"),
    )
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    ai_image_provider: str = "mock"
    ai_image_model: str = "gemini-2.5-flash-image"
    ai_detection_provider: str = "mock"
    ai_detection_model: str = "gemini-2.5-flash"
    ai_timeout_seconds: float = 60.0
    ai_detection_timeout_seconds: float = 30.0
    ai_max_upload_bytes: int = 15 * 1024 * 1024

    ai_allowed_providers_raw: str = Field(
        default="gemini,mock",
        validation_alias=AliasChoices("AI_ALLOWED_PROVIDERS"),
    )
    ai_allowed_models_gemini_raw: str = Field(
        default="",
        validation_alias=AliasChoices("AI_ALLOWED_MODELS_GEMINI"),
    )
    enable_ai_overrides: bool = False

    enable_ai_audit: bool = True
    ai_debug_store_raw: bool = False

    rate_limit_ai_enabled: bool = True
    rate_limit_ai_per_min: int = 30

    cors_allow_origins: list[str] = Field(default_factory=list)
    cors_allow_methods: list[str] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    cors_allow_headers: list[str] = Field(default_factory=lambda: ["Content-Type", "Accept"])

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        mode="before",
    )
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            if value.strip() == "":
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def ai_allowed_providers(self) -> list[str]:
        """Allowlisted provider names; ``mock`` is always allowed."""
        providers = [p.lower() for p in _parse_list_value(self.ai_allowed_providers_raw)]
        if "mock" not in providers:
            providers.append("mock")
        return providers

    @property
    def ai_allowed_models(self) -> dict[str, list[str]]:
        return {
            "gemini": _parse_list_value(self.ai_allowed_models_gemini_raw),
            "mock": [],
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
