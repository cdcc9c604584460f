import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator

_ENV_VAR_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ServiceSettings(BaseModel):
    """Settings for one provider; the API key itself stays in the environment."""

    api_key_env: str
    default_model: str | None = None
    base_url: str | None = None
    timeout: float = Field(default=60.0, gt=0)
    max_retries: int = Field(default=2, ge=0)

    @field_validator("api_key_env")
    @classmethod
    def _valid_env_name(cls, value: str) -> str:
        if not _ENV_VAR_NAME.match(value):
            raise ValueError(f"api_key_env must be an environment variable name, got {value!r}")
        return value

    # An unset ${VAR} expands to "", which means "use the provider default".
    @field_validator("default_model", "base_url")
    @classmethod
    def _empty_as_none(cls, value: str | None) -> str | None:
        return value or None


class CacheConfig(BaseModel):
    enabled: bool = True
    ttl_seconds: int = Field(default=3600, ge=0)
    max_size: int = Field(default=128, ge=1)


class StoreConfig(BaseModel):
    base_url: str = "http://localhost:8080"
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        if not value:
            raise ValueError("store.base_url must not be empty")
        return value.rstrip("/")


def _default_services() -> dict[str, ServiceSettings]:
    return {
        "google": ServiceSettings(api_key_env="GOOGLE_API_KEY"),
        "openai": ServiceSettings(api_key_env="OPENAI_API_KEY"),
        "anthropic": ServiceSettings(api_key_env="ANTHROPIC_API_KEY"),
    }


class AIServicesConfig(BaseModel):
    services: dict[str, ServiceSettings] = Field(default_factory=_default_services)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"

    @field_validator("log_level", "log_format", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value
