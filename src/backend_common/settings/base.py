"""Base settings shared by aiohttp services."""
from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class BaseServiceSettings(BaseSettings):
    """Fields every service needs: identity, bind address, database pool and CORS."""

    model_config = SettingsConfigDict(
        env_file=(".env", "env.example"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    env: Literal["development", "staging", "production"] = "development"
    app_name: str = "service"
    host: str = "0.0.0.0"
    port: int = 8000

    db_pool_size: int = 10

    # Comma-separated in the environment; NoDecode keeps pydantic-settings from JSON-parsing it
    cors_allowed_origins: Annotated[list[str], NoDecode] = Field(
        default=["*"],
        alias="CORS_ALLOWED_ORIGINS",
    )

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def _split_cors_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            origins = [origin.strip() for origin in value.split(",") if origin.strip()]
            return origins or ["*"]
        return value
