"""Application configuration using Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CFS_",
        extra="ignore",
    )

    environment: Literal["local", "test", "staging", "production"] = Field(default="local")
    service_name: str = Field(default="cfs-package-transactions")
    database_url: str = Field(default="sqlite:///./data/cfs.db")
    sql_echo: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)
    flow_definitions_file: str | None = Field(default=None)
    flow_registry_url: str | None = Field(default=None)
    flow_registry_timeout: float = Field(default=10.0)
    transaction_code_prefix: str = Field(default="PT")
    event_topic_arn: str | None = Field(default=None)
    event_source: str = Field(default="cfs_package_transactions")
    event_publish_attempts: int = Field(default=2)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator(
        "flow_definitions_file",
        "flow_registry_url",
        "event_topic_arn",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, value: str | None) -> str | None:
        if value == "":
            return None
        return value

    @field_validator("event_publish_attempts", mode="before")
    @classmethod
    def ensure_positive_attempts(cls, value: int | str | None) -> int | str:
        if value in (None, ""):
            return 1
        return value


@lru_cache
def get_settings() -> AppSettings:
    """Return cached application settings instance."""

    return AppSettings()
