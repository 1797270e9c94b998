from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


OutputFormat = Literal["json", "text"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    output_format: OutputFormat = Field("json", alias="BILLSPLIT_FORMAT")
    input_pattern: str = Field("*.json", alias="BILLSPLIT_INPUT_PATTERN")
    max_concurrency: int = Field(8, ge=1, alias="BILLSPLIT_MAX_CONCURRENCY")
    log_level: str = Field("INFO", alias="BILLSPLIT_LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
