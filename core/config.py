"""
Pydantic-based configuration for the scanner.

Every knob can be set through PORTPROBE_* environment variables (or a
.env file) so the CLI and the HTTP API share the same defaults.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = {"debug", "info", "warning", "error"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, env_file=".env", env_prefix="PORTPROBE_")

    # Scan defaults
    default_ports: str = Field("1-1024", description="port spec used when none is given")
    concurrency: int = Field(512, description="max probes in flight")

    # Timeouts
    timeout_ms: int = Field(800, description="connect deadline per probe")
    banner_timeout_ms: int = Field(1200, description="banner read deadline")
    banner_read_size: int = Field(4096, description="max banner bytes per read")

    log_level: str = Field("info")

    # Elasticsearch
    elasticsearch_url: Optional[str] = None
    elasticsearch_user: Optional[str] = None
    elasticsearch_pass: Optional[str] = None
    elasticsearch_api_key: Optional[str] = None
    elasticsearch_verify_certs: bool = True
    elasticsearch_ca_cert: Optional[str] = None
    bulk_batch_size: int = 500
    results_index: str = "portprobe-results"
    scans_index: str = "portprobe-scans"

    # Local state/cache
    json_cache_path: Optional[str] = None

    @field_validator("concurrency", "timeout_ms", "banner_timeout_ms", "banner_read_size", "bulk_batch_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.lower()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(LOG_LEVELS)}")
        return v


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
