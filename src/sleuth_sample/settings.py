"""
sleuth_sample.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Select the propagation formats and log rendering.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sleuth_sample.observability.logging import DEFAULT_PATTERN


class Settings(BaseSettings):
    """
    - Strict env-driven configuration (prefix `SLEUTH_`)
    - Defaults safe for local dev
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(env_prefix="SLEUTH_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "sleuth-sample"

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_pattern: str = DEFAULT_PATTERN

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Tracing: extraction tries formats in this order; injection writes all of them.
    propagation_types: list[Literal["w3c", "b3", "b3_single"]] = Field(
        default_factory=lambda: ["w3c", "b3"], min_length=1
    )
    # Empty string disables echoing the trace id on responses.
    trace_response_header: str = "X-Trace-Id"

    # Downstream service called by `/hello/relay`
    downstream_base_url: str = "http://localhost:8080"
    downstream_timeout_s: float = 5.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# SLEUTH_PROPAGATION_TYPES takes a JSON list, e.g. '["b3"]' for Sleuth-era callers.
