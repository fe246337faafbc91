"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    leafcomplex_env: str = "development"
    leafcomplex_log_level: str = "info"

    # Record per-stage timings in AnalysisContext.timings
    leafcomplex_record_timings: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
