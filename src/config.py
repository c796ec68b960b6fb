"""Pydantic Settings — loads configuration from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    log_level: str = "INFO"
    cors_allowed_origins: str = "*"

    # Fetch ladder
    fetch_timeout_seconds: float = 30.0
    max_redirects: int = 5

    # Orchestrator / batch pacing
    max_attempts: int = 3
    retry_delay_seconds: float = 2.0
    batch_delay_seconds: float = 3.0

    # Content thresholds
    min_content_length: int = 100
    min_dynamic_content_length: int = 40
    escalation_text_threshold: int = 150
    escalation_body_threshold: int = 350
    max_content_length: int = 50000

    # Headless rendering
    dynamic_rendering_enabled: bool = True
    render_navigation_timeout_seconds: float = 45.0
    render_selector_timeout_seconds: float = 10.0
    render_wait_seconds: float = 8.0
    render_settle_seconds: float = 2.0
    max_concurrent_renders: int = 3


@lru_cache
def get_settings() -> Settings:
    return Settings()
