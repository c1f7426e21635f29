"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Cybercrime Investigation Training Platform"
    version: str = "1.0.0"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    slow_request_ms: int = 1000  # warn above this request duration

    # Countdown timer (thresholds are percentages of the time limit)
    timer_tick_interval_ms: int = 1000
    timer_warning_threshold: float = 30
    timer_critical_threshold: float = 10
    pressure_alert_duration_ms: int = 3000

    # Result reveal sequence
    result_reveal_delay_ms: int = 500
    result_details_delay_ms: int = 1500
    result_exit_delay_ms: int = 500
    result_auto_continue_ms: Optional[int] = None  # None = wait for explicit continue

    # Scoring weights (normalized before use)
    scoring_weight_completion: float = 0.4
    scoring_weight_speed: float = 0.4
    scoring_weight_accuracy: float = 0.2

    # Module catalog
    default_module_passing_score: float = 0.8
    default_activity_passing_score: float = 0.7
    strict_content_validation: bool = True
    catalog_path: Optional[str] = None  # JSON export loaded at startup
    export_format_version: str = "1.0.0"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
