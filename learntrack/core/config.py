"""
Learning Tracker - Application Configuration

Patterns Applied:
- Pydantic Settings with SettingsConfigDict
- Environment variable prefix LT_ for Learning Tracker
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Static YAML ships inside the package so wheel installs keep it
CONFIG_DIR = Path(__file__).parent.parent / "config"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables with LT_ prefix.
    Example: LT_PORT=8090, LT_CLASSIFIER_CACHE_SIZE=4096
    """

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8090

    # Application metadata
    service_name: str = "learning-tracker"
    version: str = "0.1.0"
    environment: str = "development"

    # Logging configuration
    log_level: str = "INFO"
    log_json: bool = True

    # Tracing configuration
    tracing_enabled: bool = True
    tracing_console_export: bool = False
    tracing_sample_ratio: float = 1.0

    # Static data
    catalog_path: Path = CONFIG_DIR / "roadmap_catalog.yaml"
    content_rules_path: Path = CONFIG_DIR / "content_rules.yaml"

    # Classification
    classifier_cache_size: int = 1024

    # Ingestion and review
    default_user_id: str = "default"
    submit_batch_size: int = 10
    pending_limit: int = 10
    recent_window_days: int = 7

    model_config = SettingsConfigDict(
        env_prefix="LT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings instance with values from environment
    """
    return Settings()
