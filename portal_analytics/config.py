# portal_analytics/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Portal Analytics"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Quiz defaults
    DEFAULT_PASSING_SCORE: float = 60.0  # percentage

    # Cross-form summaries
    ENGAGEMENT_WEEKS: int = 5

    # Export
    CSV_NOT_AVAILABLE: str = "N/A"

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_", env_file=".env", env_file_encoding="utf-8")


settings = Settings()
