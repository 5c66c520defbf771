"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "ledger-insight"
    log_level: str = "INFO"

    # Insight window (calendar months, current month included)
    insight_window_months: int = 6

    # Display placeholders for missing record fields
    no_notes_placeholder: str = "no notes"
    missing_label: str = "-"


settings = Settings()
