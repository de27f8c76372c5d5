"""
Configuration management for PillPal
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "PillPal"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./pillpal.db"
    DATABASE_ECHO: bool = False

    # Reminders
    LOW_SUPPLY_ALERT_HOUR: int = 9
    LOW_SUPPLY_ALERT_MINUTE: int = 0
    REMINDER_MAX_RETRIES: int = 3
    REMINDER_RETRY_BASE_DELAY: float = 0.5  # seconds, doubled per attempt

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:8081"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class AdherenceConfig:
    """Window sizes and bucket boundaries for adherence statistics"""

    WEEKLY_WINDOW_DAYS: int = 7
    MONTHLY_WINDOW_DAYS: int = 30
    DEFAULT_REPORT_DAYS: int = 30
    DEFAULT_MISSED_DOSE_DAYS: int = 7

    # Time-of-day buckets, [start_hour, end_hour)
    MORNING_START_HOUR: int = 6
    AFTERNOON_START_HOUR: int = 12
    EVENING_START_HOUR: int = 18


# Database table names
class TableNames:
    MEDICATIONS = "medications"
    HISTORY_ENTRIES = "history_entries"
    ACHIEVEMENTS = "achievements"


settings = get_settings()
adherence_config = AdherenceConfig()
