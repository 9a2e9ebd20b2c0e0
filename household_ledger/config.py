"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./household_ledger.db"

    # Push notifications (Expo push API)
    push_api_url: str = "https://exp.host/--/api/v2/push/send"

    # Service
    service_name: str = "household-ledger"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0
    push_max_retries: int = 3
    push_backoff_base: float = 1.0  # Exponential backoff base in seconds

    # Debt reminder scheduler
    reminder_scheduler_enabled: bool = False
    reminder_check_interval_seconds: float = 3600.0
    debt_reminder_cooldown_days: int = 7


settings = Settings()
