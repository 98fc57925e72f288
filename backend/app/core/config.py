from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "AgentForLife"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Database
    DATABASE_URL: str = "postgresql://agentforlife:agentforlife@db:5432/agentforlife"

    # Redis (Celery broker)
    REDIS_URL: str = "redis://redis:6379/0"

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Shared secret for the scheduled-job endpoints
    CRON_SECRET: Optional[str] = None

    # Expo push gateway
    EXPO_PUSH_URL: str = "https://exp.host/--/api/v2/push/send"
    PUSH_TIMEOUT_SECONDS: int = 15

    # Mailgun for agent digest emails
    MAILGUN_API_KEY: Optional[str] = None
    MAILGUN_DOMAIN: Optional[str] = None
    MAILGUN_FROM_EMAIL: str = "support@agentforlife.app"
    MAILGUN_FROM_NAME: str = "AgentForLife Notifications"

    # App URL (agent dashboard)
    APP_URL: str = "https://agentforlife.app"

    # Touchpoints
    ANNIVERSARY_WINDOW_DAYS: int = 30

    # Conservation alerts
    CONSERVATION_GRACE_PERIOD_MINUTES: int = 120
    CHARGEBACK_WINDOW_DAYS: int = 365

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
