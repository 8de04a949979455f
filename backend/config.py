"""
Application Configuration Module

All settings are read from environment variables (a local .env file is loaded
first). Defaults are suitable for a local development setup.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    # Database
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "postgres")
    POSTGRES_SERVER: str = os.getenv("POSTGRES_SERVER", "localhost")
    POSTGRES_PORT: str = os.getenv("POSTGRES_PORT", "5432")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "lab_inventory")
    # A full URL wins over the individual parts above
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"postgresql+psycopg2://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_SERVER}:{POSTGRES_PORT}/{POSTGRES_DB}",
    )
    DATABASE_ECHO: bool = _env_bool("DATABASE_ECHO")

    # All stored and compared timestamps use this zone
    APP_TIMEZONE: str = os.getenv("APP_TIMEZONE", "Asia/Riyadh")

    LOG_DIR: str = os.getenv("LOG_DIR", "logs")

    CORS_ALLOWED_ORIGINS: str = os.getenv(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173",
    )

    # Cognito (identity provider)
    COGNITO_REGION: str = os.getenv("COGNITO_REGION", "eu-north-1")
    COGNITO_USER_POOL_ID: str | None = os.getenv("COGNITO_USER_POOL_ID")
    COGNITO_APP_CLIENT_ID: str | None = os.getenv("COGNITO_APP_CLIENT_ID")

    # Email notifications
    SMTP_HOST: str | None = os.getenv("SMTP_HOST")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", 587))
    SMTP_USERNAME: str | None = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD: str | None = os.getenv("SMTP_PASSWORD")
    SMTP_USE_SSL: bool = _env_bool("SMTP_USE_SSL")
    EMAIL_SENDER: str | None = os.getenv("EMAIL_SENDER", os.getenv("SMTP_USERNAME"))
    NOTIFICATION_RECIPIENT: str | None = os.getenv("NOTIFICATION_RECIPIENT")

    # Scheduled notifier
    SCHEDULER_ENABLED: bool = _env_bool("SCHEDULER_ENABLED", "True")
    # When true, a dedup flag is only set once the email was actually delivered
    NOTIFY_REQUIRE_DELIVERY: bool = _env_bool("NOTIFY_REQUIRE_DELIVERY")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ALLOWED_ORIGINS.split(",") if origin.strip()]


settings = Settings()
