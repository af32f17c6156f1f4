"""Application configuration."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "PPE_Logs"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"
    # Station-local clock used for "current month" and report timestamps.
    TIMEZONE: str = "Europe/London"

    # Database
    DATABASE_URL: str = "sqlite:///./ppe_logs.sqlite3"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Equipment import
    IMPORT_DATA_DIR: str = "./data"
    IMPORT_SITE_FILTER: str = "HARROLD"
    IMPORT_EXCLUDED_CONDITIONS: str = "CONDEMNED,LOST,STOLEN"
    # "first" or "last": which row wins when a barcode repeats inside one import run.
    IMPORT_DUPLICATE_BARCODE_WINS: str = "first"

    # Inspections
    INSPECTION_REQUIRE_ALL_ITEMS: bool = True

    # Defect photos
    UPLOAD_DIR: str = "./uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_SIZE: int = 5242880  # 5MB
    ALLOWED_PHOTO_EXTENSIONS: str = "jpg,jpeg,png,gif,heic,webp"

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"
    NOTIFICATIONS_ASYNC: bool = False
    DIGEST_SCHEDULE_SECONDS: float = 7 * 24 * 60 * 60

    # Mail
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_TLS: bool = True
    MAIL_FROM: str | None = None
    DEFECT_REPORT_TO: str = "ppe-officer@example.org"

    # Telegram
    TELEGRAM_BOT_TOKEN: str | None = None
    TELEGRAM_CHAT_ID: str | None = None

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def excluded_conditions_list(self) -> list[str]:
        """Get condition exclusion vocabulary as upper-case list."""
        return [term.strip().upper() for term in self.IMPORT_EXCLUDED_CONDITIONS.split(",") if term.strip()]

    @property
    def allowed_photo_extensions_list(self) -> list[str]:
        """Get allowed photo extensions as list."""
        return [ext.strip().lower() for ext in self.ALLOWED_PHOTO_EXTENSIONS.split(",") if ext.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
