# helpdesk/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    DATABASE_URL: str = Field(default="sqlite:///./helpdesk.db")
    APP_NAME: str = "TicketForge Help Desk"
    APP_DESC: str = "Multi-role help desk and ticketing API"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # comma separated, "*" allows all
    CORS_ORIGINS: str = "*"

    # Session tokens
    JWT_SECRET: str = "change-me-in-production-0123456789abcdef"
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_DAYS: int = 30

    # Built-in admin, created only when no admin exists
    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@ticketforge.local"
    ADMIN_PASSWORD: str = "admin123"

    # Lifecycle codes
    VERIFICATION_TOKEN_TTL_HOURS: int = 24
    RESET_TOKEN_TTL_MINUTES: int = 60
    ENFORCE_PASSWORD_CHANGE: bool = True

    # Email transport; notifications are disabled without SMTP_HOST/SMTP_USER
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_SECURE: bool = False
    SMTP_FROM_NAME: str = "TicketForge"
    SMTP_FROM_EMAIL: str = "noreply@ticketforge.local"

    # Attachments
    UPLOAD_DIR: str = "./uploads"
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    MAX_ATTACHMENTS: int = 5
    ALLOWED_FILE_TYPES: str = (
        "image/jpeg,image/png,image/gif,application/pdf,application/msword,"
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def allowed_file_types(self) -> list[str]:
        return [t.strip() for t in self.ALLOWED_FILE_TYPES.split(",") if t.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
