from pathlib import Path
from typing import Literal

from pydantic import EmailStr, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Required configuration is missing or unusable."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    root_path: str = ""

    debug: bool = False
    reload: bool = False

    service_name: str = "Contact Relay"

    recaptcha_sitekey: str | None = None
    recaptcha_secret: str | None = None
    recaptcha_verify_url: str = "https://www.google.com/recaptcha/api/siteverify"
    recaptcha_timeout: float = Field(10, gt=0)

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = ""
    smtp_tls: bool = False
    smtp_starttls: bool = True
    smtp_timeout: float = Field(30, gt=0)

    contact_email: EmailStr | None = None
    contact_subject: str = "New Contact Form Submission"

    rate_limit_max_requests: int = Field(5, ge=1)
    rate_limit_window: int = Field(900, ge=1)
    redis_url: str | None = Field(None, pattern=r"^rediss?://.*$")

    log_dir: Path = Path("logs")
    max_body_size: int = Field(65536, ge=1024)
    trust_forwarded_headers: bool = False
    cors_origins: str = ""

    sentry_dsn: str | None = None
    sentry_environment: str = "test"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def require_contact_config(self) -> None:
        missing = [
            name
            for name in ("recaptcha_secret", "smtp_host", "smtp_from", "contact_email")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")


settings = Settings()
