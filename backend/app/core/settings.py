"""Application settings loaded from the environment."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Invoice Manager"
    api_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"

    secret_key: str = "CHANGE_ME"
    access_token_expire_minutes: int = 60 * 24 * 7
    session_lifetime_days: int = 7

    database_url: str = "sqlite:///./invoice_manager.db"

    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    public_base_url: str = "http://localhost:5000"

    resend_api_key: str | None = None
    from_email: str | None = None

    google_service_account_file: str | None = None
    google_spreadsheet_id: str | None = None

    outbound_timeout_seconds: float = 10.0

    default_username: str = "admin"
    default_password: str = "admin123"


_settings_instance = None


def get_settings() -> Settings:
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached Settings so the next call re-reads the environment."""
    global _settings_instance
    _settings_instance = None
