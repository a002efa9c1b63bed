from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    debug: bool = False
    # Empty means DEBUG when debug is on, INFO otherwise
    log_level: str = ""

    ENVIRONMENT: str = "Production"

    # Storage
    snapshot_path: Path = Path("events.json")

    # Time handling
    timezone: str = "Europe/Berlin"
    datetime_display_format: str = "%d.%m.%Y, %H:%M"

    # Roster
    default_title_template: str = "📢 Attendance poll for the event on {event_date}"

    # Late sign-ups and sign-offs are posted here; empty means log only
    log_channel_webhook_url: str = ""

    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.0
    SENTRY_PROFILES_SAMPLE_RATE: float = 0.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
