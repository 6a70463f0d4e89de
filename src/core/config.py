"""Configuration management for together."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Storage Configuration
    sqlite_db_path: str = Field(default="./data/together.db", description="Path to the SQLite key-value store")

    # Partnership Configuration
    partnership_id: str = Field(
        default="default",
        description="Partnership identifier, used to seed the shared daily challenge draw",
    )
    timezone: str = Field(default="UTC", description="IANA timezone used for local midnight boundaries")

    # Gamification Configuration
    daily_challenge_count: int = Field(default=3, ge=1, description="Number of challenges generated per day")
    default_weekly_goal: int = Field(default=7, ge=1, description="Weekly goal for a fresh gamification state")

    # Scheduler Configuration
    daily_rollover_hour: int = Field(default=0, ge=0, le=23, description="Hour of the scheduled daily recompute")
    daily_rollover_minute: int = Field(default=1, ge=0, le=59, description="Minute of the scheduled daily recompute")


# Application Constants
class Constants:
    """Application-wide constants."""

    # State store keys
    KEY_GAMIFICATION_STATE: str = "gamification-state"
    KEY_DAILY_CHALLENGES: str = "daily-challenges"
    KEY_NOTIFICATIONS: str = "notifications"
    KEY_NOTIFICATION_SETTINGS: str = "notification-settings"

    # Notification timing
    PARTNER_COMPLETION_WINDOW_HOURS: int = 24  # Max age of a partner completion worth announcing
    NOTIFICATION_CLEANUP_AFTER_HOURS: int = 24  # Dismissed notifications are pruned after this

    # Notification limits
    MAX_NOTIFICATIONS_STORED: int = 100
    MAX_UNREAD_DISPLAY: int = 9  # Show "9+" above this

    # Notification defaults
    DEFAULT_WARNING_DAYS: int = 3
    WARNING_DAY_OPTIONS: tuple[int, ...] = (1, 2, 3, 7, 14)

    # Ledger
    MAX_LEDGER_HISTORY_DISPLAY: int = 50


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
