"""Notification domain models and settings."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.config import Constants


class NotificationType(StrEnum):
    """Condition that produced a notification."""

    OVERDUE = "overdue"
    DUE_SOON = "deadline-soon"
    PARTNER_COMPLETED = "partner-completed"


class NotificationPriority(StrEnum):
    """Notification priority; HIGH requests immediate delivery."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


DedupKey = tuple[NotificationType, str, str]


class Notification(BaseModel):
    """Notification for one partner about one action."""

    id: str = Field(..., description="Unique notification ID")
    type: NotificationType
    action_id: str = Field(..., description="Action the notification refers to")
    partner_id: str = Field(..., description="Partner who owns (receives) the notification")
    title: str
    message: str
    priority: NotificationPriority
    created_at: datetime
    read: bool = False
    dismissed: bool = Field(default=False, description="Soft-deleted by the partner")
    dismissed_at: datetime | None = None
    delivered_at: datetime | None = Field(default=None, description="When the delivery sink was called")

    @property
    def dedup_key(self) -> DedupKey:
        return (self.type, self.action_id, self.partner_id)

    @property
    def is_live(self) -> bool:
        return not self.dismissed


class NotificationSettings(BaseModel):
    """User-configurable notification suppression rules."""

    enabled: bool = True
    overdue_reminders: bool = True
    deadline_warnings: bool = True
    partner_updates: bool = True
    warning_days: int = Field(default=Constants.DEFAULT_WARNING_DAYS, description="Days before a deadline to warn")
    quiet_hours_start: int | None = Field(default=None, ge=0, le=23, description="Local hour quiet hours begin")
    quiet_hours_end: int | None = Field(default=None, ge=0, le=23, description="Local hour quiet hours end")

    @field_validator("warning_days")
    @classmethod
    def validate_warning_days(cls, v: int) -> int:
        """Validate warning days is one of the offered options."""
        if v not in Constants.WARNING_DAY_OPTIONS:
            msg = f"warning_days must be one of {Constants.WARNING_DAY_OPTIONS}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_quiet_hours(self) -> "NotificationSettings":
        """Quiet hours need both ends or neither."""
        if (self.quiet_hours_start is None) != (self.quiet_hours_end is None):
            msg = "quiet_hours_start and quiet_hours_end must be set together"
            raise ValueError(msg)
        return self

    def in_quiet_hours(self, local_hour: int) -> bool:
        """True if local_hour falls inside quiet hours (ranges may wrap midnight)."""
        if self.quiet_hours_start is None or self.quiet_hours_end is None:
            return False
        start, end = self.quiet_hours_start, self.quiet_hours_end
        if start == end:
            return False
        if start < end:
            return start <= local_hour < end
        return local_hour >= start or local_hour < end
