"""Action and issue domain models (read-only engine inputs)."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from src.core.clock import ensure_aware, parse_timestamp


ASSIGNED_TO_BOTH = "both"


class ActionStatus(StrEnum):
    """Remediation action lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class IssueCategory(StrEnum):
    """Relationship concern category."""

    COMMUNICATION = "communication"
    INTIMACY = "intimacy"
    FINANCE = "finance"
    TIME = "time"
    FAMILY = "family"
    PERSONAL_GROWTH = "personal-growth"
    OTHER = "other"


class Action(BaseModel):
    """Remediation task owned by the task-management subsystem."""

    id: str = Field(..., description="Unique action ID")
    title: str = Field(..., description="Action title (e.g., 'Plan a date night')")
    issue_id: str | None = Field(default=None, description="Issue this action remediates")
    assigned_to: str = Field(..., description="Partner ID, or 'both'")
    status: ActionStatus = Field(default=ActionStatus.PENDING, description="Current status")
    created_at: datetime = Field(..., description="Creation timestamp")
    created_by: str | None = Field(default=None, description="Partner ID who created the action")
    due_date: datetime | None = Field(default=None, description="Optional due timestamp")
    completed_at: datetime | None = Field(default=None, description="Completion timestamp")
    completed_by: str | None = Field(default=None, description="Partner ID who completed the action")

    @field_validator("created_at", "due_date", "completed_at", mode="before")
    @classmethod
    def validate_timestamp(cls, v: object) -> object:
        """Parse ISO-8601 text (extended or basic form) and treat naive timestamps as UTC."""
        if isinstance(v, str):
            return parse_timestamp(v)
        if isinstance(v, datetime):
            return ensure_aware(v)
        return v

    @property
    def is_completed(self) -> bool:
        return self.status == ActionStatus.COMPLETED

    def is_assigned_to(self, partner_id: str) -> bool:
        """True if the action targets partner_id directly or via 'both'."""
        return self.assigned_to in (partner_id, ASSIGNED_TO_BOTH)


class Issue(BaseModel):
    """Named relationship concern with its related actions."""

    id: str = Field(..., description="Unique issue ID")
    title: str = Field(..., description="Issue title")
    category: IssueCategory = Field(default=IssueCategory.OTHER, description="Issue category")
    action_ids: list[str] = Field(default_factory=list, description="IDs of related actions")
