"""Gamification aggregate: streaks, points ledger, achievements, partner stats.

Points are never stored as a bare total. Every award or spend is a ledger
entry with a deterministic ID, so two devices writing concurrently merge by
set union and the total is the sum of the merged deltas.
"""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, computed_field, model_validator

from src.core.config import settings
from src.domain.achievement import AchievementInstance


class StreakState(BaseModel):
    """Consecutive-day activity streak."""

    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_activity_date: date | None = Field(default=None, description="Calendar day of the last counted activity")

    @model_validator(mode="after")
    def validate_longest(self) -> "StreakState":
        """Keep longest_streak >= current_streak."""
        if self.longest_streak < self.current_streak:
            self.longest_streak = self.current_streak
        return self


class LedgerSource(StrEnum):
    """What produced a ledger entry."""

    ACHIEVEMENT = "achievement"
    CHALLENGE = "challenge"
    REDEMPTION = "redemption"


class LedgerEntry(BaseModel):
    """A single point delta."""

    id: str = Field(..., description="Deterministic entry ID; duplicates are the same award")
    partner_id: str = Field(..., description="Partner credited or debited")
    amount: int = Field(..., description="Positive for awards, negative for spends")
    source: LedgerSource
    reason: str = Field(..., description="Human-readable reason")
    reference_id: str | None = Field(default=None, description="Achievement, challenge or reward ID")
    created_at: datetime


class PartnerStats(BaseModel):
    """Per-partner view derived from the ledger plus the partner's own streak."""

    points: int = 0
    achievements: list[str] = Field(default_factory=list)
    streak: StreakState = Field(default_factory=StreakState)


class GamificationState(BaseModel):
    """Aggregate root persisted and round-tripped as a whole."""

    streak: StreakState = Field(default_factory=StreakState)
    achievements: list[AchievementInstance] = Field(default_factory=list)
    ledger: list[LedgerEntry] = Field(default_factory=list)
    weekly_goal: int = Field(default_factory=lambda: settings.default_weekly_goal, ge=1)
    weekly_progress: int = Field(default=0, ge=0)
    partner_stats: dict[str, PartnerStats] = Field(default_factory=dict)
    challenge_completions: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Completed challenge instance IDs keyed by ISO day",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_points(self) -> int:
        return sum(entry.amount for entry in self.ledger)

    def has_achievement(self, definition_id: str) -> bool:
        return any(a.definition_id == definition_id for a in self.achievements)

    def has_entry(self, entry_id: str) -> bool:
        return any(e.id == entry_id for e in self.ledger)

    def points_for(self, partner_id: str) -> int:
        return sum(e.amount for e in self.ledger if e.partner_id == partner_id)
