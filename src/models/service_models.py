"""Pydantic models for service layer return types.

These models provide type safety at service boundaries. Every engine stage
returns the updated copy of what it touched plus the "new items" it
produced, so idempotence can be checked by looking at the new-items list.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

from src.core.errors import ErrorResponse
from src.domain.achievement import AchievementInstance
from src.domain.challenge import ChallengeInstance
from src.domain.gamification import GamificationState, LedgerEntry
from src.domain.notification import Notification, NotificationSettings


class EngineState(BaseModel):
    """Everything the engine persists, loaded and committed as one unit."""

    gamification: GamificationState = Field(default_factory=GamificationState)
    challenges: list[ChallengeInstance] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)
    settings: NotificationSettings = Field(default_factory=NotificationSettings)


class StreakResult(BaseModel):
    """Result of advancing streaks for one partner."""

    state: GamificationState
    advanced: bool = Field(..., description="False when today was already counted or there was no activity")


class AchievementStats(BaseModel):
    """Statistics unlock rules are evaluated against."""

    actions_completed: int = 0
    actions_created: int = 0
    partner_actions: int = 0
    issues_resolved: int = 0
    consecutive_days: int = 0
    health_score: float | None = None


class EvaluationResult(BaseModel):
    """Result of one achievement evaluation."""

    state: GamificationState
    newly_unlocked: list[AchievementInstance] = Field(default_factory=list)
    points_awarded: int = 0


class RollDayResult(BaseModel):
    """Result of a daily challenge rollover check."""

    instances: list[ChallengeInstance]
    created: list[ChallengeInstance] = Field(default_factory=list)


class ProgressResult(BaseModel):
    """Result of recording automatic challenge progress."""

    state: GamificationState
    instances: list[ChallengeInstance]
    completed: list[ChallengeInstance] = Field(default_factory=list)
    points_awarded: int = 0


class CompleteResult(BaseModel):
    """Result of a manual challenge completion."""

    accepted: bool
    state: GamificationState
    instances: list[ChallengeInstance]
    challenge: ChallengeInstance | None = None
    points_awarded: int = 0
    error: ErrorResponse | None = None


class GenerateResult(BaseModel):
    """Result of a notification generation pass."""

    notifications: list[Notification] = Field(..., description="Full stored list after generation")
    new_notifications: list[Notification] = Field(default_factory=list)


class RedemptionResult(BaseModel):
    """Result of a reward redemption attempt."""

    accepted: bool
    state: GamificationState
    entry: LedgerEntry | None = None
    error: ErrorResponse | None = None


class RecomputeStatus(StrEnum):
    """Outcome of an engine entry point."""

    OK = "ok"
    DECLINED = "declined"
    STATE_UNAVAILABLE = "state_unavailable"


class RecomputeResult(BaseModel):
    """Result of one recompute-and-persist cycle."""

    status: RecomputeStatus
    state: EngineState | None = None
    streak_advanced: bool = False
    newly_unlocked: list[AchievementInstance] = Field(default_factory=list)
    challenges_created: list[ChallengeInstance] = Field(default_factory=list)
    challenges_completed: list[ChallengeInstance] = Field(default_factory=list)
    new_notifications: list[Notification] = Field(default_factory=list)
    delivered: list[Notification] = Field(default_factory=list)
    points_awarded: int = 0
    redemption: LedgerEntry | None = Field(default=None, description="Ledger entry of an accepted redemption")
    error: ErrorResponse | None = None
