"""Daily challenge domain models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ChallengeType(StrEnum):
    """Challenge type; drives automatic vs. manual progress tracking."""

    ACTION_COMPLETION = "action_completion"
    GOAL_SETTING = "goal_setting"
    APPRECIATION = "appreciation"
    COMMUNICATION = "communication"
    QUALITY_TIME = "quality_time"

    @property
    def is_auto_tracked(self) -> bool:
        return self in (ChallengeType.ACTION_COMPLETION, ChallengeType.GOAL_SETTING)


class Difficulty(StrEnum):
    """Challenge difficulty."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ChallengeDefinition(BaseModel):
    """Challenge template."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable template ID")
    title: str
    description: str
    type: ChallengeType
    difficulty: Difficulty
    points: int = Field(..., ge=0)
    target: int = Field(..., ge=1, description="Progress needed to complete")


class ChallengeInstance(BaseModel):
    """A live, dated challenge."""

    id: str = Field(..., description="Instance ID: challenge-<day>-<template id>")
    template_id: str = Field(..., description="ChallengeDefinition ID")
    type: ChallengeType
    points: int = Field(..., ge=0)
    target: int = Field(..., ge=1)
    progress: int = Field(default=0, ge=0)
    expires_at: datetime = Field(..., description="Next local midnight after the challenge day")
    completed_at: datetime | None = None
    completed_by: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None
