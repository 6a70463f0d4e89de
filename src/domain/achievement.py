"""Achievement domain models.

Unlock rules are a closed set of variants discriminated by `kind`; the
evaluator matches on them exhaustively.
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class AchievementCategory(StrEnum):
    """Achievement grouping."""

    CONSISTENCY = "consistency"
    COMPLETION = "completion"
    COLLABORATION = "collaboration"
    GROWTH = "growth"
    MILESTONE = "milestone"


class Rarity(StrEnum):
    """Achievement rarity tier."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class _Rule(BaseModel):
    model_config = ConfigDict(frozen=True)

    threshold: float = Field(..., gt=0, description="Unlocks when the statistic is >= threshold")


class ActionsCompletedRule(_Rule):
    """Actions completed by the partner."""

    kind: Literal["actions_completed"] = "actions_completed"


class ActionsCreatedRule(_Rule):
    """Actions created by the partner."""

    kind: Literal["actions_created"] = "actions_created"


class PartnerActionsRule(_Rule):
    """Actions created by the other partner and completed by this partner."""

    kind: Literal["partner_actions"] = "partner_actions"


class IssuesResolvedRule(_Rule):
    """Issues whose every linked action is completed."""

    kind: Literal["issues_resolved"] = "issues_resolved"


class ConsecutiveDaysRule(_Rule):
    """Current partnership streak length."""

    kind: Literal["consecutive_days"] = "consecutive_days"


class HealthScoreRule(_Rule):
    """Externally supplied relationship health score."""

    kind: Literal["health_score"] = "health_score"


UnlockRule = Annotated[
    ActionsCompletedRule
    | ActionsCreatedRule
    | PartnerActionsRule
    | IssuesResolvedRule
    | ConsecutiveDaysRule
    | HealthScoreRule,
    Field(discriminator="kind"),
]


class AchievementDefinition(BaseModel):
    """Immutable catalog entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable achievement ID (e.g., 'action-hero')")
    title: str
    description: str
    category: AchievementCategory
    rarity: Rarity
    points: int = Field(..., ge=0, description="Points awarded on unlock")
    rule: UnlockRule


class AchievementInstance(BaseModel):
    """An unlocked achievement. At most one per definition per partnership."""

    definition_id: str = Field(..., description="AchievementDefinition ID")
    unlocked_at: datetime = Field(..., description="Unlock timestamp")
    unlocked_by: str = Field(..., description="Partner ID whose evaluation unlocked it")
