"""Reward store domain models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class RewardCategory(StrEnum):
    """Reward grouping."""

    DATE = "date"
    PERSONAL = "personal"
    SHARED = "shared"
    SURPRISE = "surprise"
    EXPERIENCE = "experience"


class RewardRarity(StrEnum):
    """Reward rarity tier."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"


class Reward(BaseModel):
    """Redeemable reward."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    category: RewardCategory
    rarity: RewardRarity
    cost: int = Field(..., gt=0, description="Points spent on redemption")
    unlock_level: int | None = Field(default=None, description="Total points needed before it can be redeemed")
