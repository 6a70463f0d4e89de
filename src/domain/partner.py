"""Partner and event snapshot models."""

from pydantic import BaseModel, Field

from src.domain.action import Action, Issue


class Partner(BaseModel):
    """One member of the partnership."""

    id: str = Field(..., description="Unique partner ID")
    name: str = Field(..., description="Display name")


class EventSnapshot(BaseModel):
    """Current snapshot of actions and issues, seen from one partner's device."""

    current_partner: Partner = Field(..., description="Partner running the engine")
    other_partner: Partner = Field(..., description="The other member of the partnership")
    actions: list[Action] = Field(default_factory=list)
    issues: list[Issue] = Field(default_factory=list)
