"""Daily-activity streak tracking."""

import logging
from datetime import date, timedelta, tzinfo

from src.core.clock import local_day
from src.core.logging import span
from src.domain.gamification import GamificationState, PartnerStats, StreakState
from src.domain.partner import EventSnapshot
from src.models.service_models import StreakResult


logger = logging.getLogger(__name__)


def advance_streak(streak: StreakState, today: date) -> StreakState:
    """Count today as an activity day.

    Same day is a no-op, the day after the last activity continues the
    streak, anything else starts a new streak of 1.

    Args:
        streak: Current streak state
        today: Local calendar day of the activity

    Returns:
        New StreakState (the input is not modified)
    """
    last = streak.last_activity_date
    if last == today:
        return streak.model_copy()

    if last is not None and last == today - timedelta(days=1):
        current = streak.current_streak + 1
    else:
        current = 1

    return StreakState(
        current_streak=current,
        longest_streak=max(streak.longest_streak, current),
        last_activity_date=today,
    )


def had_activity(snapshot: EventSnapshot, partner_id: str, today: date, tz: tzinfo) -> bool:
    """True if the partner created or completed any action on today's local date."""
    for action in snapshot.actions:
        if action.created_by == partner_id and local_day(action.created_at, tz) == today:
            return True
        if (
            action.completed_by == partner_id
            and action.completed_at is not None
            and local_day(action.completed_at, tz) == today
        ):
            return True
    return False


def advance(state: GamificationState, partner_id: str, today: date) -> StreakResult:
    """Advance the acting partner's streak and the partnership streak.

    Args:
        state: Current gamification state
        partner_id: Partner who was active today
        today: Local calendar day

    Returns:
        StreakResult with the updated state copy
    """
    with span("streak_service.advance"):
        updated = state.model_copy(deep=True)
        stats = updated.partner_stats.setdefault(partner_id, PartnerStats())

        advanced = stats.streak.last_activity_date != today or updated.streak.last_activity_date != today
        stats.streak = advance_streak(stats.streak, today)
        updated.streak = advance_streak(updated.streak, today)

        if advanced:
            logger.info(
                "Streak advanced for %s: partner=%d partnership=%d",
                partner_id,
                stats.streak.current_streak,
                updated.streak.current_streak,
                extra={"partner_id": partner_id, "day": today.isoformat()},
            )

        return StreakResult(state=updated, advanced=advanced)
