"""Loading, merging and committing the engine's persisted state.

Missing keys fall back to defaults. Malformed values are logged and also
replaced by defaults; only an unreachable store is an error.

Derived state is merged with joins that are commutative, associative and
idempotent, so two devices that commit concurrently converge on the same
state no matter the order their writes are merged in.
"""

import logging
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from src.core.config import constants
from src.core.kv_store import KeyValueStore
from src.core.logging import span
from src.domain.achievement import AchievementInstance
from src.domain.challenge import ChallengeInstance
from src.domain.gamification import GamificationState, LedgerEntry, PartnerStats, StreakState
from src.domain.notification import DedupKey, Notification, NotificationSettings
from src.models.service_models import EngineState
from src.services import points_ledger


logger = logging.getLogger(__name__)

T = TypeVar("T")

_gamification_adapter = TypeAdapter(GamificationState)
_settings_adapter = TypeAdapter(NotificationSettings)
_challenges_adapter = TypeAdapter(list[ChallengeInstance])
_notifications_adapter = TypeAdapter(list[Notification])


async def _load_key(store: KeyValueStore, key: str, adapter: TypeAdapter[T], default: T) -> T:
    try:
        value, exists = await store.get(key)
    except ValueError as e:
        logger.warning("Malformed value for %s, using default", key, extra={"key": key, "error": str(e)})
        return default

    if not exists or value is None:
        logger.debug("No stored value for %s, using default", key)
        return default

    try:
        return adapter.validate_python(value)
    except ValidationError as e:
        logger.warning(
            "Invalid stored value for %s, using default",
            key,
            extra={"key": key, "error_count": e.error_count()},
        )
        return default


async def load(store: KeyValueStore) -> EngineState:
    """Load all persisted engine state.

    Raises:
        StateUnavailableError: If the store cannot be reached
    """
    with span("state_service.load"):
        return EngineState(
            gamification=await _load_key(
                store, constants.KEY_GAMIFICATION_STATE, _gamification_adapter, GamificationState()
            ),
            challenges=await _load_key(store, constants.KEY_DAILY_CHALLENGES, _challenges_adapter, []),
            notifications=await _load_key(store, constants.KEY_NOTIFICATIONS, _notifications_adapter, []),
            settings=await _load_key(
                store, constants.KEY_NOTIFICATION_SETTINGS, _settings_adapter, NotificationSettings()
            ),
        )


def _dump(model: BaseModel) -> Any:
    return model.model_dump(mode="json")


async def commit(store: KeyValueStore, state: EngineState) -> None:
    """Write every key in one atomic batch.

    Raises:
        StateUnavailableError: If the store cannot be reached
    """
    with span("state_service.commit"):
        await store.set_many(
            {
                constants.KEY_GAMIFICATION_STATE: _dump(state.gamification),
                constants.KEY_DAILY_CHALLENGES: _challenges_adapter.dump_python(state.challenges, mode="json"),
                constants.KEY_NOTIFICATIONS: _notifications_adapter.dump_python(state.notifications, mode="json"),
                constants.KEY_NOTIFICATION_SETTINGS: _dump(state.settings),
            }
        )


# Merge


def merge_streaks(a: StreakState, b: StreakState) -> StreakState:
    """Later activity day wins, then the longer current streak; longest is the max."""

    def rank(s: StreakState) -> tuple[bool, str, int]:
        day = s.last_activity_date.isoformat() if s.last_activity_date else ""
        return (s.last_activity_date is not None, day, s.current_streak)

    winner = a if rank(a) >= rank(b) else b
    return StreakState(
        current_streak=winner.current_streak,
        longest_streak=max(a.longest_streak, b.longest_streak, winner.current_streak),
        last_activity_date=winner.last_activity_date,
    )


def _merge_ledger(a: list[LedgerEntry], b: list[LedgerEntry]) -> list[LedgerEntry]:
    merged: dict[str, LedgerEntry] = {}
    for entry in [*a, *b]:
        current = merged.get(entry.id)
        if current is None or (entry.created_at, entry.partner_id) < (current.created_at, current.partner_id):
            merged[entry.id] = entry
    return sorted(merged.values(), key=lambda e: (e.created_at, e.id))


def _merge_achievements(a: list[AchievementInstance], b: list[AchievementInstance]) -> list[AchievementInstance]:
    merged: dict[str, AchievementInstance] = {}
    for instance in [*a, *b]:
        current = merged.get(instance.definition_id)
        if current is None or (instance.unlocked_at, instance.unlocked_by) < (current.unlocked_at, current.unlocked_by):
            merged[instance.definition_id] = instance
    return sorted(merged.values(), key=lambda i: (i.unlocked_at, i.definition_id))


def merge_gamification(a: GamificationState, b: GamificationState) -> GamificationState:
    """Join two gamification states."""
    partner_stats: dict[str, PartnerStats] = {}
    for partner_id in sorted(set(a.partner_stats) | set(b.partner_stats)):
        streak_a = a.partner_stats[partner_id].streak if partner_id in a.partner_stats else StreakState()
        streak_b = b.partner_stats[partner_id].streak if partner_id in b.partner_stats else StreakState()
        partner_stats[partner_id] = PartnerStats(streak=merge_streaks(streak_a, streak_b))

    completions: dict[str, list[str]] = {}
    for day in sorted(set(a.challenge_completions) | set(b.challenge_completions)):
        completions[day] = sorted(set(a.challenge_completions.get(day, [])) | set(b.challenge_completions.get(day, [])))

    merged = GamificationState(
        streak=merge_streaks(a.streak, b.streak),
        achievements=_merge_achievements(a.achievements, b.achievements),
        ledger=_merge_ledger(a.ledger, b.ledger),
        weekly_goal=max(a.weekly_goal, b.weekly_goal),
        weekly_progress=max(a.weekly_progress, b.weekly_progress),
        partner_stats=partner_stats,
        challenge_completions=completions,
    )
    points_ledger.refresh_partner_stats(merged)
    return merged


def _merge_challenge(a: ChallengeInstance, b: ChallengeInstance) -> ChallengeInstance:
    if a.is_completed != b.is_completed:
        return a if a.is_completed else b
    if a.completed_at is not None and b.completed_at is not None:
        return a if (a.completed_at, a.completed_by or "") <= (b.completed_at, b.completed_by or "") else b
    return a if a.progress >= b.progress else b


def merge_challenges(a: list[ChallengeInstance], b: list[ChallengeInstance]) -> list[ChallengeInstance]:
    """Union by instance ID; completed beats open, then higher progress."""
    merged: dict[str, ChallengeInstance] = {}
    for instance in [*a, *b]:
        current = merged.get(instance.id)
        merged[instance.id] = instance if current is None else _merge_challenge(current, instance)
    return sorted(merged.values(), key=lambda i: (i.expires_at, i.id))


def _earliest(x: datetime | None, y: datetime | None) -> datetime | None:
    if x is None:
        return y
    if y is None:
        return x
    return min(x, y)


def merge_notifications(a: list[Notification], b: list[Notification]) -> list[Notification]:
    """Union by ID with read/dismissed OR-ed; at most one live notification per dedup key."""
    merged: dict[str, Notification] = {}
    for notification in [*a, *b]:
        current = merged.get(notification.id)
        if current is None:
            merged[notification.id] = notification
            continue
        merged[notification.id] = current.model_copy(
            update={
                "read": current.read or notification.read,
                "dismissed": current.dismissed or notification.dismissed,
                "dismissed_at": _earliest(current.dismissed_at, notification.dismissed_at),
                "delivered_at": _earliest(current.delivered_at, notification.delivered_at),
            }
        )

    # Two devices of the same partner may each have emitted the same key
    result: list[Notification] = []
    live_keys: set[DedupKey] = set()
    for notification in sorted(merged.values(), key=lambda n: (n.created_at, n.id)):
        if notification.is_live:
            if notification.dedup_key in live_keys:
                continue
            live_keys.add(notification.dedup_key)
        result.append(notification)
    return result


def merge_settings(a: NotificationSettings, b: NotificationSettings) -> NotificationSettings:
    """Settings are user edits, not derived state; the persisted side wins."""
    return a


def merge_states(persisted: EngineState, staged: EngineState) -> EngineState:
    """Merge staged changes into the most recently persisted state."""
    with span("state_service.merge_states"):
        return EngineState(
            gamification=merge_gamification(persisted.gamification, staged.gamification),
            challenges=merge_challenges(persisted.challenges, staged.challenges),
            notifications=merge_notifications(persisted.notifications, staged.notifications),
            settings=merge_settings(persisted.settings, staged.settings),
        )
