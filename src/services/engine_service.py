"""Engine entry points: recompute, manual challenge completion, redemption.

Each entry point loads the persisted state, stages its changes on a copy,
re-reads the store and merges the staged changes into whatever is there
now, and commits every key in one batch. The re-read, merge and commit run
under the store's commit lock so two writers in one process cannot
overwrite each other. High-priority alerts reach the delivery sink only
after that commit.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, tzinfo

from src.core.clock import Clock, SystemClock, local_day, week_start
from src.core.config import constants
from src.core.errors import StateUnavailableError, categorize, classify_error_with_response
from src.core.kv_store import KeyValueStore
from src.core.logging import log_with_context, span
from src.domain.notification import Notification, NotificationSettings
from src.domain.partner import EventSnapshot
from src.interface.delivery_sink import DeliverySink, LoggingSink, deliver
from src.models.service_models import EngineState, RecomputeResult, RecomputeStatus
from src.services import (
    achievement_service,
    challenge_service,
    notification_service,
    reward_service,
    state_service,
    streak_service,
)


logger = logging.getLogger(__name__)


def weekly_progress(snapshot: EventSnapshot, today: date, tz: tzinfo) -> int:
    """Actions completed by either partner since local Monday."""
    monday = week_start(today)
    return sum(
        1
        for action in snapshot.actions
        if action.is_completed and action.completed_at is not None and monday <= local_day(action.completed_at, tz)
    )


def run_stages(
    state: EngineState,
    snapshot: EventSnapshot,
    now: datetime,
    tz: tzinfo,
    *,
    health_score: float | None = None,
) -> RecomputeResult:
    """Derive the next state from a snapshot without touching the store.

    Stages run in a fixed order: streak, achievements, challenges,
    notifications. Achievements see the fresh streak.
    """
    partner_id = snapshot.current_partner.id
    today = local_day(now, tz)
    gamification = state.gamification

    streak_advanced = False
    if streak_service.had_activity(snapshot, partner_id, today, tz):
        streak = streak_service.advance(gamification, partner_id, today)
        gamification = streak.state
        streak_advanced = streak.advanced

    evaluation = achievement_service.evaluate(gamification, snapshot, now, health_score=health_score)
    gamification = evaluation.state

    rolled = challenge_service.roll_day(challenge_service.prune_expired(state.challenges, now), now, tz)
    progress = challenge_service.record_progress(gamification, rolled.instances, snapshot, now, tz)
    gamification = progress.state
    gamification.weekly_progress = weekly_progress(snapshot, today, tz)

    generated = notification_service.generate(snapshot, state.settings, now, state.notifications)

    return RecomputeResult(
        status=RecomputeStatus.OK,
        state=EngineState(
            gamification=gamification,
            challenges=progress.instances,
            notifications=generated.notifications,
            settings=state.settings,
        ),
        streak_advanced=streak_advanced,
        newly_unlocked=evaluation.newly_unlocked,
        challenges_created=rolled.created,
        challenges_completed=progress.completed,
        new_notifications=generated.new_notifications,
        points_awarded=evaluation.points_awarded + progress.points_awarded,
    )


async def _merge_and_commit(store: KeyValueStore, staged: EngineState, now: datetime) -> EngineState:
    async with store.commit_lock():
        latest = await state_service.load(store)
        merged = state_service.merge_states(latest, staged)
        merged.challenges = challenge_service.prune_expired(merged.challenges, now)
        merged.notifications = notification_service.prune(merged.notifications, now)
        await state_service.commit(store, merged)
    return merged


def _unavailable(operation: str, error: StateUnavailableError) -> RecomputeResult:
    log_with_context(
        logger,
        "error",
        "State store unavailable",
        operation=operation,
        category=categorize(error).value,
        key=error.key,
        reason=error.reason,
    )
    return RecomputeResult(status=RecomputeStatus.STATE_UNAVAILABLE, error=classify_error_with_response(error))


async def recompute(
    store: KeyValueStore,
    snapshot: EventSnapshot,
    clock: Clock | None = None,
    sink: DeliverySink | None = None,
    *,
    health_score: float | None = None,
) -> RecomputeResult:
    """Run one full recompute-and-persist cycle for the snapshot's current partner.

    Args:
        store: Persistent key-value store
        snapshot: Current actions and issues
        clock: Time source (defaults to the system clock)
        sink: Delivery sink for high-priority alerts (defaults to logging)
        health_score: Relationship health score, when one is available

    Returns:
        RecomputeResult; status STATE_UNAVAILABLE if the store failed, in
        which case nothing was committed or delivered
    """
    clock = clock or SystemClock()
    sink = sink or LoggingSink()
    partner_id = snapshot.current_partner.id

    with span("engine_service.recompute"):
        now = clock.now()
        try:
            persisted = await state_service.load(store)
            result = run_stages(persisted, snapshot, now, clock.tz, health_score=health_score)
            assert result.state is not None

            async with store.commit_lock():
                latest = await state_service.load(store)
                merged = state_service.merge_states(latest, result.state)
                merged.challenges = challenge_service.prune_expired(merged.challenges, now)
                live = notification_service.live_keys(snapshot, merged.settings, now)
                merged.notifications = notification_service.prune(merged.notifications, now, live=live)
                merged.gamification.weekly_progress = result.state.gamification.weekly_progress

                deliveries = notification_service.pending_delivery(
                    merged.notifications, partner_id, merged.settings, now, clock.tz
                )
                delivered_ids = {n.id for n in deliveries}
                merged.notifications = notification_service.mark_delivered(merged.notifications, delivered_ids, now)

                await state_service.commit(store, merged)
        except StateUnavailableError as e:
            return _unavailable("recompute", e)

        delivered = [n for n in merged.notifications if n.id in delivered_ids]
        await deliver(sink, delivered)

        logger.info(
            "Recompute complete for %s: %d unlocked, %d challenge(s) completed, %d notification(s)",
            partner_id,
            len(result.newly_unlocked),
            len(result.challenges_completed),
            len(result.new_notifications),
            extra={"partner_id": partner_id, "points_awarded": result.points_awarded},
        )
        return result.model_copy(update={"state": merged, "delivered": delivered})


async def complete_challenge(
    store: KeyValueStore,
    challenge_id: str,
    partner_id: str,
    clock: Clock | None = None,
) -> RecomputeResult:
    """Manually complete a challenge and persist the award."""
    clock = clock or SystemClock()
    with span("engine_service.complete_challenge"):
        now = clock.now()
        try:
            persisted = await state_service.load(store)
            outcome = challenge_service.complete(
                persisted.gamification, persisted.challenges, challenge_id, partner_id, now, clock.tz
            )
            if not outcome.accepted:
                return RecomputeResult(status=RecomputeStatus.DECLINED, state=persisted, error=outcome.error)

            staged = persisted.model_copy(update={"gamification": outcome.state, "challenges": outcome.instances})
            merged = await _merge_and_commit(store, staged, now)
        except StateUnavailableError as e:
            return _unavailable("complete_challenge", e)

        return RecomputeResult(
            status=RecomputeStatus.OK,
            state=merged,
            challenges_completed=[outcome.challenge] if outcome.challenge else [],
            points_awarded=outcome.points_awarded,
        )


async def redeem_reward(
    store: KeyValueStore,
    reward_id: str,
    partner_id: str,
    clock: Clock | None = None,
    *,
    redemption_id: str | None = None,
) -> RecomputeResult:
    """Redeem a reward and persist the spend."""
    clock = clock or SystemClock()
    with span("engine_service.redeem_reward"):
        now = clock.now()
        try:
            persisted = await state_service.load(store)
            outcome = reward_service.redeem(
                persisted.gamification, reward_id, partner_id, now, redemption_id=redemption_id
            )
            if not outcome.accepted:
                return RecomputeResult(status=RecomputeStatus.DECLINED, state=persisted, error=outcome.error)

            staged = persisted.model_copy(update={"gamification": outcome.state})
            merged = await _merge_and_commit(store, staged, now)
        except StateUnavailableError as e:
            return _unavailable("redeem_reward", e)

        return RecomputeResult(status=RecomputeStatus.OK, state=merged, redemption=outcome.entry)


async def _update_notifications(
    store: KeyValueStore,
    operation: str,
    change: Callable[[list[Notification]], list[Notification]],
    now: datetime,
) -> RecomputeResult:
    with span(f"engine_service.{operation}"):
        try:
            persisted = await state_service.load(store)
            staged = persisted.model_copy(update={"notifications": change(persisted.notifications)})
            merged = await _merge_and_commit(store, staged, now)
        except StateUnavailableError as e:
            return _unavailable(operation, e)
        return RecomputeResult(status=RecomputeStatus.OK, state=merged)


async def mark_notifications_read(
    store: KeyValueStore,
    partner_id: str,
    notification_id: str | None = None,
    clock: Clock | None = None,
) -> RecomputeResult:
    """Mark one notification, or all of partner_id's notifications, as read."""
    now = (clock or SystemClock()).now()

    def change(notifications: list[Notification]) -> list[Notification]:
        if notification_id is None:
            return notification_service.mark_all_read(notifications, partner_id)
        return notification_service.mark_read(notifications, notification_id)

    return await _update_notifications(store, "mark_notifications_read", change, now)


async def dismiss_notification(
    store: KeyValueStore,
    notification_id: str,
    clock: Clock | None = None,
) -> RecomputeResult:
    now = (clock or SystemClock()).now()
    return await _update_notifications(
        store,
        "dismiss_notification",
        lambda notifications: notification_service.dismiss(notifications, notification_id, now),
        now,
    )


async def clear_notifications(
    store: KeyValueStore,
    partner_id: str,
    clock: Clock | None = None,
) -> RecomputeResult:
    now = (clock or SystemClock()).now()
    return await _update_notifications(
        store,
        "clear_notifications",
        lambda notifications: notification_service.clear_all(notifications, partner_id, now),
        now,
    )


async def update_notification_settings(store: KeyValueStore, **changes: object) -> NotificationSettings:
    """Validate and store new notification settings.

    Raises:
        pydantic.ValidationError: If the changes are invalid
        StateUnavailableError: If the store cannot be reached
    """
    with span("engine_service.update_notification_settings"):
        async with store.commit_lock():
            current = (await state_service.load(store)).settings
            updated = notification_service.update_settings(current, **changes)
            await store.set(constants.KEY_NOTIFICATION_SETTINGS, updated.model_dump(mode="json"))
        logger.info("Notification settings updated", extra={"changes": sorted(changes)})
        return updated
