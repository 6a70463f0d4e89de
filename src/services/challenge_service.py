"""Daily challenge rotation, progress tracking and completion.

The daily batch is drawn with a random generator seeded by the partnership
and the day, so both partners' devices draw the same templates and their
instances merge into one batch.
"""

import logging
import random
from datetime import date, datetime, tzinfo

from src.core.clock import local_day, next_local_midnight
from src.core.config import settings
from src.core.errors import ErrorCode, declined
from src.core.logging import log_with_partner_context, span
from src.domain.catalog import CHALLENGE_TEMPLATES, get_challenge_template
from src.domain.challenge import ChallengeDefinition, ChallengeInstance, ChallengeType
from src.domain.gamification import GamificationState, LedgerSource
from src.domain.partner import EventSnapshot
from src.models.service_models import CompleteResult, ProgressResult, RollDayResult
from src.services import points_ledger


logger = logging.getLogger(__name__)


def instance_id(day: date, template_id: str) -> str:
    return f"challenge-{day.isoformat()}-{template_id}"


def draw_templates(
    day: date,
    count: int | None = None,
    *,
    templates: tuple[ChallengeDefinition, ...] = CHALLENGE_TEMPLATES,
    partnership_id: str | None = None,
) -> list[ChallengeDefinition]:
    """Sample the day's templates without replacement.

    The same (partnership, day) always yields the same templates.
    """
    count = settings.daily_challenge_count if count is None else count
    seed = f"{partnership_id or settings.partnership_id}:{day.isoformat()}"
    rng = random.Random(seed)
    return rng.sample(list(templates), min(count, len(templates)))


def is_live(instance: ChallengeInstance, now: datetime) -> bool:
    return instance.expires_at > now


def prune_expired(instances: list[ChallengeInstance], now: datetime) -> list[ChallengeInstance]:
    """Drop instances whose expiry has passed."""
    kept = [instance for instance in instances if is_live(instance, now)]
    if len(kept) != len(instances):
        logger.info("Pruned %d expired challenge(s)", len(instances) - len(kept))
    return kept


def todays_batch(instances: list[ChallengeInstance], now: datetime, tz: tzinfo) -> list[ChallengeInstance]:
    """Instances expiring at the next local midnight."""
    expiry = next_local_midnight(now, tz)
    return [instance for instance in instances if instance.expires_at == expiry]


def roll_day(
    instances: list[ChallengeInstance],
    now: datetime,
    tz: tzinfo,
    *,
    count: int | None = None,
) -> RollDayResult:
    """Generate today's batch unless one is already live.

    Existing unexpired instances are kept as they are; pruning of expired
    instances is done separately by prune_expired.

    Args:
        instances: Stored challenge instances
        now: Current instant
        tz: Local timezone for the day boundary
        count: Batch size (defaults to settings.daily_challenge_count)

    Returns:
        RollDayResult with every instance and the newly created ones
    """
    with span("challenge_service.roll_day"):
        if todays_batch(instances, now, tz):
            return RollDayResult(instances=list(instances))

        today = local_day(now, tz)
        expiry = next_local_midnight(now, tz)
        existing_ids = {instance.id for instance in instances}

        created = [
            ChallengeInstance(
                id=instance_id(today, template.id),
                template_id=template.id,
                type=template.type,
                points=template.points,
                target=template.target,
                expires_at=expiry,
            )
            for template in draw_templates(today, count)
            if instance_id(today, template.id) not in existing_ids
        ]

        logger.info(
            "Generated %d challenge(s) for %s",
            len(created),
            today.isoformat(),
            extra={"template_ids": [c.template_id for c in created]},
        )
        return RollDayResult(instances=[*instances, *created], created=created)


def qualifying_count(challenge_type: ChallengeType, snapshot: EventSnapshot, today: date, tz: tzinfo) -> int:
    """Today's count of actions that move an auto-tracked challenge forward."""
    partner_id = snapshot.current_partner.id
    match challenge_type:
        case ChallengeType.ACTION_COMPLETION:
            return sum(
                1
                for a in snapshot.actions
                if a.completed_by == partner_id and a.completed_at is not None and local_day(a.completed_at, tz) == today
            )
        case ChallengeType.GOAL_SETTING:
            return sum(
                1 for a in snapshot.actions if a.created_by == partner_id and local_day(a.created_at, tz) == today
            )
        case _:
            return 0


def _mark_completed(
    state: GamificationState,
    instance: ChallengeInstance,
    partner_id: str,
    now: datetime,
    tz: tzinfo,
) -> int:
    """Stamp completion, log it for the day and award the points. Returns points awarded."""
    instance.completed_at = now
    instance.completed_by = partner_id
    instance.progress = max(instance.progress, instance.target)

    day_key = local_day(now, tz).isoformat()
    completed_today = state.challenge_completions.setdefault(day_key, [])
    if instance.id not in completed_today:
        completed_today.append(instance.id)

    template = get_challenge_template(instance.template_id)
    title = template.title if template else instance.template_id
    awarded = points_ledger.award(
        state,
        partner_id,
        instance.points,
        f"Challenge complete: {title}",
        entry_id=points_ledger.challenge_entry_id(instance.id),
        source=LedgerSource.CHALLENGE,
        now=now,
        reference_id=instance.id,
    )

    log_with_partner_context(
        logger,
        "info",
        "Challenge completed",
        partner_id=partner_id,
        challenge_id=instance.id,
        points=instance.points,
    )
    return instance.points if awarded else 0


def record_progress(
    state: GamificationState,
    instances: list[ChallengeInstance],
    snapshot: EventSnapshot,
    now: datetime,
    tz: tzinfo,
) -> ProgressResult:
    """Recompute progress of live auto-tracked challenges.

    Progress never goes down. A challenge that reaches its target is
    completed exactly once and its points awarded.
    """
    with span("challenge_service.record_progress"):
        partner_id = snapshot.current_partner.id
        today = local_day(now, tz)
        updated_state = state.model_copy(deep=True)
        updated = [instance.model_copy() for instance in instances]
        completed: list[ChallengeInstance] = []
        points_awarded = 0

        for instance in updated:
            if instance.is_completed or not instance.type.is_auto_tracked or not is_live(instance, now):
                continue

            count = qualifying_count(instance.type, snapshot, today, tz)
            instance.progress = max(instance.progress, min(count, instance.target))

            if instance.progress >= instance.target:
                points_awarded += _mark_completed(updated_state, instance, partner_id, now, tz)
                completed.append(instance)

        return ProgressResult(
            state=updated_state,
            instances=updated,
            completed=completed,
            points_awarded=points_awarded,
        )


def complete(
    state: GamificationState,
    instances: list[ChallengeInstance],
    challenge_id: str,
    partner_id: str,
    now: datetime,
    tz: tzinfo,
) -> CompleteResult:
    """Manually complete an appreciation, communication or quality-time challenge.

    Declined (not raised) when the challenge is unknown or expired, already
    completed, or tracked automatically.
    """
    with span("challenge_service.complete"):
        updated_state = state.model_copy(deep=True)
        updated = [instance.model_copy() for instance in instances]
        target = next((i for i in updated if i.id == challenge_id and is_live(i, now)), None)

        error_code: str | None = None
        if target is None:
            error_code = ErrorCode.ERR_CHALLENGE_NOT_FOUND
        elif target.is_completed:
            error_code = ErrorCode.ERR_CHALLENGE_ALREADY_COMPLETED
        elif target.type.is_auto_tracked:
            error_code = ErrorCode.ERR_CHALLENGE_NOT_MANUAL

        if error_code is not None:
            log_with_partner_context(
                logger,
                "warning",
                "Challenge completion declined",
                partner_id=partner_id,
                challenge_id=challenge_id,
                code=error_code,
            )
            return CompleteResult(
                accepted=False,
                state=updated_state,
                instances=updated,
                challenge=target,
                error=declined(error_code),
            )

        assert target is not None
        points_awarded = _mark_completed(updated_state, target, partner_id, now, tz)
        return CompleteResult(
            accepted=True,
            state=updated_state,
            instances=updated,
            challenge=target,
            points_awarded=points_awarded,
        )
