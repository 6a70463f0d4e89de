"""Reward store redemptions paid from the points ledger."""

import logging
import uuid
from datetime import datetime

from src.core.errors import ErrorCode, declined
from src.core.logging import log_with_partner_context, span
from src.domain.catalog import REWARDS, get_reward
from src.domain.gamification import GamificationState, LedgerEntry, LedgerSource
from src.domain.reward import Reward
from src.models.service_models import RedemptionResult
from src.services import points_ledger


logger = logging.getLogger(__name__)


def is_unlocked(reward: Reward, total_points: int) -> bool:
    return reward.unlock_level is None or total_points >= reward.unlock_level


def available_rewards(state: GamificationState) -> list[Reward]:
    """Rewards whose unlock level the partnership has reached."""
    return [reward for reward in REWARDS if is_unlocked(reward, state.total_points)]


def redeem(
    state: GamificationState,
    reward_id: str,
    partner_id: str,
    now: datetime,
    *,
    redemption_id: str | None = None,
) -> RedemptionResult:
    """Spend points on a reward.

    Unknown rewards, locked rewards and insufficient balances are declined
    with an error code rather than raised.

    Args:
        state: Current gamification state
        reward_id: Reward catalog ID
        partner_id: Partner redeeming
        now: Redemption timestamp
        redemption_id: Optional caller-supplied ID; retries with the same ID
            redeem only once

    Returns:
        RedemptionResult with the updated state copy
    """
    with span("reward_service.redeem"):
        updated = state.model_copy(deep=True)
        entry_id = points_ledger.redemption_entry_id(redemption_id or uuid.uuid4().hex)
        existing = next((e for e in updated.ledger if e.id == entry_id), None)
        if existing is not None:
            logger.debug("Redemption %s already recorded", entry_id)
            return RedemptionResult(accepted=True, state=updated, entry=existing)

        reward = get_reward(reward_id)

        error_code: str | None = None
        if reward is None:
            error_code = ErrorCode.ERR_UNKNOWN_REWARD
        elif not is_unlocked(reward, updated.total_points):
            error_code = ErrorCode.ERR_REWARD_LOCKED
        elif updated.total_points < reward.cost:
            error_code = ErrorCode.ERR_INSUFFICIENT_POINTS

        if error_code is not None:
            log_with_partner_context(
                logger,
                "warning",
                "Redemption declined",
                partner_id=partner_id,
                reward_id=reward_id,
                code=error_code,
                total_points=updated.total_points,
            )
            return RedemptionResult(accepted=False, state=updated, error=declined(error_code))

        assert reward is not None
        entry = points_ledger.spend(
            updated,
            partner_id,
            reward.cost,
            f"Redeemed: {reward.title}",
            entry_id=entry_id,
            now=now,
            reference_id=reward.id,
        )
        return RedemptionResult(accepted=True, state=updated, entry=entry)


def redemption_history(state: GamificationState, partner_id: str | None = None) -> list[LedgerEntry]:
    """Past redemptions, newest first."""
    return points_ledger.history(state, partner_id=partner_id, source=LedgerSource.REDEMPTION)
