"""Points ledger: the only writer of point balances.

Awards and spends are appended as deltas with deterministic entry IDs. An
award whose ID is already present is the same award seen again (a re-run
or the other partner's device) and is absorbed silently.
"""

import logging
from datetime import datetime

from src.core.config import constants
from src.core.logging import log_with_partner_context
from src.domain.gamification import GamificationState, LedgerEntry, LedgerSource, PartnerStats


logger = logging.getLogger(__name__)


def achievement_entry_id(definition_id: str) -> str:
    return f"achievement:{definition_id}"


def challenge_entry_id(instance_id: str) -> str:
    return f"challenge:{instance_id}"


def redemption_entry_id(redemption_id: str) -> str:
    return f"redemption:{redemption_id}"


def award(
    state: GamificationState,
    partner_id: str,
    amount: int,
    reason: str,
    *,
    entry_id: str,
    source: LedgerSource,
    now: datetime,
    reference_id: str | None = None,
) -> bool:
    """Credit a partner with points, in place on the staged state.

    Args:
        state: Staged gamification state (mutated)
        partner_id: Partner credited
        amount: Points to add (must be >= 0)
        reason: Human-readable reason
        entry_id: Deterministic entry ID
        source: What produced the award
        now: Award timestamp
        reference_id: Achievement or challenge ID

    Returns:
        True if the entry was appended, False if it already existed
    """
    if amount < 0:
        msg = f"Award amount must be non-negative, got {amount}"
        raise ValueError(msg)

    if state.has_entry(entry_id):
        logger.debug("Ledger entry already present: %s", entry_id)
        return False

    state.ledger.append(
        LedgerEntry(
            id=entry_id,
            partner_id=partner_id,
            amount=amount,
            source=source,
            reason=reason,
            reference_id=reference_id,
            created_at=now,
        )
    )
    _refresh_partner(state, partner_id)

    log_with_partner_context(
        logger,
        "info",
        "Points awarded",
        partner_id=partner_id,
        amount=amount,
        entry_id=entry_id,
        total_points=state.total_points,
    )
    return True


def spend(
    state: GamificationState,
    partner_id: str,
    amount: int,
    reason: str,
    *,
    entry_id: str,
    now: datetime,
    reference_id: str | None = None,
) -> LedgerEntry | None:
    """Debit points for a redemption. Balance checks belong to the caller.

    Returns:
        The appended entry, or None if entry_id was already spent
    """
    if amount <= 0:
        msg = f"Spend amount must be positive, got {amount}"
        raise ValueError(msg)

    if state.has_entry(entry_id):
        return None

    entry = LedgerEntry(
        id=entry_id,
        partner_id=partner_id,
        amount=-amount,
        source=LedgerSource.REDEMPTION,
        reason=reason,
        reference_id=reference_id,
        created_at=now,
    )
    state.ledger.append(entry)
    _refresh_partner(state, partner_id)

    log_with_partner_context(logger, "info", "Points spent", partner_id=partner_id, amount=amount, entry_id=entry_id)
    return entry


def _refresh_partner(state: GamificationState, partner_id: str) -> None:
    stats = state.partner_stats.setdefault(partner_id, PartnerStats())
    stats.points = state.points_for(partner_id)
    stats.achievements = sorted(a.definition_id for a in state.achievements if a.unlocked_by == partner_id)


def refresh_partner_stats(state: GamificationState, partner_ids: list[str] | None = None) -> None:
    """Re-derive per-partner points and achievements from the ledger.

    Args:
        state: State to update in place
        partner_ids: Partners to refresh; defaults to everyone seen in the
            ledger, the achievements or the existing stats
    """
    if partner_ids is None:
        seen = set(state.partner_stats)
        seen.update(entry.partner_id for entry in state.ledger)
        seen.update(a.unlocked_by for a in state.achievements)
        partner_ids = sorted(seen)

    for partner_id in partner_ids:
        _refresh_partner(state, partner_id)


def history(
    state: GamificationState,
    *,
    partner_id: str | None = None,
    source: LedgerSource | None = None,
    limit: int = constants.MAX_LEDGER_HISTORY_DISPLAY,
) -> list[LedgerEntry]:
    """Ledger entries newest first, optionally filtered by partner and source."""
    entries = [
        entry
        for entry in state.ledger
        if (partner_id is None or entry.partner_id == partner_id) and (source is None or entry.source == source)
    ]
    entries.sort(key=lambda e: (e.created_at, e.id), reverse=True)
    return entries[:limit]
