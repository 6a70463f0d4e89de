"""Achievement evaluation.

Candidates are filtered through "already unlocked?" before any rule runs,
so re-evaluating unchanged input never unlocks anything twice.
"""

import logging
from datetime import datetime
from typing import assert_never

from src.core.logging import log_with_partner_context, span
from src.domain.achievement import (
    AchievementDefinition,
    AchievementInstance,
    ActionsCompletedRule,
    ActionsCreatedRule,
    ConsecutiveDaysRule,
    HealthScoreRule,
    IssuesResolvedRule,
    PartnerActionsRule,
    UnlockRule,
)
from src.domain.action import Action, Issue
from src.domain.catalog import ACHIEVEMENTS
from src.domain.gamification import GamificationState, LedgerSource
from src.domain.partner import EventSnapshot
from src.models.service_models import AchievementStats, EvaluationResult
from src.services import points_ledger


logger = logging.getLogger(__name__)


def count_resolved_issues(actions: list[Action], issues: list[Issue]) -> int:
    """Count issues whose every linked action is completed.

    An action is linked if the issue lists it or the action names the issue.
    Issues with no resolvable linked action do not count, and IDs that point
    at nothing are skipped.
    """
    actions_by_id = {action.id: action for action in actions}
    resolved = 0
    for issue in issues:
        linked: dict[str, Action] = {}
        for action_id in issue.action_ids:
            action = actions_by_id.get(action_id)
            if action is None:
                logger.debug("Issue %s references unknown action %s", issue.id, action_id)
                continue
            linked[action.id] = action
        for action in actions:
            if action.issue_id == issue.id:
                linked[action.id] = action

        if linked and all(action.is_completed for action in linked.values()):
            resolved += 1
    return resolved


def compute_stats(
    state: GamificationState,
    snapshot: EventSnapshot,
    health_score: float | None = None,
) -> AchievementStats:
    """Derive rule statistics for the snapshot's current partner."""
    partner_id = snapshot.current_partner.id
    other_id = snapshot.other_partner.id
    actions = snapshot.actions

    return AchievementStats(
        actions_completed=sum(1 for a in actions if a.is_completed and a.completed_by == partner_id),
        actions_created=sum(1 for a in actions if a.created_by == partner_id),
        partner_actions=sum(
            1 for a in actions if a.is_completed and a.completed_by == partner_id and a.created_by == other_id
        ),
        issues_resolved=count_resolved_issues(actions, snapshot.issues),
        consecutive_days=state.streak.current_streak,
        health_score=health_score,
    )


def rule_met(rule: UnlockRule, stats: AchievementStats) -> bool:
    """Check one unlock rule against the statistics."""
    match rule:
        case ActionsCompletedRule():
            value: float | None = stats.actions_completed
        case ActionsCreatedRule():
            value = stats.actions_created
        case PartnerActionsRule():
            value = stats.partner_actions
        case IssuesResolvedRule():
            value = stats.issues_resolved
        case ConsecutiveDaysRule():
            value = stats.consecutive_days
        case HealthScoreRule():
            value = stats.health_score
        case _:
            assert_never(rule)

    return value is not None and value >= rule.threshold


def evaluate(
    state: GamificationState,
    snapshot: EventSnapshot,
    now: datetime,
    *,
    health_score: float | None = None,
    catalog: tuple[AchievementDefinition, ...] = ACHIEVEMENTS,
) -> EvaluationResult:
    """Unlock every not-yet-unlocked achievement whose rule is met.

    Args:
        state: Gamification state after the streak stage
        snapshot: Current actions and issues
        now: Evaluation timestamp
        health_score: Relationship health score, when one is available
        catalog: Achievement definitions to evaluate

    Returns:
        EvaluationResult with the updated state copy and the new instances
    """
    with span("achievement_service.evaluate"):
        partner_id = snapshot.current_partner.id
        updated = state.model_copy(deep=True)

        candidates = [d for d in catalog if not updated.has_achievement(d.id)]
        if not candidates:
            return EvaluationResult(state=updated)

        stats = compute_stats(updated, snapshot, health_score)
        newly_unlocked: list[AchievementInstance] = []
        points_awarded = 0

        for definition in candidates:
            if not rule_met(definition.rule, stats):
                continue

            instance = AchievementInstance(definition_id=definition.id, unlocked_at=now, unlocked_by=partner_id)
            updated.achievements.append(instance)
            newly_unlocked.append(instance)

            if points_ledger.award(
                updated,
                partner_id,
                definition.points,
                f"Achievement unlocked: {definition.title}",
                entry_id=points_ledger.achievement_entry_id(definition.id),
                source=LedgerSource.ACHIEVEMENT,
                now=now,
                reference_id=definition.id,
            ):
                points_awarded += definition.points

            log_with_partner_context(
                logger,
                "info",
                "Achievement unlocked",
                partner_id=partner_id,
                achievement_id=definition.id,
                points=definition.points,
            )

        return EvaluationResult(state=updated, newly_unlocked=newly_unlocked, points_awarded=points_awarded)
