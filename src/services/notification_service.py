"""Notification generation and notification-center operations.

Generation scans the viewing partner's actions for overdue, due-soon and
partner-completed conditions. A notification is identified logically by
(type, action_id, partner_id); a key that is already stored is never
emitted again until the stored one has been pruned.
"""

import logging
import math
from collections.abc import Iterator
from datetime import datetime, timedelta, tzinfo

from src.core.config import Constants, constants
from src.core.logging import span
from src.domain.action import Action, Issue
from src.domain.notification import (
    DedupKey,
    Notification,
    NotificationPriority,
    NotificationSettings,
    NotificationType,
)
from src.domain.partner import EventSnapshot
from src.models.service_models import GenerateResult


logger = logging.getLogger(__name__)

_ID_PREFIX = {
    NotificationType.OVERDUE: "overdue",
    NotificationType.DUE_SOON: "deadline",
    NotificationType.PARTNER_COMPLETED: "completed",
}

_DAY_SECONDS = timedelta(days=1).total_seconds()


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def _issue_suffix(action: Action, issues_by_id: dict[str, Issue]) -> str:
    issue = issues_by_id.get(action.issue_id) if action.issue_id else None
    return f" ({issue.title})" if issue else ""


def days_until(due: datetime, now: datetime) -> int:
    """Whole days until due, rounded up (negative once overdue by more than a day)."""
    return math.ceil((due - now).total_seconds() / _DAY_SECONDS)


def _build(
    notification_type: NotificationType,
    action: Action,
    partner_id: str,
    title: str,
    message: str,
    priority: NotificationPriority,
    now: datetime,
) -> Notification:
    stamp = int(now.timestamp() * 1000)
    return Notification(
        id=f"{_ID_PREFIX[notification_type]}-{action.id}-{partner_id}-{stamp}",
        type=notification_type,
        action_id=action.id,
        partner_id=partner_id,
        title=title,
        message=message,
        priority=priority,
        created_at=now,
    )


def _candidates(
    snapshot: EventSnapshot,
    notification_settings: NotificationSettings,
    now: datetime,
) -> Iterator[Notification]:
    """Every notification whose trigger holds for the snapshot's current partner."""
    partner_id = snapshot.current_partner.id
    other = snapshot.other_partner
    issues_by_id = {issue.id: issue for issue in snapshot.issues}
    partner_window = timedelta(hours=Constants.PARTNER_COMPLETION_WINDOW_HOURS)

    for action in snapshot.actions:
        suffix = _issue_suffix(action, issues_by_id)

        if not action.is_completed and action.due_date is not None and action.is_assigned_to(partner_id):
            if action.due_date < now:
                if notification_settings.overdue_reminders:
                    days_ago = max(1, (now - action.due_date).days)
                    yield _build(
                        NotificationType.OVERDUE,
                        action,
                        partner_id,
                        "Overdue Action",
                        f'"{action.title}" was due {days_ago} day{_plural(days_ago)} ago{suffix}',
                        NotificationPriority.HIGH,
                        now,
                    )
            elif notification_settings.deadline_warnings:
                days_left = days_until(action.due_date, now)
                if 0 < days_left <= notification_settings.warning_days:
                    yield _build(
                        NotificationType.DUE_SOON,
                        action,
                        partner_id,
                        "Upcoming Deadline",
                        f'"{action.title}" is due in {days_left} day{_plural(days_left)}{suffix}',
                        NotificationPriority.HIGH if days_left == 1 else NotificationPriority.MEDIUM,
                        now,
                    )

        if (
            notification_settings.partner_updates
            and action.is_completed
            and action.completed_by == other.id
            and action.completed_at is not None
            and timedelta(0) <= now - action.completed_at <= partner_window
        ):
            yield _build(
                NotificationType.PARTNER_COMPLETED,
                action,
                partner_id,
                "Partner Completed Action",
                f'{other.name} completed "{action.title}"{suffix}',
                NotificationPriority.LOW,
                now,
            )


def generate(
    snapshot: EventSnapshot,
    notification_settings: NotificationSettings,
    now: datetime,
    existing: list[Notification],
) -> GenerateResult:
    """Emit new notifications for the snapshot's current partner.

    Args:
        snapshot: Current actions and issues
        notification_settings: Suppression rules
        now: Evaluation instant
        existing: Stored notifications

    Returns:
        GenerateResult with the stored list plus anything new appended
    """
    with span("notification_service.generate"):
        if not notification_settings.enabled:
            return GenerateResult(notifications=list(existing))

        partner_id = snapshot.current_partner.id
        seen: set[DedupKey] = {n.dedup_key for n in existing}
        new: list[Notification] = []

        for notification in _candidates(snapshot, notification_settings, now):
            if notification.dedup_key in seen:
                continue
            seen.add(notification.dedup_key)
            new.append(notification)

        if new:
            logger.info(
                "Generated %d notification(s) for %s",
                len(new),
                partner_id,
                extra={"partner_id": partner_id, "types": [n.type.value for n in new]},
            )

        return GenerateResult(notifications=[*existing, *new], new_notifications=new)


def live_keys(
    snapshot: EventSnapshot,
    notification_settings: NotificationSettings,
    now: datetime,
) -> set[DedupKey]:
    """Dedup keys generate would emit right now, for both partners."""
    if not notification_settings.enabled:
        return set()
    mirrored = snapshot.model_copy(
        update={"current_partner": snapshot.other_partner, "other_partner": snapshot.current_partner}
    )
    return {
        n.dedup_key
        for view in (snapshot, mirrored)
        for n in _candidates(view, notification_settings, now)
    }



def pending_delivery(
    notifications: list[Notification],
    partner_id: str,
    notification_settings: NotificationSettings,
    now: datetime,
    tz: tzinfo,
) -> list[Notification]:
    """High-priority notifications for partner_id not yet handed to the delivery sink.

    Empty during quiet hours, so delivery waits for the first run after them.
    """
    if notification_settings.in_quiet_hours(now.astimezone(tz).hour):
        logger.debug("Quiet hours active, deferring delivery for %s", partner_id)
        return []

    return [
        n
        for n in notifications
        if n.partner_id == partner_id
        and n.priority == NotificationPriority.HIGH
        and n.is_live
        and not n.read
        and n.delivered_at is None
    ]


def mark_delivered(notifications: list[Notification], ids: set[str], now: datetime) -> list[Notification]:
    return [n.model_copy(update={"delivered_at": now}) if n.id in ids else n for n in notifications]


# Notification center operations


def visible_for(notifications: list[Notification], partner_id: str) -> list[Notification]:
    """The partner's live notifications, newest first."""
    visible = [n for n in notifications if n.partner_id == partner_id and n.is_live]
    visible.sort(key=lambda n: n.created_at, reverse=True)
    return visible


def unread_count(notifications: list[Notification], partner_id: str) -> int:
    return sum(1 for n in notifications if n.partner_id == partner_id and n.is_live and not n.read)


def unread_badge(notifications: list[Notification], partner_id: str) -> str:
    """Badge text: empty when nothing is unread, "9+" above the display limit."""
    count = unread_count(notifications, partner_id)
    if count == 0:
        return ""
    if count > constants.MAX_UNREAD_DISPLAY:
        return f"{constants.MAX_UNREAD_DISPLAY}+"
    return str(count)


def mark_read(notifications: list[Notification], notification_id: str) -> list[Notification]:
    return [n.model_copy(update={"read": True}) if n.id == notification_id else n for n in notifications]


def mark_all_read(notifications: list[Notification], partner_id: str) -> list[Notification]:
    return [n.model_copy(update={"read": True}) if n.partner_id == partner_id else n for n in notifications]


def dismiss(notifications: list[Notification], notification_id: str, now: datetime) -> list[Notification]:
    """Soft-delete one notification; it is pruned later."""
    return [
        n.model_copy(update={"dismissed": True, "dismissed_at": now})
        if n.id == notification_id and not n.dismissed
        else n
        for n in notifications
    ]


def clear_all(notifications: list[Notification], partner_id: str, now: datetime) -> list[Notification]:
    """Dismiss every live notification of one partner."""
    return [
        n.model_copy(update={"dismissed": True, "dismissed_at": now})
        if n.partner_id == partner_id and not n.dismissed
        else n
        for n in notifications
    ]


def prune(
    notifications: list[Notification],
    now: datetime,
    *,
    live: set[DedupKey] | None = None,
) -> list[Notification]:
    """Drop long-dismissed notifications and, given the live keys, cap the stored list.

    Only notifications whose key is not in live can be evicted by the cap;
    evicting a live one would let generate emit it again. Over the cap,
    dismissed and read notifications go first, oldest first within each
    group. Without live the cap is not applied.
    """
    cutoff = now - timedelta(hours=Constants.NOTIFICATION_CLEANUP_AFTER_HOURS)
    kept = [n for n in notifications if not (n.dismissed and (n.dismissed_at is None or n.dismissed_at <= cutoff))]

    overflow = len(kept) - Constants.MAX_NOTIFICATIONS_STORED
    if live is not None and overflow > 0:
        evictable = [n for n in kept if n.dedup_key not in live]
        drop_order = sorted(evictable, key=lambda n: (not n.dismissed, not n.read, n.created_at, n.id))
        dropped = {n.id for n in drop_order[:overflow]}
        kept = [n for n in kept if n.id not in dropped]

    if len(kept) != len(notifications):
        logger.info("Pruned %d notification(s)", len(notifications) - len(kept))
    return kept


def update_settings(current: NotificationSettings, **changes: object) -> NotificationSettings:
    """Apply changes to notification settings, validating the result.

    Raises:
        pydantic.ValidationError: If the resulting settings are invalid
    """
    return NotificationSettings.model_validate({**current.model_dump(), **changes})
