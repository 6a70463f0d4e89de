"""Unit tests for notification_service module."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from src.domain.notification import (
    Notification,
    NotificationPriority,
    NotificationSettings,
    NotificationType,
)
from src.services import notification_service


NOW = datetime(2024, 1, 3, 0, 0, tzinfo=UTC)


def _notification(**overrides) -> Notification:
    data = {
        "id": "n-1",
        "type": NotificationType.OVERDUE,
        "action_id": "action-1",
        "partner_id": "alice",
        "title": "Overdue Action",
        "message": "...",
        "priority": NotificationPriority.HIGH,
        "created_at": NOW,
    }
    data.update(overrides)
    return Notification(**data)


@pytest.mark.unit
class TestGenerateOverdue:
    """Tests for overdue detection."""

    def test_overdue_scenario(self, make_action, make_snapshot):
        action = make_action(due_date=datetime(2024, 1, 1, tzinfo=UTC))

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(), NOW, [])

        assert len(result.new_notifications) == 1
        notification = result.new_notifications[0]
        assert notification.type == NotificationType.OVERDUE
        assert notification.priority == NotificationPriority.HIGH
        assert notification.action_id == action.id
        assert notification.partner_id == "alice"
        assert notification.message == f'"{action.title}" was due 2 days ago'

    def test_second_generate_emits_nothing(self, make_action, make_snapshot):
        snapshot = make_snapshot([make_action(due_date=datetime(2024, 1, 1, tzinfo=UTC))])
        first = notification_service.generate(snapshot, NotificationSettings(), NOW, [])

        second = notification_service.generate(snapshot, NotificationSettings(), NOW, first.notifications)

        assert second.new_notifications == []
        assert second.notifications == first.notifications

    def test_overdue_message_includes_issue(self, make_action, make_issue, make_snapshot):
        issue = make_issue(title="Money talks")
        action = make_action(due_date=NOW - timedelta(days=1), issue_id=issue.id)

        result = notification_service.generate(make_snapshot([action], [issue]), NotificationSettings(), NOW, [])

        assert result.new_notifications[0].message.endswith("was due 1 day ago (Money talks)")

    def test_completed_action_not_overdue(self, make_completed, make_snapshot):
        action = make_completed(due_date=datetime(2024, 1, 1, tzinfo=UTC), completed_by="alice")

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(), NOW, [])

        assert result.new_notifications == []

    def test_action_for_other_partner_ignored(self, make_action, make_snapshot):
        action = make_action(assigned_to="bob", due_date=datetime(2024, 1, 1, tzinfo=UTC))

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(), NOW, [])

        assert result.new_notifications == []

    def test_action_for_both_included(self, make_action, make_snapshot):
        action = make_action(assigned_to="both", due_date=datetime(2024, 1, 1, tzinfo=UTC))

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(), NOW, [])

        assert len(result.new_notifications) == 1

    def test_category_disabled_generates_nothing(self, make_action, make_snapshot):
        action = make_action(due_date=datetime(2024, 1, 1, tzinfo=UTC))

        result = notification_service.generate(
            make_snapshot([action]), NotificationSettings(overdue_reminders=False), NOW, []
        )

        assert result.new_notifications == []

    def test_globally_disabled_generates_nothing(self, make_action, make_completed, make_snapshot):
        actions = [
            make_action(due_date=datetime(2024, 1, 1, tzinfo=UTC)),
            make_action(due_date=NOW + timedelta(hours=5)),
            make_completed(completed_by="bob", completed_at=NOW - timedelta(hours=1)),
        ]

        result = notification_service.generate(make_snapshot(actions), NotificationSettings(enabled=False), NOW, [])

        assert result.new_notifications == []

    def test_dismissed_key_still_suppresses_until_pruned(self, make_action, make_snapshot):
        action = make_action(id="action-1", due_date=datetime(2024, 1, 1, tzinfo=UTC))
        existing = [_notification(dismissed=True, dismissed_at=NOW)]

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(), NOW, existing)

        assert result.new_notifications == []


@pytest.mark.unit
class TestGenerateDueSoon:
    """Tests for due-soon detection."""

    def test_one_day_left_is_high(self, make_action, make_snapshot):
        action = make_action(due_date=NOW + timedelta(hours=20))

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(), NOW, [])

        notification = result.new_notifications[0]
        assert notification.type == NotificationType.DUE_SOON
        assert notification.priority == NotificationPriority.HIGH
        assert notification.message == f'"{action.title}" is due in 1 day'

    def test_several_days_left_is_medium(self, make_action, make_snapshot):
        action = make_action(due_date=NOW + timedelta(days=2, hours=3))

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(), NOW, [])

        notification = result.new_notifications[0]
        assert notification.priority == NotificationPriority.MEDIUM
        assert "is due in 3 days" in notification.message

    def test_outside_warning_window_ignored(self, make_action, make_snapshot):
        action = make_action(due_date=NOW + timedelta(days=5))

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(warning_days=3), NOW, [])

        assert result.new_notifications == []

    def test_wider_warning_window(self, make_action, make_snapshot):
        action = make_action(due_date=NOW + timedelta(days=5))

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(warning_days=7), NOW, [])

        assert len(result.new_notifications) == 1

    def test_deadline_warnings_disabled(self, make_action, make_snapshot):
        action = make_action(due_date=NOW + timedelta(hours=20))

        result = notification_service.generate(
            make_snapshot([action]), NotificationSettings(deadline_warnings=False), NOW, []
        )

        assert result.new_notifications == []


@pytest.mark.unit
class TestGeneratePartnerCompleted:
    """Tests for partner-completed detection."""

    def test_recent_partner_completion_is_low(self, make_completed, make_snapshot):
        action = make_completed(completed_by="bob", completed_at=NOW - timedelta(hours=3))

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(), NOW, [])

        notification = result.new_notifications[0]
        assert notification.type == NotificationType.PARTNER_COMPLETED
        assert notification.priority == NotificationPriority.LOW
        assert notification.message == f'Bob completed "{action.title}"'

    def test_old_partner_completion_ignored(self, make_completed, make_snapshot):
        action = make_completed(completed_by="bob", completed_at=NOW - timedelta(hours=25))

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(), NOW, [])

        assert result.new_notifications == []

    def test_own_completion_ignored(self, make_completed, make_snapshot):
        action = make_completed(completed_by="alice", completed_at=NOW - timedelta(hours=1))

        result = notification_service.generate(make_snapshot([action]), NotificationSettings(), NOW, [])

        assert result.new_notifications == []

    def test_partner_updates_disabled(self, make_completed, make_snapshot):
        action = make_completed(completed_by="bob", completed_at=NOW - timedelta(hours=1))

        result = notification_service.generate(
            make_snapshot([action]), NotificationSettings(partner_updates=False), NOW, []
        )

        assert result.new_notifications == []


@pytest.mark.unit
class TestDedup:
    """No two live notifications share a dedup key."""

    def test_many_runs_keep_keys_unique(self, make_action, make_completed, make_snapshot):
        actions = [
            make_action(due_date=datetime(2024, 1, 1, tzinfo=UTC)),
            make_action(due_date=NOW + timedelta(hours=10)),
            make_completed(completed_by="bob", completed_at=NOW - timedelta(hours=2)),
        ]
        snapshot = make_snapshot(actions)
        notifications: list[Notification] = []
        for step in range(5):
            now = NOW + timedelta(minutes=step)
            notifications = notification_service.generate(snapshot, NotificationSettings(), now, notifications).notifications

        keys = [n.dedup_key for n in notifications if n.is_live]
        assert len(keys) == len(set(keys)) == 3


@pytest.mark.unit
class TestLiveKeys:
    """Tests for live_keys."""

    def test_covers_both_partners(self, make_action, make_completed, make_snapshot):
        overdue_for_bob = make_action(assigned_to="bob", due_date=datetime(2024, 1, 1, tzinfo=UTC))
        done_by_alice = make_completed(completed_by="alice", completed_at=NOW - timedelta(hours=1))

        keys = notification_service.live_keys(
            make_snapshot([overdue_for_bob, done_by_alice]), NotificationSettings(), NOW
        )

        assert keys == {
            (NotificationType.OVERDUE, overdue_for_bob.id, "bob"),
            (NotificationType.PARTNER_COMPLETED, done_by_alice.id, "bob"),
        }

    def test_matches_what_generate_emits(self, make_action, make_snapshot):
        snapshot = make_snapshot([make_action(due_date=datetime(2024, 1, 1, tzinfo=UTC))])

        generated = notification_service.generate(snapshot, NotificationSettings(), NOW, [])

        assert {n.dedup_key for n in generated.new_notifications} <= notification_service.live_keys(
            snapshot, NotificationSettings(), NOW
        )

    def test_disabled_settings_have_no_live_keys(self, make_action, make_snapshot):
        snapshot = make_snapshot([make_action(due_date=datetime(2024, 1, 1, tzinfo=UTC))])

        assert notification_service.live_keys(snapshot, NotificationSettings(enabled=False), NOW) == set()


@pytest.mark.unit
class TestNotificationCenter:
    """Tests for read/dismiss/badge/prune operations."""

    def test_unread_badge(self):
        notifications = [_notification(id=f"n-{i}", action_id=f"a-{i}") for i in range(12)]

        assert notification_service.unread_count(notifications, "alice") == 12
        assert notification_service.unread_badge(notifications, "alice") == "9+"
        assert notification_service.unread_badge(notifications[:3], "alice") == "3"
        assert notification_service.unread_badge(notifications, "bob") == ""

    def test_mark_read_and_mark_all_read(self):
        notifications = [
            _notification(id="n-1"),
            _notification(id="n-2", action_id="a-2"),
            _notification(id="n-3", partner_id="bob"),
        ]

        one = notification_service.mark_read(notifications, "n-1")
        assert [n.read for n in one] == [True, False, False]

        everything = notification_service.mark_all_read(notifications, "alice")
        assert [n.read for n in everything] == [True, True, False]

    def test_dismiss_hides_from_visible(self):
        notifications = [_notification(id="n-1"), _notification(id="n-2", action_id="a-2")]

        updated = notification_service.dismiss(notifications, "n-1", NOW)

        assert [n.id for n in notification_service.visible_for(updated, "alice")] == ["n-2"]
        assert updated[0].dismissed_at == NOW

    def test_clear_all_only_for_partner(self):
        notifications = [_notification(id="n-1"), _notification(id="n-2", partner_id="bob")]

        updated = notification_service.clear_all(notifications, "alice", NOW)

        assert [n.dismissed for n in updated] == [True, False]

    def test_visible_sorted_newest_first(self):
        notifications = [
            _notification(id="old", created_at=NOW - timedelta(hours=2)),
            _notification(id="new", action_id="a-2", created_at=NOW),
        ]

        assert [n.id for n in notification_service.visible_for(notifications, "alice")] == ["new", "old"]

    def test_prune_removes_long_dismissed(self):
        notifications = [
            _notification(id="stale", dismissed=True, dismissed_at=NOW - timedelta(hours=25)),
            _notification(id="fresh", action_id="a-2", dismissed=True, dismissed_at=NOW - timedelta(hours=1)),
            _notification(id="live", action_id="a-3"),
        ]

        kept = notification_service.prune(notifications, NOW)

        assert [n.id for n in kept] == ["fresh", "live"]

    def test_prune_caps_list_dropping_read_first(self):
        notifications = [
            _notification(id=f"n-{i:03d}", action_id=f"a-{i}", created_at=NOW + timedelta(seconds=i), read=i < 10)
            for i in range(105)
        ]

        kept = notification_service.prune(notifications, NOW, live=set())

        assert len(kept) == 100
        dropped = {n.id for n in notifications} - {n.id for n in kept}
        assert dropped == {f"n-{i:03d}" for i in range(5)}

    def test_prune_cap_never_evicts_live_notifications(self):
        notifications = [
            _notification(id=f"n-{i:03d}", action_id=f"a-{i}", created_at=NOW + timedelta(seconds=i), read=i < 10)
            for i in range(105)
        ]
        live = {n.dedup_key for n in notifications[:3]}

        kept = notification_service.prune(notifications, NOW, live=live)

        assert len(kept) == 100
        dropped = {n.id for n in notifications} - {n.id for n in kept}
        assert dropped == {f"n-{i:03d}" for i in range(3, 8)}

    def test_prune_cap_tolerates_more_live_than_the_limit(self):
        notifications = [_notification(id=f"n-{i:03d}", action_id=f"a-{i}") for i in range(105)]

        kept = notification_service.prune(notifications, NOW, live={n.dedup_key for n in notifications})

        assert len(kept) == 105

    def test_prune_without_live_keys_skips_cap(self):
        notifications = [_notification(id=f"n-{i:03d}", action_id=f"a-{i}") for i in range(105)]

        assert len(notification_service.prune(notifications, NOW)) == 105

    def test_pending_delivery_respects_quiet_hours(self):
        notifications = [_notification(id="n-1")]
        quiet = NotificationSettings(quiet_hours_start=22, quiet_hours_end=7)

        at_midnight = notification_service.pending_delivery(notifications, "alice", quiet, NOW, UTC)
        at_noon = notification_service.pending_delivery(notifications, "alice", quiet, NOW + timedelta(hours=12), UTC)

        assert at_midnight == []
        assert [n.id for n in at_noon] == ["n-1"]

    def test_pending_delivery_skips_delivered_and_low(self):
        notifications = [
            _notification(id="done", delivered_at=NOW),
            _notification(id="low", action_id="a-2", priority=NotificationPriority.LOW),
            _notification(id="todo", action_id="a-3"),
        ]

        pending = notification_service.pending_delivery(notifications, "alice", NotificationSettings(), NOW, UTC)

        assert [n.id for n in pending] == ["todo"]


@pytest.mark.unit
class TestSettings:
    """Tests for notification settings validation."""

    def test_update_settings_validates_warning_days(self):
        with pytest.raises(ValidationError):
            notification_service.update_settings(NotificationSettings(), warning_days=5)

    def test_update_settings_applies_changes(self):
        updated = notification_service.update_settings(NotificationSettings(), warning_days=7, partner_updates=False)

        assert updated.warning_days == 7
        assert not updated.partner_updates
        assert updated.overdue_reminders

    def test_quiet_hours_need_both_ends(self):
        with pytest.raises(ValidationError):
            NotificationSettings(quiet_hours_start=22)

    @pytest.mark.parametrize(
        ("start", "end", "hour", "expected"),
        [
            (22, 7, 23, True),
            (22, 7, 3, True),
            (22, 7, 7, False),
            (22, 7, 12, False),
            (13, 15, 14, True),
            (13, 15, 15, False),
            (9, 9, 9, False),
        ],
    )
    def test_in_quiet_hours(self, start, end, hour, expected):
        settings = NotificationSettings(quiet_hours_start=start, quiet_hours_end=end)

        assert settings.in_quiet_hours(hour) is expected
