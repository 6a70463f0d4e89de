"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from src.core.clock import FixedClock
from src.core.kv_store import InMemoryKVStore
from src.domain.action import Action, ActionStatus, Issue
from src.domain.notification import NotificationPriority
from src.domain.partner import EventSnapshot, Partner


NOW = datetime(2024, 1, 3, 12, 0, 0, tzinfo=UTC)


class RecordingSink:
    """Delivery sink that remembers every alert it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, NotificationPriority]] = []

    async def notify(self, title: str, body: str, priority: NotificationPriority) -> None:
        self.calls.append((title, body, priority))


class FailingSink:
    """Delivery sink whose channel is down."""

    async def notify(self, title: str, body: str, priority: NotificationPriority) -> None:
        raise ConnectionError("toast channel unavailable")


@pytest.fixture
def clock() -> FixedClock:
    """Clock fixed at 2024-01-03 12:00 UTC (a Wednesday)."""
    return FixedClock(NOW)


@pytest.fixture
def alice() -> Partner:
    return Partner(id="alice", name="Alice")


@pytest.fixture
def bob() -> Partner:
    return Partner(id="bob", name="Bob")


@pytest.fixture
def store() -> InMemoryKVStore:
    """Provides a fresh in-memory key-value store for each test."""
    return InMemoryKVStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink()


@pytest.fixture
def make_action() -> Callable[..., Action]:
    """Factory for actions with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Action:
        counter["n"] += 1
        data: dict[str, Any] = {
            "id": f"action-{counter['n']}",
            "title": f"Action {counter['n']}",
            "assigned_to": "alice",
            "status": ActionStatus.PENDING,
            "created_at": datetime(2023, 12, 1, tzinfo=UTC),
            "created_by": "bob",
        }
        data.update(overrides)
        return Action(**data)

    return _make


@pytest.fixture
def make_completed(make_action: Callable[..., Action]) -> Callable[..., Action]:
    """Factory for actions completed by a partner at a given time."""

    def _make(completed_by: str = "alice", completed_at: datetime = NOW, **overrides: Any) -> Action:
        return make_action(
            status=ActionStatus.COMPLETED,
            completed_by=completed_by,
            completed_at=completed_at,
            **overrides,
        )

    return _make


@pytest.fixture
def make_issue() -> Callable[..., Issue]:
    counter = {"n": 0}

    def _make(action_ids: list[str] | None = None, **overrides: Any) -> Issue:
        counter["n"] += 1
        data: dict[str, Any] = {
            "id": f"issue-{counter['n']}",
            "title": f"Issue {counter['n']}",
            "action_ids": action_ids or [],
        }
        data.update(overrides)
        return Issue(**data)

    return _make


@pytest.fixture
def make_snapshot(alice: Partner, bob: Partner) -> Callable[..., EventSnapshot]:
    """Snapshot as seen from Alice's device unless viewer='bob'."""

    def _make(actions: list[Action] | None = None, issues: list[Issue] | None = None, viewer: str = "alice") -> EventSnapshot:
        current, other = (alice, bob) if viewer == "alice" else (bob, alice)
        return EventSnapshot(current_partner=current, other_partner=other, actions=actions or [], issues=issues or [])

    return _make
