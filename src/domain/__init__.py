"""Domain models and static catalogs."""

from src.domain.achievement import AchievementDefinition, AchievementInstance, UnlockRule
from src.domain.action import ASSIGNED_TO_BOTH, Action, ActionStatus, Issue, IssueCategory
from src.domain.challenge import ChallengeDefinition, ChallengeInstance, ChallengeType, Difficulty
from src.domain.gamification import GamificationState, LedgerEntry, LedgerSource, PartnerStats, StreakState
from src.domain.notification import Notification, NotificationPriority, NotificationSettings, NotificationType
from src.domain.partner import EventSnapshot, Partner
from src.domain.reward import Reward


__all__ = [
    "ASSIGNED_TO_BOTH",
    "AchievementDefinition",
    "AchievementInstance",
    "Action",
    "ActionStatus",
    "ChallengeDefinition",
    "ChallengeInstance",
    "ChallengeType",
    "Difficulty",
    "EventSnapshot",
    "GamificationState",
    "Issue",
    "IssueCategory",
    "LedgerEntry",
    "LedgerSource",
    "Notification",
    "NotificationPriority",
    "NotificationSettings",
    "NotificationType",
    "Partner",
    "PartnerStats",
    "Reward",
    "StreakState",
    "UnlockRule",
]
