from src.services import (
    points_ledger,
    streak_service,
    achievement_service,
    challenge_service,
    notification_service,
    reward_service,
    state_service,
    engine_service,
)


__all__ = [
    "achievement_service",
    "challenge_service",
    "engine_service",
    "notification_service",
    "points_ledger",
    "reward_service",
    "state_service",
    "streak_service",
]
