"""Static catalogs: achievements, daily challenge templates, rewards."""

from src.domain.achievement import (
    AchievementCategory,
    AchievementDefinition,
    ActionsCompletedRule,
    ActionsCreatedRule,
    ConsecutiveDaysRule,
    HealthScoreRule,
    IssuesResolvedRule,
    PartnerActionsRule,
    Rarity,
)
from src.domain.challenge import ChallengeDefinition, ChallengeType, Difficulty
from src.domain.reward import Reward, RewardCategory, RewardRarity


ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        id="first-action",
        title="Getting Started",
        description="Complete your first action together",
        category=AchievementCategory.MILESTONE,
        rarity=Rarity.COMMON,
        points=50,
        rule=ActionsCompletedRule(threshold=1),
    ),
    AchievementDefinition(
        id="week-warrior",
        title="Week Warrior",
        description="Stay active for 7 consecutive days",
        category=AchievementCategory.CONSISTENCY,
        rarity=Rarity.RARE,
        points=200,
        rule=ConsecutiveDaysRule(threshold=7),
    ),
    AchievementDefinition(
        id="month-master",
        title="Month Master",
        description="Maintain a 30-day streak",
        category=AchievementCategory.CONSISTENCY,
        rarity=Rarity.EPIC,
        points=500,
        rule=ConsecutiveDaysRule(threshold=30),
    ),
    AchievementDefinition(
        id="dedication-legend",
        title="Dedication Legend",
        description="Achieve a 100-day streak",
        category=AchievementCategory.CONSISTENCY,
        rarity=Rarity.LEGENDARY,
        points=1000,
        rule=ConsecutiveDaysRule(threshold=100),
    ),
    AchievementDefinition(
        id="action-hero",
        title="Action Hero",
        description="Complete 10 actions",
        category=AchievementCategory.COMPLETION,
        rarity=Rarity.COMMON,
        points=150,
        rule=ActionsCompletedRule(threshold=10),
    ),
    AchievementDefinition(
        id="productivity-champion",
        title="Productivity Champion",
        description="Complete 50 actions",
        category=AchievementCategory.COMPLETION,
        rarity=Rarity.RARE,
        points=400,
        rule=ActionsCompletedRule(threshold=50),
    ),
    AchievementDefinition(
        id="resolution-master",
        title="Resolution Master",
        description="Help resolve 5 relationship issues",
        category=AchievementCategory.GROWTH,
        rarity=Rarity.RARE,
        points=300,
        rule=IssuesResolvedRule(threshold=5),
    ),
    AchievementDefinition(
        id="team-player",
        title="Team Player",
        description="Complete 5 actions assigned by your partner",
        category=AchievementCategory.COLLABORATION,
        rarity=Rarity.RARE,
        points=250,
        rule=PartnerActionsRule(threshold=5),
    ),
    AchievementDefinition(
        id="supportive-partner",
        title="Supportive Partner",
        description="Create 10 actions for your partner",
        category=AchievementCategory.COLLABORATION,
        rarity=Rarity.COMMON,
        points=200,
        rule=ActionsCreatedRule(threshold=10),
    ),
    AchievementDefinition(
        id="relationship-guru",
        title="Relationship Guru",
        description="Achieve an overall health score of 9+",
        category=AchievementCategory.GROWTH,
        rarity=Rarity.EPIC,
        points=600,
        rule=HealthScoreRule(threshold=9),
    ),
)


CHALLENGE_TEMPLATES: tuple[ChallengeDefinition, ...] = (
    # Easy (10-25 points)
    ChallengeDefinition(
        id="express-gratitude",
        title="Express Gratitude",
        description="Leave a sweet note or message for your partner",
        type=ChallengeType.APPRECIATION,
        difficulty=Difficulty.EASY,
        points=15,
        target=1,
    ),
    ChallengeDefinition(
        id="check-in-champion",
        title="Check-In Champion",
        description="Have a 5-minute check-in conversation about your day",
        type=ChallengeType.COMMUNICATION,
        difficulty=Difficulty.EASY,
        points=20,
        target=1,
    ),
    ChallengeDefinition(
        id="action-hero-daily",
        title="Action Hero",
        description="Complete at least 1 relationship action today",
        type=ChallengeType.ACTION_COMPLETION,
        difficulty=Difficulty.EASY,
        points=25,
        target=1,
    ),
    ChallengeDefinition(
        id="quality-moments",
        title="Quality Moments",
        description="Spend 15 minutes together without devices",
        type=ChallengeType.QUALITY_TIME,
        difficulty=Difficulty.EASY,
        points=20,
        target=1,
    ),
    # Medium (25-40 points)
    ChallengeDefinition(
        id="productivity-partner",
        title="Productivity Partner",
        description="Complete 3 relationship actions today",
        type=ChallengeType.ACTION_COMPLETION,
        difficulty=Difficulty.MEDIUM,
        points=35,
        target=3,
    ),
    ChallengeDefinition(
        id="future-planner",
        title="Future Planner",
        description="Create 2 new action items for relationship growth",
        type=ChallengeType.GOAL_SETTING,
        difficulty=Difficulty.MEDIUM,
        points=30,
        target=2,
    ),
    ChallengeDefinition(
        id="appreciation-artist",
        title="Appreciation Artist",
        description="Give your partner 3 genuine compliments today",
        type=ChallengeType.APPRECIATION,
        difficulty=Difficulty.MEDIUM,
        points=25,
        target=3,
    ),
    ChallengeDefinition(
        id="connection-time",
        title="Connection Time",
        description="Have a 30-minute meaningful conversation",
        type=ChallengeType.QUALITY_TIME,
        difficulty=Difficulty.MEDIUM,
        points=40,
        target=1,
    ),
    # Hard (45-60 points)
    ChallengeDefinition(
        id="action-superstar",
        title="Action Superstar",
        description="Complete 5 relationship actions in one day",
        type=ChallengeType.ACTION_COMPLETION,
        difficulty=Difficulty.HARD,
        points=60,
        target=5,
    ),
    ChallengeDefinition(
        id="growth-architect",
        title="Growth Architect",
        description="Identify and create action plans for a new relationship area",
        type=ChallengeType.GOAL_SETTING,
        difficulty=Difficulty.HARD,
        points=50,
        target=1,
    ),
    ChallengeDefinition(
        id="deep-connector",
        title="Deep Connector",
        description="Have an hour-long heart-to-heart conversation",
        type=ChallengeType.COMMUNICATION,
        difficulty=Difficulty.HARD,
        points=55,
        target=1,
    ),
)


REWARDS: tuple[Reward, ...] = (
    # Date night
    Reward(
        id="movie-night",
        title="Movie Night Choice",
        description="Get to pick the movie for your next date night",
        category=RewardCategory.DATE,
        rarity=RewardRarity.COMMON,
        cost=100,
    ),
    Reward(
        id="restaurant-choice",
        title="Restaurant Choice",
        description="Choose the restaurant for your next dinner date",
        category=RewardCategory.DATE,
        rarity=RewardRarity.COMMON,
        cost=150,
    ),
    Reward(
        id="surprise-date",
        title="Surprise Date Planning",
        description="Your partner plans a complete surprise date for you",
        category=RewardCategory.DATE,
        rarity=RewardRarity.RARE,
        cost=300,
        unlock_level=500,
    ),
    Reward(
        id="weekend-getaway",
        title="Weekend Getaway Planning",
        description="Plan and lead a romantic weekend getaway",
        category=RewardCategory.EXPERIENCE,
        rarity=RewardRarity.EPIC,
        cost=800,
        unlock_level=1500,
    ),
    # Personal
    Reward(
        id="breakfast-in-bed",
        title="Breakfast in Bed",
        description="Enjoy a delicious breakfast made and served in bed",
        category=RewardCategory.PERSONAL,
        rarity=RewardRarity.COMMON,
        cost=200,
    ),
    Reward(
        id="massage",
        title="30-Minute Massage",
        description="Receive a relaxing 30-minute massage from your partner",
        category=RewardCategory.PERSONAL,
        rarity=RewardRarity.RARE,
        cost=250,
    ),
    Reward(
        id="hobby-time",
        title="Uninterrupted Hobby Time",
        description="3 hours of guilt-free time for your favorite hobby",
        category=RewardCategory.PERSONAL,
        rarity=RewardRarity.COMMON,
        cost=180,
    ),
    Reward(
        id="spa-day",
        title="Home Spa Day",
        description="A full day of pampering and relaxation at home",
        category=RewardCategory.PERSONAL,
        rarity=RewardRarity.EPIC,
        cost=500,
        unlock_level=1000,
    ),
    # Shared experiences
    Reward(
        id="playlist-control",
        title="Music Playlist Control",
        description="Control the music playlist for a whole week",
        category=RewardCategory.SHARED,
        rarity=RewardRarity.COMMON,
        cost=120,
    ),
    Reward(
        id="cooking-together",
        title="Cooking Adventure",
        description="Cook a new cuisine together with all ingredients provided",
        category=RewardCategory.SHARED,
        rarity=RewardRarity.RARE,
        cost=220,
    ),
    Reward(
        id="game-night",
        title="Game Night Host",
        description="Host and plan a fun game night for just the two of you",
        category=RewardCategory.SHARED,
        rarity=RewardRarity.COMMON,
        cost=180,
    ),
    # Surprises
    Reward(
        id="small-gift",
        title="Small Surprise Gift",
        description="Receive a thoughtful small gift (under $25)",
        category=RewardCategory.SURPRISE,
        rarity=RewardRarity.RARE,
        cost=350,
        unlock_level=300,
    ),
    Reward(
        id="favorite-treat",
        title="Favorite Treat Delivery",
        description="Your favorite snack or treat delivered to you",
        category=RewardCategory.SURPRISE,
        rarity=RewardRarity.COMMON,
        cost=160,
    ),
    Reward(
        id="love-note",
        title="Handwritten Love Letter",
        description="Receive a heartfelt handwritten love letter",
        category=RewardCategory.SURPRISE,
        rarity=RewardRarity.COMMON,
        cost=100,
    ),
)


_ACHIEVEMENTS_BY_ID = {a.id: a for a in ACHIEVEMENTS}
_CHALLENGES_BY_ID = {c.id: c for c in CHALLENGE_TEMPLATES}
_REWARDS_BY_ID = {r.id: r for r in REWARDS}


def get_achievement(achievement_id: str) -> AchievementDefinition | None:
    return _ACHIEVEMENTS_BY_ID.get(achievement_id)


def get_challenge_template(template_id: str) -> ChallengeDefinition | None:
    return _CHALLENGES_BY_ID.get(template_id)


def get_reward(reward_id: str) -> Reward | None:
    return _REWARDS_BY_ID.get(reward_id)
