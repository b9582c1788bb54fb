from enum import Enum


class GoalType(str, Enum):
    ONE_TIME = "one-time"
    RECURRING = "recurring"
    CHALLENGE = "challenge"


class DurationUnit(str, Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class ProgressStatus(str, Enum):
    ON_SCHEDULE = "On Schedule"
    CATCHING_UP = "Catching Up"
    AT_RISK = "At Risk"


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class FeedItemType(str, Enum):
    GOAL_CREATED = "goal_created"
    GOAL_COMPLETED = "goal_completed"
    GOAL_FAILED = "goal_failed"
    CHECK_IN = "check_in"
    STREAK_MILESTONE = "streak_milestone"
    CHALLENGE_JOINED = "challenge_joined"
    CHALLENGE_COMPLETED = "challenge_completed"
    CUSTOM = "custom"


class ReactionType(str, Enum):
    LIKE = "like"
    CLAP = "clap"
    HEART = "heart"
    FIRE = "fire"

    @property
    def counter(self) -> str:
        return {"like": "likes", "clap": "claps", "heart": "hearts", "fire": "fires"}[self.value]


class ChallengeType(str, Enum):
    ONE_TIME = "one-time"
    RECURRING = "recurring"
