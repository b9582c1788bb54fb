from goalcast.models.base import Base
from goalcast.models.challenge import Challenge, ChallengeParticipant, ChallengeUpdate
from goalcast.models.check_in import CheckIn
from goalcast.models.comment import Comment
from goalcast.models.feed_item import FeedItem
from goalcast.models.feed_reaction import FeedReaction
from goalcast.models.follow import Follow
from goalcast.models.goal import Goal
from goalcast.models.user import User

__all__ = [
    "Base",
    "User",
    "Goal",
    "CheckIn",
    "FeedItem",
    "FeedReaction",
    "Comment",
    "Follow",
    "Challenge",
    "ChallengeParticipant",
    "ChallengeUpdate",
]
