from goalcast.schemas.ai import EnhanceNoteIn
from goalcast.schemas.auth import ForgotPasswordIn, LoginIn, RegisterIn, ResetPasswordIn
from goalcast.schemas.challenge import ChallengeIn, ChallengeUpdateIn
from goalcast.schemas.check_in import CheckInIn
from goalcast.schemas.feed import CommentIn, ReactionIn
from goalcast.schemas.goal import GoalIn, GoalStatusIn

__all__ = [
    "RegisterIn",
    "LoginIn",
    "ForgotPasswordIn",
    "ResetPasswordIn",
    "GoalIn",
    "GoalStatusIn",
    "CheckInIn",
    "ReactionIn",
    "CommentIn",
    "ChallengeIn",
    "ChallengeUpdateIn",
    "EnhanceNoteIn",
]
