from goalcast.crud.check_ins import create_check_in, list_check_ins_by_goal, list_check_ins_by_user, user_streak
from goalcast.crud.feed import create_feed_item, get_feed_item, set_reaction
from goalcast.crud.follows import create_follow, delete_follow, get_follow
from goalcast.crud.goals import create_goal, get_goal, list_active_goals, list_goals
from goalcast.crud.users import create_user, get_user, get_user_by_username

__all__ = [
    "create_user",
    "get_user",
    "get_user_by_username",
    "create_goal",
    "get_goal",
    "list_goals",
    "list_active_goals",
    "create_check_in",
    "list_check_ins_by_goal",
    "list_check_ins_by_user",
    "user_streak",
    "create_feed_item",
    "get_feed_item",
    "set_reaction",
    "get_follow",
    "create_follow",
    "delete_follow",
]
