from datetime import datetime
from typing import Any, Optional, Sequence

from goalcast.crud.jsonfields import loads_list
from goalcast.models import CheckIn, Challenge, ChallengeUpdate, Comment, FeedItem, Goal, User
from goalcast.presence import PresenceRegistry
from goalcast.progress import GoalDurationError, calculate_progress


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def user_out(
    user: User,
    presence: Optional[PresenceRegistry] = None,
    is_following: Optional[bool] = None,
    private: bool = False,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": user.id,
        "username": user.username,
        "full_name": user.full_name,
        "avatar_url": user.avatar_url,
        "bio": user.bio,
        "premium": user.premium,
        "created_at": _iso(user.created_at),
    }
    if private:
        data["email"] = user.email
    if presence is not None:
        data["is_online"] = presence.is_user_online(user.id)
        data["last_seen"] = _iso(presence.last_seen(user.id))
    if is_following is not None:
        data["is_following"] = is_following
    return data


def check_in_out(check_in: CheckIn) -> dict[str, Any]:
    return {
        "id": check_in.id,
        "goal_id": check_in.goal_id,
        "user_id": check_in.user_id,
        "date": _iso(check_in.date),
        "is_completed": check_in.is_completed,
        "note": check_in.note,
        "created_at": _iso(check_in.created_at),
    }


def goal_out(goal: Goal) -> dict[str, Any]:
    return {
        "id": goal.id,
        "user_id": goal.user_id,
        "title": goal.title,
        "description": goal.description,
        "type": goal.type,
        "duration": goal.duration,
        "duration_unit": goal.duration_unit,
        "start_date": _iso(goal.start_date),
        "end_date": _iso(goal.end_date),
        "status": goal.status,
        "category": goal.category,
        "visibility": goal.visibility,
        "twitter_share": goal.twitter_share,
        "linkedin_share": goal.linkedin_share,
        "bio_update": goal.bio_update,
        "reminder_frequency": goal.reminder_frequency,
        "tags": loads_list(goal.tags_json),
        "created_at": _iso(goal.created_at),
    }


def goal_with_progress(goal: Goal, check_ins: Sequence[CheckIn], now: Optional[datetime] = None) -> dict[str, Any]:
    data = goal_out(goal)
    data["check_ins"] = [check_in_out(c) for c in check_ins]
    try:
        data["progress"] = calculate_progress(goal, check_ins, now).as_dict()
        data["progress_error"] = None
    except GoalDurationError as exc:
        data["progress"] = None
        data["progress_error"] = str(exc)
    return data


def feed_item_out(
    item: FeedItem,
    user: User,
    reactions: Optional[set[str]] = None,
    comments_count: int = 0,
) -> dict[str, Any]:
    reactions = reactions or set()
    return {
        "id": item.id,
        "user_id": item.user_id,
        "goal_id": item.goal_id,
        "check_in_id": item.check_in_id,
        "type": item.type,
        "content": item.content,
        "likes": item.likes,
        "claps": item.claps,
        "hearts": item.hearts,
        "fires": item.fires,
        "is_public": item.is_public,
        "created_at": _iso(item.created_at),
        "comments_count": comments_count,
        "has_liked": "like" in reactions,
        "has_clapped": "clap" in reactions,
        "has_hearted": "heart" in reactions,
        "has_fired": "fire" in reactions,
        "user": user_out(user),
    }


def comment_out(comment: Comment, user: User) -> dict[str, Any]:
    return {
        "id": comment.id,
        "feed_item_id": comment.feed_item_id,
        "user_id": comment.user_id,
        "content": comment.content,
        "likes": comment.likes,
        "created_at": _iso(comment.created_at),
        "user": user_out(user),
    }


def challenge_out(
    challenge: Challenge,
    participants_count: Optional[int] = None,
    is_participating: Optional[bool] = None,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": challenge.id,
        "creator_id": challenge.creator_id,
        "title": challenge.title,
        "description": challenge.description,
        "type": challenge.type,
        "start_date": _iso(challenge.start_date),
        "end_date": _iso(challenge.end_date),
        "is_public": challenge.is_public,
        "max_participants": challenge.max_participants,
        "tags": loads_list(challenge.tags_json),
        "created_at": _iso(challenge.created_at),
    }
    if participants_count is not None:
        data["participants_count"] = participants_count
    if is_participating is not None:
        data["is_participating"] = is_participating
    return data


def challenge_update_out(update: ChallengeUpdate, user: User) -> dict[str, Any]:
    return {
        "id": update.id,
        "challenge_id": update.challenge_id,
        "user_id": update.user_id,
        "content": update.content,
        "likes": update.likes,
        "created_at": _iso(update.created_at),
        "user": user_out(user),
    }
