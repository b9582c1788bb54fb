import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from goalcast.api.deps import get_current_user, get_db, get_presence
from goalcast.api.serializers import user_out
from goalcast.crud.follows import (
    create_follow,
    delete_follow,
    follow_counts,
    following_ids,
    get_follow,
    list_followers,
    list_following,
)
from goalcast.crud.stats import spotlight_users, streak_summary, user_summary
from goalcast.crud.users import get_user, list_users, list_users_by_ids, search_users
from goalcast.models import User
from goalcast.presence import PresenceRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])
spotlight_router = APIRouter(tags=["users"])


def _people(
    db: Session, viewer: User, users: List[User], presence: PresenceRegistry
) -> List[Dict[str, Any]]:
    followed = following_ids(db, viewer.id)
    return [user_out(u, presence=presence, is_following=u.id in followed) for u in users]


def _follow(db: Session, follower: User, following_id: int) -> Dict[str, str]:
    if follower.id == following_id:
        raise HTTPException(status_code=400, detail="Cannot follow yourself")
    if not get_user(db, following_id):
        raise HTTPException(status_code=404, detail="User not found")
    if get_follow(db, follower.id, following_id):
        raise HTTPException(status_code=400, detail="Already following this user")
    create_follow(db, follower.id, following_id)
    logger.info("User %s followed %s", follower.id, following_id)
    return {"message": "Successfully followed user"}


def _unfollow(db: Session, follower: User, following_id: int) -> Dict[str, str]:
    if delete_follow(db, follower.id, following_id):
        logger.info("User %s unfollowed %s", follower.id, following_id)
    return {"message": "Successfully unfollowed user"}


@router.get("")
def users_discover(
    limit: int = 50,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    presence: PresenceRegistry = Depends(get_presence),
) -> List[Dict[str, Any]]:
    users = list_users(db, exclude_user_id=user.id, limit=max(1, min(limit, 100)))
    return _people(db, user, users, presence)


@router.get("/search")
def users_search(
    q: str = "",
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    presence: PresenceRegistry = Depends(get_presence),
) -> List[Dict[str, Any]]:
    if not q.strip():
        return []
    return _people(db, user, search_users(db, q, exclude_user_id=user.id), presence)


@router.get("/online")
def users_online(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    presence: PresenceRegistry = Depends(get_presence),
) -> Dict[str, Any]:
    online = list_users_by_ids(db, presence.online_user_ids())
    return {"count": len(online), "users": [user_out(u, presence=presence) for u in online]}


@router.get("/following")
def users_following(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    presence: PresenceRegistry = Depends(get_presence),
) -> List[Dict[str, Any]]:
    return [user_out(u, presence=presence, is_following=True) for u in list_following(db, user.id)]


@router.get("/followers")
def users_followers(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    presence: PresenceRegistry = Depends(get_presence),
) -> List[Dict[str, Any]]:
    return _people(db, user, list_followers(db, user.id), presence)


@router.get("/following/streaks")
def users_following_streaks(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    rows = [
        {"user": user_out(u, is_following=True), "streak": streak_summary(db, u.id)["current"]}
        for u in list_following(db, user.id)
    ]
    rows.sort(key=lambda row: row["streak"], reverse=True)
    return rows


@router.post("/follow/{user_id}", status_code=201)
def users_follow(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, str]:
    return _follow(db, user, user_id)


@router.delete("/follow/{user_id}")
def users_unfollow(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, str]:
    return _unfollow(db, user, user_id)


@router.post("/{user_id}/follow", status_code=201)
def users_follow_alt(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, str]:
    return _follow(db, user, user_id)


@router.delete("/{user_id}/follow")
def users_unfollow_alt(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, str]:
    return _unfollow(db, user, user_id)


@router.get("/{user_id}")
def users_profile(
    user_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    presence: PresenceRegistry = Depends(get_presence),
) -> Dict[str, Any]:
    target = get_user(db, user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    data = user_out(
        target,
        presence=presence,
        is_following=None if target.id == user.id else get_follow(db, user.id, target.id) is not None,
        private=target.id == user.id,
    )
    data.update(follow_counts(db, target.id))
    data.update(user_summary(db, target))
    return data


@spotlight_router.get("/spotlight")
def spotlight(
    limit: int = 5,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    followed = following_ids(db, user.id)
    rows = spotlight_users(db, limit=max(1, min(limit, 20)))
    return [
        {
            "user": user_out(row["user"], is_following=row["user"].id in followed),
            "streak": row["streak"],
            "completed_goals": row["completed_goals"],
            "check_in_rate": row["check_in_rate"],
            "is_builder_of_the_week": row["is_builder_of_the_week"],
        }
        for row in rows
    ]
