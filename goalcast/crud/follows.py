from typing import Optional

from sqlalchemy import and_, delete, func, select
from sqlalchemy.orm import Session

from goalcast.models import Follow, User


def get_follow(db: Session, follower_id: int, following_id: int) -> Optional[Follow]:
    return db.scalar(
        select(Follow).where(and_(Follow.follower_id == follower_id, Follow.following_id == following_id))
    )


def create_follow(db: Session, follower_id: int, following_id: int) -> Follow:
    follow = Follow(follower_id=follower_id, following_id=following_id)
    db.add(follow)
    db.commit()
    db.refresh(follow)
    return follow


def delete_follow(db: Session, follower_id: int, following_id: int) -> bool:
    result = db.execute(
        delete(Follow).where(and_(Follow.follower_id == follower_id, Follow.following_id == following_id))
    )
    db.commit()
    return bool(result.rowcount)


def list_following(db: Session, user_id: int) -> list[User]:
    return list(
        db.scalars(
            select(User)
            .join(Follow, Follow.following_id == User.id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc())
        )
    )


def list_followers(db: Session, user_id: int) -> list[User]:
    return list(
        db.scalars(
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(Follow.following_id == user_id)
            .order_by(Follow.created_at.desc())
        )
    )


def following_ids(db: Session, user_id: int) -> set[int]:
    return set(db.scalars(select(Follow.following_id).where(Follow.follower_id == user_id)))


def follow_counts(db: Session, user_id: int) -> dict[str, int]:
    followers = db.scalar(select(func.count()).select_from(Follow).where(Follow.following_id == user_id)) or 0
    following = db.scalar(select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)) or 0
    return {"followers_count": followers, "following_count": following}
