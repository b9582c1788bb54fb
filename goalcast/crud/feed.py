import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from goalcast.models import Comment, FeedItem, FeedReaction, Follow, User
from goalcast.models.enums import FeedItemType, ReactionType

logger = logging.getLogger(__name__)


def get_feed_item(db: Session, feed_item_id: int) -> Optional[FeedItem]:
    return db.get(FeedItem, feed_item_id)


def create_feed_item(
    db: Session,
    user_id: int,
    goal_id: int,
    content: str,
    type: FeedItemType = FeedItemType.CUSTOM,
    check_in_id: Optional[int] = None,
    is_public: bool = True,
) -> FeedItem:
    item = FeedItem(
        user_id=user_id,
        goal_id=goal_id,
        check_in_id=check_in_id,
        type=type.value,
        content=content,
        is_public=is_public,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def list_feed(db: Session, viewer_id: int, limit: int = 50) -> list[tuple[FeedItem, User]]:
    rows = db.execute(
        select(FeedItem, User)
        .join(User, FeedItem.user_id == User.id)
        .where(or_(FeedItem.is_public.is_(True), FeedItem.user_id == viewer_id))
        .order_by(FeedItem.created_at.desc(), FeedItem.id.desc())
        .limit(limit)
    ).all()
    return [(item, user) for item, user in rows]


def list_following_feed(
    db: Session,
    viewer_id: int,
    since: Optional[datetime] = None,
    item_type: Optional[FeedItemType] = None,
    trending: bool = False,
    limit: int = 50,
) -> list[tuple[FeedItem, User]]:
    following = select(Follow.following_id).where(Follow.follower_id == viewer_id)
    query = (
        select(FeedItem, User)
        .join(User, FeedItem.user_id == User.id)
        .where(and_(FeedItem.user_id.in_(following), FeedItem.is_public.is_(True)))
    )
    if since is not None:
        query = query.where(FeedItem.created_at >= since)
    if item_type is not None:
        query = query.where(FeedItem.type == item_type.value)
    if trending:
        score = FeedItem.likes + FeedItem.claps + FeedItem.hearts + FeedItem.fires
        query = query.order_by(score.desc(), FeedItem.created_at.desc())
    else:
        query = query.order_by(FeedItem.created_at.desc(), FeedItem.id.desc())
    rows = db.execute(query.limit(limit)).all()
    return [(item, user) for item, user in rows]


def reactions_by_viewer(db: Session, viewer_id: int, feed_item_ids: list[int]) -> dict[int, set[str]]:
    result: dict[int, set[str]] = {item_id: set() for item_id in feed_item_ids}
    if not feed_item_ids:
        return result
    rows = db.execute(
        select(FeedReaction.feed_item_id, FeedReaction.reaction).where(
            and_(FeedReaction.user_id == viewer_id, FeedReaction.feed_item_id.in_(feed_item_ids))
        )
    ).all()
    for feed_item_id, reaction in rows:
        result[feed_item_id].add(reaction)
    return result


def comment_counts(db: Session, feed_item_ids: list[int]) -> dict[int, int]:
    if not feed_item_ids:
        return {}
    rows = db.execute(
        select(Comment.feed_item_id, func.count())
        .where(Comment.feed_item_id.in_(feed_item_ids))
        .group_by(Comment.feed_item_id)
    ).all()
    return {feed_item_id: int(total) for feed_item_id, total in rows}


def set_reaction(db: Session, item: FeedItem, user_id: int, reaction: ReactionType, active: bool) -> FeedItem:
    existing = db.scalar(
        select(FeedReaction).where(
            and_(
                FeedReaction.user_id == user_id,
                FeedReaction.feed_item_id == item.id,
                FeedReaction.reaction == reaction.value,
            )
        )
    )
    counter = reaction.counter
    if active and existing is None:
        db.add(FeedReaction(user_id=user_id, feed_item_id=item.id, reaction=reaction.value))
        setattr(item, counter, getattr(item, counter) + 1)
    elif not active and existing is not None:
        db.execute(delete(FeedReaction).where(FeedReaction.id == existing.id))
        setattr(item, counter, max(0, getattr(item, counter) - 1))
    db.add(item)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent request stored the same reaction first
        db.rollback()
        logger.info("Reaction %s on feed item %s by user %s already recorded", reaction.value, item.id, user_id)
    db.refresh(item)
    return item


def reactions_received(db: Session, user_id: int, since: Optional[datetime] = None, until: Optional[datetime] = None) -> int:
    query = (
        select(func.count())
        .select_from(FeedReaction)
        .join(FeedItem, FeedReaction.feed_item_id == FeedItem.id)
        .where(and_(FeedItem.user_id == user_id, FeedReaction.user_id != user_id))
    )
    if since is not None:
        query = query.where(FeedReaction.created_at >= since)
    if until is not None:
        query = query.where(FeedReaction.created_at < until)
    return db.scalar(query) or 0


def list_comments(db: Session, feed_item_id: int) -> list[tuple[Comment, User]]:
    rows = db.execute(
        select(Comment, User)
        .join(User, Comment.user_id == User.id)
        .where(Comment.feed_item_id == feed_item_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    ).all()
    return [(comment, user) for comment, user in rows]


def create_comment(db: Session, feed_item_id: int, user_id: int, content: str) -> Comment:
    comment = Comment(feed_item_id=feed_item_id, user_id=user_id, content=content)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment
