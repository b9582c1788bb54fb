from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from goalcast.api.deps import get_current_user, get_db
from goalcast.api.serializers import comment_out, feed_item_out
from goalcast.crud.feed import (
    comment_counts,
    create_comment,
    get_feed_item,
    list_comments,
    list_feed,
    list_following_feed,
    reactions_by_viewer,
    set_reaction,
)
from goalcast.models import FeedItem, User
from goalcast.models.enums import FeedItemType, ReactionType
from goalcast.schemas import CommentIn, ReactionIn

router = APIRouter(prefix="/feed", tags=["feed"])

TIME_RANGES = {
    "today": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}


def _render(db: Session, viewer_id: int, rows: List[Tuple[FeedItem, User]]) -> List[Dict[str, Any]]:
    ids = [item.id for item, _ in rows]
    reactions = reactions_by_viewer(db, viewer_id, ids)
    comments = comment_counts(db, ids)
    return [feed_item_out(item, author, reactions.get(item.id), comments.get(item.id, 0)) for item, author in rows]


def _visible_item_or_404(db: Session, feed_item_id: int, viewer_id: int) -> FeedItem:
    item = get_feed_item(db, feed_item_id)
    if not item or (not item.is_public and item.user_id != viewer_id):
        raise HTTPException(status_code=404, detail="Feed item not found")
    return item


@router.get("")
def feed_list(
    limit: int = 50,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    limit = max(1, min(limit, 100))
    return _render(db, user.id, list_feed(db, user.id, limit))


@router.get("/following")
def feed_following(
    sort_by: str = Query("latest", alias="sortBy"),
    time_range: str = Query("all", alias="timeRange"),
    item_type: Optional[str] = Query(None, alias="type"),
    limit: int = 50,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    if sort_by not in ("latest", "trending"):
        raise HTTPException(status_code=400, detail="sortBy must be latest or trending")
    if time_range != "all" and time_range not in TIME_RANGES:
        raise HTTPException(status_code=400, detail="timeRange must be today, week, month or all")

    parsed_type: Optional[FeedItemType] = None
    if item_type and item_type != "all":
        try:
            parsed_type = FeedItemType(item_type)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Unknown feed item type: {item_type}") from exc

    since = datetime.utcnow() - TIME_RANGES[time_range] if time_range in TIME_RANGES else None
    rows = list_following_feed(
        db,
        user.id,
        since=since,
        item_type=parsed_type,
        trending=sort_by == "trending",
        limit=max(1, min(limit, 100)),
    )
    return _render(db, user.id, rows)


@router.get("/{feed_item_id}/comments")
def feed_comments(feed_item_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    _visible_item_or_404(db, feed_item_id, user.id)
    return [comment_out(comment, author) for comment, author in list_comments(db, feed_item_id)]


@router.post("/{feed_item_id}/comments", status_code=201)
def feed_comment_create(
    feed_item_id: int,
    payload: CommentIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    _visible_item_or_404(db, feed_item_id, user.id)
    content = payload.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Comment cannot be empty")
    comment = create_comment(db, feed_item_id, user.id, content)
    return comment_out(comment, user)


@router.post("/{feed_item_id}/{reaction}")
def feed_react(
    feed_item_id: int,
    reaction: ReactionType,
    payload: ReactionIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    if payload.action == reaction.value:
        active = True
    elif payload.action == f"un{reaction.value}":
        active = False
    else:
        raise HTTPException(status_code=400, detail="Invalid action")

    item = _visible_item_or_404(db, feed_item_id, user.id)
    item = set_reaction(db, item, user.id, reaction, active)
    author = db.get(User, item.user_id)
    return _render(db, user.id, [(item, author)])[0]
