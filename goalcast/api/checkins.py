import logging
import re
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from goalcast.api.deps import get_current_user, get_db
from goalcast.api.serializers import check_in_out
from goalcast.crud.challenges import refresh_participant_progress
from goalcast.crud.check_ins import count_completed, create_check_in, list_check_ins_by_goal, list_check_ins_by_user, user_streak
from goalcast.crud.feed import create_feed_item
from goalcast.crud.goals import get_goal
from goalcast.models import Goal, User
from goalcast.models.enums import FeedItemType, GoalStatus, GoalType, Visibility
from goalcast.progress import GoalDurationError, calculate_progress
from goalcast.schemas import CheckInIn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkins", tags=["checkins"])

STREAK_MILESTONES = (7, 30, 100)


def _check_in_content(goal: Goal, is_completed: bool, note: str, days_completed: int) -> str:
    if is_completed:
        hashtag = re.sub(r"\s+", "", goal.title)
        return f"Day {days_completed}/{goal.duration}: {note} #{hashtag}"
    return f"Missed a day on my {goal.title} goal, but getting back on track! {note}"


def _refresh_challenge_progress(db: Session, goal: Goal) -> None:
    if goal.type != GoalType.CHALLENGE.value:
        return
    try:
        progress = calculate_progress(goal, list_check_ins_by_goal(db, goal.id))
    except GoalDurationError as exc:
        logger.warning("Skipping challenge progress refresh: %s", exc)
        return
    refresh_participant_progress(db, goal.id, progress.progress)


@router.get("")
def check_ins_list(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    return [check_in_out(c) for c in list_check_ins_by_user(db, user.id)]


@router.post("", status_code=201)
def check_ins_create(payload: CheckInIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
    goal = get_goal(db, payload.goal_id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    if goal.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not your goal")
    if goal.status != GoalStatus.ACTIVE.value:
        raise HTTPException(status_code=400, detail="Goal is not active")

    streak_before = user_streak(db, user.id)
    check_in = create_check_in(db, goal, user.id, payload.is_completed, note=payload.note, when=payload.date)
    is_public = goal.visibility == Visibility.PUBLIC.value

    if payload.note:
        content = _check_in_content(goal, payload.is_completed, payload.note, count_completed(db, goal.id))
        create_feed_item(
            db,
            user_id=user.id,
            goal_id=goal.id,
            content=content,
            type=FeedItemType.CHECK_IN,
            check_in_id=check_in.id,
            is_public=is_public,
        )

    if payload.is_completed:
        streak_after = user_streak(db, user.id)
        if streak_after != streak_before and streak_after in STREAK_MILESTONES:
            create_feed_item(
                db,
                user_id=user.id,
                goal_id=goal.id,
                content=f"Reached a {streak_after}-day streak!",
                type=FeedItemType.STREAK_MILESTONE,
                is_public=is_public,
            )

    _refresh_challenge_progress(db, goal)
    return check_in_out(check_in)
