import logging
from datetime import datetime
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from goalcast.api.deps import get_current_user, get_db
from goalcast.api.serializers import check_in_out, goal_with_progress
from goalcast.config import settings
from goalcast.crud.check_ins import check_ins_by_goal_ids, list_check_ins_by_goal
from goalcast.crud.feed import create_feed_item
from goalcast.crud.goals import count_active_goals, create_goal, get_goal, list_active_goals, list_goals, update_goal_status
from goalcast.models import Goal, User
from goalcast.models.enums import FeedItemType, GoalStatus, GoalType, Visibility
from goalcast.progress import add_duration
from goalcast.schemas import GoalIn, GoalStatusIn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/goals", tags=["goals"])


def _own_goal_or_404(db: Session, goal_id: int, user: User) -> Goal:
    goal = get_goal(db, goal_id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    if goal.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not your goal")
    return goal


def _with_progress(db: Session, goals: List[Goal]) -> List[Dict[str, Any]]:
    grouped = check_ins_by_goal_ids(db, [g.id for g in goals])
    return [goal_with_progress(goal, grouped.get(goal.id, [])) for goal in goals]


@router.get("")
def goals_list(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    return _with_progress(db, list_goals(db, user.id))


@router.get("/active")
def goals_active(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    return _with_progress(db, list_active_goals(db, user.id))


@router.post("", status_code=201)
def goals_create(payload: GoalIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
    if not user.premium and count_active_goals(db, user.id) >= settings.FREE_ACTIVE_GOAL_LIMIT:
        raise HTTPException(status_code=403, detail="Free tier limit reached. Upgrade to create more goals.")

    fields = payload.model_dump(exclude={"tags"})
    fields["start_date"] = fields["start_date"] or datetime.utcnow()
    if fields["end_date"] is None:
        fields["end_date"] = add_duration(fields["start_date"], payload.duration, payload.duration_unit)
    if fields["end_date"] <= fields["start_date"]:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")
    for key in ("type", "duration_unit", "visibility"):
        fields[key] = fields[key].value

    goal = create_goal(db, user.id, tags=payload.tags, **fields)

    if goal.visibility == Visibility.PUBLIC.value:
        create_feed_item(
            db,
            user_id=user.id,
            goal_id=goal.id,
            content=f"Started a new goal: {goal.title} ({goal.duration} {goal.duration_unit})",
            type=FeedItemType.GOAL_CREATED,
        )
    logger.info("User %s created goal %s", user.id, goal.id)
    return goal_with_progress(goal, [])


@router.get("/{goal_id}")
def goals_get(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
    goal = _own_goal_or_404(db, goal_id, user)
    return goal_with_progress(goal, list_check_ins_by_goal(db, goal.id))


@router.patch("/{goal_id}")
def goals_update_status(
    goal_id: int,
    payload: GoalStatusIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    goal = _own_goal_or_404(db, goal_id, user)
    previous = goal.status
    goal = update_goal_status(db, goal, payload.status)

    if previous != goal.status and goal.visibility == Visibility.PUBLIC.value:
        if payload.status is GoalStatus.COMPLETED:
            is_challenge = goal.type == GoalType.CHALLENGE.value
            create_feed_item(
                db,
                user_id=user.id,
                goal_id=goal.id,
                content=f"Completed my goal: {goal.title}!",
                type=FeedItemType.CHALLENGE_COMPLETED if is_challenge else FeedItemType.GOAL_COMPLETED,
            )
        elif payload.status is GoalStatus.FAILED:
            create_feed_item(
                db,
                user_id=user.id,
                goal_id=goal.id,
                content=f"Didn't make it on {goal.title} this time. Regrouping for the next one.",
                type=FeedItemType.GOAL_FAILED,
            )
    return goal_with_progress(goal, list_check_ins_by_goal(db, goal.id))


@router.get("/{goal_id}/checkins")
def goals_check_ins(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    goal = _own_goal_or_404(db, goal_id, user)
    return [check_in_out(c) for c in list_check_ins_by_goal(db, goal.id)]
