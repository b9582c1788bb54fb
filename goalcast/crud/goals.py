from datetime import datetime
from typing import Any, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from goalcast.crud.jsonfields import dumps_list
from goalcast.models import Goal
from goalcast.models.enums import GoalStatus


def get_goal(db: Session, goal_id: int) -> Optional[Goal]:
    return db.get(Goal, goal_id)


def list_goals(db: Session, user_id: int) -> list[Goal]:
    return list(db.scalars(select(Goal).where(Goal.user_id == user_id).order_by(Goal.created_at.desc(), Goal.id.desc())))


def list_active_goals(db: Session, user_id: int) -> list[Goal]:
    return list(
        db.scalars(
            select(Goal)
            .where(and_(Goal.user_id == user_id, Goal.status == GoalStatus.ACTIVE.value))
            .order_by(Goal.created_at.desc(), Goal.id.desc())
        )
    )


def count_active_goals(db: Session, user_id: int) -> int:
    return db.scalar(
        select(func.count())
        .select_from(Goal)
        .where(and_(Goal.user_id == user_id, Goal.status == GoalStatus.ACTIVE.value))
    ) or 0


def count_goals_by_status(db: Session, user_id: int) -> dict[str, int]:
    rows = db.execute(
        select(Goal.status, func.count()).where(Goal.user_id == user_id).group_by(Goal.status)
    ).all()
    return {status: int(total) for status, total in rows}


def create_goal(db: Session, user_id: int, tags: Optional[list[str]] = None, **fields: Any) -> Goal:
    if fields.get("start_date") is None:
        fields["start_date"] = datetime.utcnow()
    goal = Goal(user_id=user_id, tags_json=dumps_list(tags), **fields)
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal


def update_goal_status(db: Session, goal: Goal, status: GoalStatus) -> Goal:
    goal.status = status.value
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal
