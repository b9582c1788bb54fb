from datetime import date, datetime
from typing import Optional

from sqlalchemy import Integer, and_, func, select
from sqlalchemy.orm import Session

from goalcast.models import CheckIn, Goal
from goalcast.progress import calendar_streak


def list_check_ins_by_user(db: Session, user_id: int) -> list[CheckIn]:
    return list(db.scalars(select(CheckIn).where(CheckIn.user_id == user_id).order_by(CheckIn.date.desc())))


def list_check_ins_by_goal(db: Session, goal_id: int) -> list[CheckIn]:
    return list(db.scalars(select(CheckIn).where(CheckIn.goal_id == goal_id).order_by(CheckIn.date.asc())))


def check_ins_by_goal_ids(db: Session, goal_ids: list[int]) -> dict[int, list[CheckIn]]:
    grouped: dict[int, list[CheckIn]] = {goal_id: [] for goal_id in goal_ids}
    if not goal_ids:
        return grouped
    rows = db.scalars(select(CheckIn).where(CheckIn.goal_id.in_(goal_ids)).order_by(CheckIn.date.asc()))
    for check_in in rows:
        grouped[check_in.goal_id].append(check_in)
    return grouped


def count_completed(db: Session, goal_id: int) -> int:
    return db.scalar(
        select(func.count())
        .select_from(CheckIn)
        .where(and_(CheckIn.goal_id == goal_id, CheckIn.is_completed.is_(True)))
    ) or 0


def create_check_in(
    db: Session,
    goal: Goal,
    user_id: int,
    is_completed: bool,
    note: Optional[str] = None,
    when: Optional[datetime] = None,
) -> CheckIn:
    check_in = CheckIn(
        goal_id=goal.id,
        user_id=user_id,
        is_completed=is_completed,
        note=note,
        date=when or datetime.utcnow(),
    )
    db.add(check_in)
    db.commit()
    db.refresh(check_in)
    return check_in


def user_streak(db: Session, user_id: int, today: Optional[date] = None) -> int:
    done_dates = db.scalars(
        select(CheckIn.date)
        .where(and_(CheckIn.user_id == user_id, CheckIn.is_completed.is_(True)))
        .order_by(CheckIn.date.desc())
    ).all()
    return calendar_streak(done_dates, today or datetime.utcnow().date())


def completion_percentage(done: int, total: int) -> int:
    return int((done * 100) / total + 0.5) if total else 0


def check_in_rate(db: Session, user_id: int) -> int:
    total, done = db.execute(
        select(
            func.count(),
            func.coalesce(func.sum(func.cast(CheckIn.is_completed, Integer)), 0),
        ).where(CheckIn.user_id == user_id)
    ).one()
    return completion_percentage(int(done), int(total))
