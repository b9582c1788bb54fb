from collections import defaultdict
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from goalcast.crud.check_ins import check_in_rate, completion_percentage
from goalcast.crud.goals import count_goals_by_status
from goalcast.models import CheckIn, Goal, User
from goalcast.models.enums import GoalStatus
from goalcast.progress import calendar_streak, longest_calendar_streak


def completed_check_in_dates(db: Session, user_id: int) -> list[datetime]:
    return list(
        db.scalars(
            select(CheckIn.date)
            .where(and_(CheckIn.user_id == user_id, CheckIn.is_completed.is_(True)))
            .order_by(CheckIn.date.desc())
        )
    )


def streak_summary(db: Session, user_id: int, today: Optional[date] = None) -> dict[str, int]:
    dates = completed_check_in_dates(db, user_id)
    today = today or datetime.utcnow().date()
    return {"current": calendar_streak(dates, today), "longest": longest_calendar_streak(dates)}


def user_summary(db: Session, user: User, today: Optional[date] = None) -> dict[str, Any]:
    by_status = count_goals_by_status(db, user.id)
    return {
        "streak": streak_summary(db, user.id, today)["current"],
        "completed_goals": by_status.get(GoalStatus.COMPLETED.value, 0),
        "total_goals": sum(by_status.values()),
        "check_in_rate": check_in_rate(db, user.id),
    }


def spotlight_users(db: Session, limit: int = 5, today: Optional[date] = None) -> list[dict[str, Any]]:
    today = today or datetime.utcnow().date()
    goals_by_user: dict[int, dict[str, int]] = defaultdict(dict)
    for user_id, status, total in db.execute(
        select(Goal.user_id, Goal.status, func.count()).group_by(Goal.user_id, Goal.status)
    ).all():
        goals_by_user[user_id][status] = int(total)
    if not goals_by_user:
        return []

    user_ids = list(goals_by_user)
    completed_dates: dict[int, list[datetime]] = defaultdict(list)
    totals: dict[int, tuple[int, int]] = {}
    for user_id, when, is_completed in db.execute(
        select(CheckIn.user_id, CheckIn.date, CheckIn.is_completed).where(CheckIn.user_id.in_(user_ids))
    ).all():
        done, total = totals.get(user_id, (0, 0))
        totals[user_id] = (done + int(bool(is_completed)), total + 1)
        if is_completed:
            completed_dates[user_id].append(when)

    ranked = []
    for user in db.scalars(select(User).where(User.id.in_(user_ids)).order_by(User.created_at.asc())):
        by_status = goals_by_user[user.id]
        done, total = totals.get(user.id, (0, 0))
        ranked.append(
            {
                "user": user,
                "streak": calendar_streak(completed_dates[user.id], today),
                "completed_goals": by_status.get(GoalStatus.COMPLETED.value, 0),
                "total_goals": sum(by_status.values()),
                "check_in_rate": completion_percentage(done, total),
            }
        )
    ranked.sort(key=lambda row: (row["streak"], row["check_in_rate"], row["completed_goals"]), reverse=True)
    top = ranked[:limit]
    for idx, row in enumerate(top):
        row["is_builder_of_the_week"] = idx == 0 and row["streak"] > 0
    return top
