import math
from datetime import datetime, timedelta
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from goalcast.api.deps import get_current_user, get_db
from goalcast.config import settings
from goalcast.crud.check_ins import check_in_rate
from goalcast.crud.feed import reactions_received
from goalcast.crud.goals import count_active_goals
from goalcast.crud.stats import streak_summary
from goalcast.models import User

router = APIRouter(tags=["stats"])


def check_in_rate_status(percentage: int) -> str:
    if percentage >= 80:
        return "On track"
    if percentage >= 50:
        return "Falling behind"
    return "At risk"


def percent_change(current: int, previous: int) -> int:
    if previous == 0:
        return 100 if current > 0 else 0
    return int(math.floor((current - previous) / previous * 100 + 0.5))


@router.get("/stats")
def stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    now = datetime.utcnow()
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    streak = streak_summary(db, user.id, now.date())
    this_week = reactions_received(db, user.id, since=week_ago, until=now)
    last_week = reactions_received(db, user.id, since=two_weeks_ago, until=week_ago)
    rate = check_in_rate(db, user.id)

    return {
        "active_goals": {
            "count": count_active_goals(db, user.id),
            "limit": None if user.premium else settings.FREE_ACTIVE_GOAL_LIMIT,
        },
        "current_streak": {
            "days": streak["current"],
            "longest": streak["longest"],
            "is_longest": streak["current"] > 0 and streak["current"] >= streak["longest"],
        },
        "social_engagement": {
            "count": reactions_received(db, user.id),
            "this_week": this_week,
            "last_week": last_week,
            "percent_change": percent_change(this_week, last_week),
        },
        "check_in_rate": {
            "percentage": rate,
            "status": check_in_rate_status(rate),
        },
    }
