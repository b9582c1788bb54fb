"""Goal progress and streak calculations.

Everything here is pure: callers pass the goal, its check-ins and the moment
to evaluate at, and get back a ``DerivedProgress`` that is never persisted.
"""

import math
from calendar import monthrange
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional, Sequence, Union

from goalcast.models.enums import DurationUnit, ProgressStatus

ON_SCHEDULE_MIN_DELTA = -5
CATCHING_UP_MIN_DELTA = -15
WEEK_WINDOW_DAYS = 7
SECONDS_PER_DAY = 24 * 60 * 60


class GoalDurationError(ValueError):
    def __init__(self, goal_id: Optional[int], reason: str):
        self.goal_id = goal_id
        self.reason = reason
        super().__init__(f"Goal {goal_id}: {reason}")


@dataclass(frozen=True)
class DerivedProgress:
    progress: int
    days_completed: int
    total_days: int
    elapsed_days: int
    expected_progress: int
    status: ProgressStatus
    streak: int
    weekly_progress: list[bool]

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise TypeError(f"expected date or datetime, got {type(value).__name__}")


def _as_day(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _ceil_days(delta: timedelta) -> int:
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_duration(start: datetime, duration: int, unit: Union[DurationUnit, str]) -> datetime:
    unit = DurationUnit(unit)
    if unit is DurationUnit.WEEKS:
        return start + timedelta(days=duration * 7)
    if unit is DurationUnit.MONTHS:
        return add_months(start, duration)
    return start + timedelta(days=duration)


def resolve_end_date(goal: Any) -> datetime:
    start = _as_datetime(goal.start_date)
    if goal.end_date is not None:
        return _as_datetime(goal.end_date)
    try:
        return add_duration(start, goal.duration, goal.duration_unit)
    except ValueError as exc:
        raise GoalDurationError(getattr(goal, "id", None), f"unknown duration unit {goal.duration_unit!r}") from exc


def classify(delta: int) -> ProgressStatus:
    if delta >= ON_SCHEDULE_MIN_DELTA:
        return ProgressStatus.ON_SCHEDULE
    if delta >= CATCHING_UP_MIN_DELTA:
        return ProgressStatus.CATCHING_UP
    return ProgressStatus.AT_RISK


def completion_run(check_ins: Iterable[Any]) -> int:
    """Length of the trailing run of completed check-ins, newest first.

    Only completion flags in date order are considered; gaps between the
    dates do not break the run.
    """
    ordered = sorted(check_ins, key=lambda c: _as_datetime(c.date), reverse=True)
    streak = 0
    for check_in in ordered:
        if not check_in.is_completed:
            break
        streak += 1
    return streak


def weekly_window(check_ins: Sequence[Any], today: date) -> list[bool]:
    window: list[bool] = []
    for offset in range(WEEK_WINDOW_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        match = next((c for c in check_ins if _as_day(c.date) == day), None)
        window.append(bool(match.is_completed) if match is not None else False)
    return window


def calculate_progress(goal: Any, check_ins: Sequence[Any], now: Optional[datetime] = None) -> DerivedProgress:
    """Derive completion, schedule status, streak and last-week activity.

    ``goal`` needs ``id``, ``duration``, ``duration_unit``, ``start_date`` and
    ``end_date``; each check-in needs ``date`` and ``is_completed``.
    Raises ``GoalDurationError`` when the goal spans less than one day.
    """
    now = now or datetime.utcnow()
    start = _as_datetime(goal.start_date)
    end = resolve_end_date(goal)

    total_days = _ceil_days(end - start)
    if total_days < 1:
        raise GoalDurationError(getattr(goal, "id", None), f"spans {total_days} days, at least 1 required")

    elapsed_days = max(0, min(total_days, _ceil_days(now - start)))
    days_completed = sum(1 for c in check_ins if c.is_completed)

    progress = _round_half_up(days_completed / total_days * 100)
    expected_progress = _round_half_up(elapsed_days / total_days * 100)

    return DerivedProgress(
        progress=progress,
        days_completed=days_completed,
        total_days=total_days,
        elapsed_days=elapsed_days,
        expected_progress=expected_progress,
        status=classify(progress - expected_progress),
        streak=completion_run(check_ins),
        weekly_progress=weekly_window(check_ins, now.date()),
    )


def calendar_streak(completed_dates: Iterable[Any], today: date) -> int:
    """Consecutive days with a completed check-in, ending today or yesterday."""
    days = sorted({_as_day(d) for d in completed_dates}, reverse=True)
    if not days:
        return 0
    if (today - days[0]).days > 1:
        return 0

    streak = 1
    for previous, current in zip(days, days[1:]):
        if (previous - current).days != 1:
            break
        streak += 1
    return streak


def longest_calendar_streak(completed_dates: Iterable[Any]) -> int:
    days = sorted({_as_day(d) for d in completed_dates})
    if not days:
        return 0
    longest = current = 1
    for previous, day in zip(days, days[1:]):
        current = current + 1 if (day - previous).days == 1 else 1
        longest = max(longest, current)
    return longest
