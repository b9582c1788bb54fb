import math
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, exists, func, or_, select
from sqlalchemy.orm import Session

from goalcast.crud.feed import create_feed_item
from goalcast.crud.goals import create_goal
from goalcast.crud.jsonfields import dumps_list
from goalcast.models import Challenge, ChallengeParticipant, ChallengeUpdate, Goal, User
from goalcast.models.enums import ChallengeType, DurationUnit, FeedItemType, GoalStatus, GoalType


def get_challenge(db: Session, challenge_id: int) -> Optional[Challenge]:
    return db.get(Challenge, challenge_id)


def create_challenge(
    db: Session,
    creator_id: int,
    title: str,
    description: str,
    type: ChallengeType,
    start_date: datetime,
    end_date: datetime,
    is_public: bool = True,
    max_participants: Optional[int] = None,
    tags: Optional[list[str]] = None,
) -> Challenge:
    challenge = Challenge(
        creator_id=creator_id,
        title=title,
        description=description,
        type=type.value,
        start_date=start_date,
        end_date=end_date,
        is_public=is_public,
        max_participants=max_participants,
        tags_json=dumps_list(tags),
    )
    db.add(challenge)
    db.commit()
    db.refresh(challenge)
    return challenge


def list_challenges(db: Session, user_id: int) -> list[tuple[Challenge, bool]]:
    participating = exists().where(
        and_(ChallengeParticipant.challenge_id == Challenge.id, ChallengeParticipant.user_id == user_id)
    )
    rows = db.execute(
        select(Challenge, participating.label("is_participating"))
        .where(or_(Challenge.is_public.is_(True), Challenge.creator_id == user_id))
        .order_by(Challenge.created_at.desc(), Challenge.id.desc())
    ).all()
    return [(challenge, bool(flag)) for challenge, flag in rows]


def participant_counts(db: Session, challenge_ids: list[int]) -> dict[int, int]:
    if not challenge_ids:
        return {}
    rows = db.execute(
        select(ChallengeParticipant.challenge_id, func.count())
        .where(ChallengeParticipant.challenge_id.in_(challenge_ids))
        .group_by(ChallengeParticipant.challenge_id)
    ).all()
    return {challenge_id: int(total) for challenge_id, total in rows}


def get_participant(db: Session, challenge_id: int, user_id: int) -> Optional[ChallengeParticipant]:
    return db.scalar(
        select(ChallengeParticipant).where(
            and_(ChallengeParticipant.challenge_id == challenge_id, ChallengeParticipant.user_id == user_id)
        )
    )


def count_participants(db: Session, challenge_id: int) -> int:
    return db.scalar(
        select(func.count()).select_from(ChallengeParticipant).where(ChallengeParticipant.challenge_id == challenge_id)
    ) or 0


def list_participants(db: Session, challenge_id: int) -> list[tuple[ChallengeParticipant, User]]:
    rows = db.execute(
        select(ChallengeParticipant, User)
        .join(User, ChallengeParticipant.user_id == User.id)
        .where(ChallengeParticipant.challenge_id == challenge_id)
        .order_by(ChallengeParticipant.progress.desc(), ChallengeParticipant.joined_at.asc())
    ).all()
    return [(participant, user) for participant, user in rows]


def challenge_duration_days(challenge: Challenge) -> int:
    return math.ceil((challenge.end_date - challenge.start_date).total_seconds() / 86400)


def join_challenge(db: Session, challenge: Challenge, user_id: int) -> ChallengeParticipant:
    goal = create_goal(
        db,
        user_id,
        title=f"Complete {challenge.title}",
        description=challenge.description,
        type=GoalType.CHALLENGE.value,
        duration=challenge_duration_days(challenge),
        duration_unit=DurationUnit.DAYS.value,
        start_date=challenge.start_date,
        end_date=challenge.end_date,
        category="challenge",
        visibility="public",
    )
    participant = ChallengeParticipant(challenge_id=challenge.id, user_id=user_id, goal_id=goal.id)
    db.add(participant)
    db.commit()
    db.refresh(participant)

    create_feed_item(
        db,
        user_id=user_id,
        goal_id=goal.id,
        content=f"Joined the {challenge.title} challenge!",
        type=FeedItemType.CHALLENGE_JOINED,
    )
    return participant


def leave_challenge(db: Session, participant: ChallengeParticipant) -> None:
    goal = db.get(Goal, participant.goal_id)
    if goal is not None and goal.status == GoalStatus.ACTIVE.value:
        goal.status = GoalStatus.FAILED.value
        db.add(goal)
    db.execute(delete(ChallengeParticipant).where(ChallengeParticipant.id == participant.id))
    db.commit()


def refresh_participant_progress(db: Session, goal_id: int, progress: int) -> Optional[ChallengeParticipant]:
    participant = db.scalar(select(ChallengeParticipant).where(ChallengeParticipant.goal_id == goal_id))
    if participant is None:
        return None
    participant.progress = progress
    db.add(participant)
    db.commit()
    return participant


def create_update(db: Session, challenge_id: int, user_id: int, content: str) -> ChallengeUpdate:
    update = ChallengeUpdate(challenge_id=challenge_id, user_id=user_id, content=content)
    db.add(update)
    db.commit()
    db.refresh(update)
    return update


def list_updates(db: Session, challenge_id: int) -> list[tuple[ChallengeUpdate, User]]:
    rows = db.execute(
        select(ChallengeUpdate, User)
        .join(User, ChallengeUpdate.user_id == User.id)
        .where(ChallengeUpdate.challenge_id == challenge_id)
        .order_by(ChallengeUpdate.created_at.desc(), ChallengeUpdate.id.desc())
    ).all()
    return [(update, user) for update, user in rows]


def spotlight_challenges(db: Session, since: datetime, limit: int = 5) -> list[tuple[Challenge, int]]:
    participants = func.count(ChallengeParticipant.id).label("participants_count")
    rows = db.execute(
        select(Challenge, participants)
        .outerjoin(ChallengeParticipant, ChallengeParticipant.challenge_id == Challenge.id)
        .where(and_(Challenge.is_public.is_(True), Challenge.created_at >= since))
        .group_by(Challenge.id)
        .order_by(participants.desc(), Challenge.created_at.desc())
        .limit(limit)
    ).all()
    return [(challenge, int(total)) for challenge, total in rows]
