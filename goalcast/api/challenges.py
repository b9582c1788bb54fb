import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from goalcast.api.deps import get_current_user, get_db
from goalcast.api.serializers import challenge_out, challenge_update_out, user_out
from goalcast.crud.challenges import (
    count_participants,
    create_challenge,
    create_update,
    get_challenge,
    get_participant,
    join_challenge,
    leave_challenge,
    list_challenges,
    list_participants,
    list_updates,
    participant_counts,
    spotlight_challenges,
)
from goalcast.crud.check_ins import check_ins_by_goal_ids
from goalcast.models import Challenge, Goal, User
from goalcast.progress import GoalDurationError, calculate_progress
from goalcast.schemas import ChallengeIn, ChallengeUpdateIn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/challenges", tags=["challenges"])

SPOTLIGHT_WINDOW = timedelta(days=7)


def _visible_challenge_or_404(db: Session, challenge_id: int, user: User) -> Challenge:
    challenge = get_challenge(db, challenge_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")
    if not challenge.is_public and challenge.creator_id != user.id and not get_participant(db, challenge.id, user.id):
        raise HTTPException(status_code=404, detail="Challenge not found")
    return challenge


@router.post("", status_code=201)
def challenges_create(payload: ChallengeIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
    challenge = create_challenge(
        db,
        creator_id=user.id,
        title=payload.title.strip(),
        description=payload.description,
        type=payload.type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        is_public=payload.is_public,
        max_participants=payload.max_participants,
        tags=payload.tags,
    )
    logger.info("User %s created challenge %s", user.id, challenge.id)
    return challenge_out(challenge, participants_count=0, is_participating=False)


@router.get("")
def challenges_list(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    rows = list_challenges(db, user.id)
    counts = participant_counts(db, [c.id for c, _ in rows])
    return [challenge_out(c, counts.get(c.id, 0), participating) for c, participating in rows]


@router.get("/spotlight")
def challenges_spotlight(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    rows = spotlight_challenges(db, since=datetime.utcnow() - SPOTLIGHT_WINDOW)
    return [challenge_out(c, participants_count=total) for c, total in rows]


@router.get("/{challenge_id}")
def challenges_get(challenge_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
    challenge = _visible_challenge_or_404(db, challenge_id, user)
    participants = list_participants(db, challenge.id)
    mine = next((p for p, u in participants if u.id == user.id), None)
    creator = db.get(User, challenge.creator_id)

    data = challenge_out(challenge, participants_count=len(participants), is_participating=mine is not None)
    data["creator"] = user_out(creator) if creator else None
    data["participants"] = [user_out(u) for _, u in participants]
    data["progress"] = mine.progress if mine else 0
    return data


@router.post("/{challenge_id}/join", status_code=201)
def challenges_join(challenge_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
    challenge = _visible_challenge_or_404(db, challenge_id, user)
    if get_participant(db, challenge.id, user.id):
        raise HTTPException(status_code=400, detail="Already participating in this challenge")
    if challenge.end_date <= datetime.utcnow():
        raise HTTPException(status_code=400, detail="Challenge has already ended")
    if challenge.max_participants and count_participants(db, challenge.id) >= challenge.max_participants:
        raise HTTPException(status_code=400, detail="Challenge is full")

    participant = join_challenge(db, challenge, user.id)
    logger.info("User %s joined challenge %s", user.id, challenge.id)
    return {"message": "Successfully joined challenge", "goal_id": participant.goal_id}


@router.post("/{challenge_id}/leave")
def challenges_leave(challenge_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, str]:
    challenge = _visible_challenge_or_404(db, challenge_id, user)
    participant = get_participant(db, challenge.id, user.id)
    if not participant:
        raise HTTPException(status_code=404, detail="Not participating in this challenge")
    leave_challenge(db, participant)
    logger.info("User %s left challenge %s", user.id, challenge.id)
    return {"message": "Successfully left challenge"}


@router.get("/{challenge_id}/updates")
def challenges_updates(challenge_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    challenge = _visible_challenge_or_404(db, challenge_id, user)
    return [challenge_update_out(update, author) for update, author in list_updates(db, challenge.id)]


@router.post("/{challenge_id}/updates", status_code=201)
def challenges_update_create(
    challenge_id: int,
    payload: ChallengeUpdateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    challenge = _visible_challenge_or_404(db, challenge_id, user)
    if not get_participant(db, challenge.id, user.id):
        raise HTTPException(status_code=403, detail="Must be participating in the challenge to post updates")
    update = create_update(db, challenge.id, user.id, payload.content.strip())
    return challenge_update_out(update, user)


@router.get("/{challenge_id}/leaderboard")
def challenges_leaderboard(challenge_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
    challenge = _visible_challenge_or_404(db, challenge_id, user)
    participants = list_participants(db, challenge.id)
    goal_ids = [p.goal_id for p, _ in participants if p.goal_id is not None]
    check_ins = check_ins_by_goal_ids(db, goal_ids)

    rows = []
    for participant, member in participants:
        goal = db.get(Goal, participant.goal_id) if participant.goal_id is not None else None
        progress, streak = participant.progress, 0
        if goal is not None:
            try:
                derived = calculate_progress(goal, check_ins.get(goal.id, []))
                progress, streak = derived.progress, derived.streak
            except GoalDurationError as exc:
                logger.warning("Using stored progress for participant %s: %s", participant.id, exc)
        rows.append({"user": user_out(member), "progress": progress, "streak": streak, "joined_at": participant.joined_at.isoformat()})

    rows.sort(key=lambda row: (row["progress"], row["streak"]), reverse=True)
    return {
        "count": len(rows),
        "items": [{"rank": idx + 1, **row} for idx, row in enumerate(rows)],
    }
