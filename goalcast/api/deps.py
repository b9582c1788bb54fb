from typing import Generator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from goalcast.db import SessionLocal
from goalcast.models import User
from goalcast.presence import PresenceRegistry


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(request: Request) -> int:
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return int(user_id)


def get_current_user(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, user_id)
    if not user:
        request.session.clear()
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def get_presence(request: Request) -> PresenceRegistry:
    return request.app.state.presence
