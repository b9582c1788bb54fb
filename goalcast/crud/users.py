from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from goalcast.models import User


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.scalar(select(User).where(User.username == username))


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.scalar(select(User).where(func.lower(User.email) == email.strip().lower()))


def get_user_by_reset_token(db: Session, token: str) -> Optional[User]:
    return db.scalar(select(User).where(User.reset_token == token))


def create_user(
    db: Session,
    username: str,
    password: str,
    full_name: str,
    email: Optional[str] = None,
    avatar_url: Optional[str] = None,
    bio: Optional[str] = None,
) -> User:
    user = User(
        username=username,
        password_hash=generate_password_hash(password),
        full_name=full_name,
        email=email,
        avatar_url=avatar_url,
        bio=bio,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def verify_password(user: User, password: str) -> bool:
    return check_password_hash(user.password_hash, password)


def set_reset_token(db: Session, user: User, token: Optional[str], expiry: Optional[datetime]) -> None:
    user.reset_token = token
    user.reset_token_expiry = expiry
    db.add(user)
    db.commit()


def update_password(db: Session, user: User, new_password: str) -> None:
    user.password_hash = generate_password_hash(new_password)
    user.reset_token = None
    user.reset_token_expiry = None
    db.add(user)
    db.commit()


def list_users(db: Session, exclude_user_id: Optional[int] = None, limit: int = 50) -> list[User]:
    query = select(User).order_by(User.created_at.desc()).limit(limit)
    if exclude_user_id is not None:
        query = query.where(User.id != exclude_user_id)
    return list(db.scalars(query))


def search_users(db: Session, q: str, exclude_user_id: Optional[int] = None, limit: int = 20) -> list[User]:
    pattern = f"%{q.strip().lower()}%"
    query = (
        select(User)
        .where(or_(func.lower(User.username).like(pattern), func.lower(User.full_name).like(pattern)))
        .order_by(User.username.asc())
        .limit(limit)
    )
    if exclude_user_id is not None:
        query = query.where(User.id != exclude_user_id)
    return list(db.scalars(query))


def list_users_by_ids(db: Session, user_ids: list[int]) -> list[User]:
    if not user_ids:
        return []
    return list(db.scalars(select(User).where(User.id.in_(user_ids)).order_by(User.id.asc())))
