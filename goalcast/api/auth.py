import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from goalcast.api.deps import get_current_user, get_db
from goalcast.api.serializers import user_out
from goalcast.config import settings
from goalcast.crud.users import (
    create_user,
    get_user_by_email,
    get_user_by_reset_token,
    get_user_by_username,
    set_reset_token,
    update_password,
    verify_password,
)
from goalcast.models import User
from goalcast.schemas import ForgotPasswordIn, LoginIn, RegisterIn, ResetPasswordIn
from goalcast.services import mailer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_for_token(db: Session, token: str) -> User:
    user = get_user_by_reset_token(db, token)
    if not user or not user.reset_token_expiry or user.reset_token_expiry < datetime.utcnow():
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    return user


@router.post("/register", status_code=201)
def register(payload: RegisterIn, request: Request, db: Session = Depends(get_db)) -> Dict[str, Any]:
    if get_user_by_username(db, payload.username):
        raise HTTPException(status_code=409, detail="Username already exists")

    user = create_user(
        db,
        username=payload.username,
        password=payload.password,
        full_name=payload.full_name,
        email=payload.email,
        avatar_url=payload.avatar_url,
        bio=payload.bio,
    )
    request.session["user_id"] = user.id
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user_out(user, private=True)


@router.post("/login")
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)) -> Dict[str, Any]:
    if not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    user = get_user_by_username(db, payload.username)
    if not user or not verify_password(user, payload.password):
        raise HTTPException(status_code=401, detail="Invalid username or password")

    request.session["user_id"] = user.id
    return user_out(user, private=True)


@router.get("/me")
def me(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return user_out(user, private=True)


@router.post("/logout")
def logout(request: Request) -> Dict[str, str]:
    request.session.clear()
    return {"message": "Logged out successfully"}


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordIn, db: Session = Depends(get_db)) -> Dict[str, str]:
    email = payload.email.strip()
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")

    user = get_user_by_email(db, email)
    if not user:
        logger.info("Password reset requested for unknown email %s", email)
        raise HTTPException(status_code=404, detail="No account found with this email")

    if not mailer.is_configured():
        raise HTTPException(status_code=503, detail="Email service not properly configured")

    token = secrets.token_hex(32)
    expiry = datetime.utcnow() + timedelta(minutes=settings.RESET_TOKEN_TTL_MINUTES)
    set_reset_token(db, user, token, expiry)

    try:
        mailer.send_password_reset(user.email or email, user.username, token)
    except mailer.MailNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except OSError as exc:
        logger.exception("Failed to send reset mail to %s", email)
        raise HTTPException(status_code=502, detail="Failed to send reset email") from exc

    return {"message": "Password reset instructions sent to your email"}


@router.post("/reset-password")
def reset_password(payload: ResetPasswordIn, db: Session = Depends(get_db)) -> Dict[str, str]:
    user = _user_for_token(db, payload.token)
    update_password(db, user, payload.new_password)
    logger.info("Password reset for user %s", user.id)
    return {"message": "Password reset successfully"}


@router.get("/verify-reset-token/{token}")
def verify_reset_token(token: str, db: Session = Depends(get_db)) -> Dict[str, bool]:
    _user_for_token(db, token)
    return {"valid": True}
