"""
Sign-up, log-in and session validation.

A session is a random token stored server side with an expiry. Only a token
that matches an unexpired row authenticates a request; the presence of a
cookie alone means nothing.
"""

import logging
import secrets
from datetime import timedelta
from typing import Optional

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budgetbook.config import settings
from budgetbook.database import utcnow
from budgetbook.errors import ValidationError
from budgetbook.models.user import User, UserSession
from budgetbook.seed import seed_categories

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def sign_up(db: Session, email: Optional[str], password: Optional[str]) -> User:
    email = _normalize_email(email)
    password = password or ""
    if "@" not in email:
        raise ValidationError("A valid email address is required")
    if len(password) < settings.min_password_length:
        raise ValidationError(
            f"Password must be at least {settings.min_password_length} characters"
        )
    if db.query(User.id).filter(User.email == email).first():
        raise ValidationError("User already registered")

    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    try:
        db.flush()
        seed_categories(db, user.id)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("User already registered") from exc

    db.refresh(user)
    logger.info("Signed up user %s", user.id)
    return user


def log_in(db: Session, email: Optional[str], password: Optional[str]) -> UserSession:
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if user is None or not verify_password(password or "", user.password_hash):
        raise ValidationError("Invalid login credentials")

    session = UserSession(
        token=secrets.token_urlsafe(32),
        user_id=user.id,
        expires_at=utcnow() + timedelta(hours=settings.session_ttl_hours),
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info("User %s logged in", user.id)
    return session


def resolve_session(db: Session, token: Optional[str]) -> Optional[User]:
    """The user behind a session token, or None for missing, forged or expired tokens."""
    if not token:
        return None

    session = db.query(UserSession).filter(UserSession.token == token).first()
    if session is None:
        return None

    if session.expires_at <= utcnow():
        logger.debug("Session for user %s expired", session.user_id)
        db.delete(session)
        db.commit()
        return None

    return session.user


def sign_out(db: Session, token: Optional[str]) -> None:
    if not token:
        return
    deleted = db.query(UserSession).filter(UserSession.token == token).delete()
    db.commit()
    if deleted:
        logger.info("Session signed out")
