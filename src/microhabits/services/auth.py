"""Authentication and user management services."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from ..errors import AuthError, InvalidInputError, RateLimitedError
from ..infra.database import SessionFactory
from ..logging_config import get_logger
from ..models.user import User
from .days import DayBoundary
from .rate_limit import RateLimiter
from .validation import AuthForm, validate

logger = get_logger("auth")

_hasher = PasswordHasher()

DUPLICATE_EMAIL_MESSAGE = "This email is already registered. Please sign in instead."
BAD_CREDENTIALS_MESSAGE = "Invalid email or password."


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _ensure_allowed(limiter: RateLimiter, email: str, message: str) -> None:
    decision = limiter.check(email)
    if not decision.allowed:
        logger.warning("Auth attempt rate limited", extra={"wait_seconds": decision.wait_seconds})
        raise RateLimitedError(
            f"{message} Please wait {decision.wait_seconds} seconds before trying again.",
            decision.wait_seconds,
        )


def get_user(user_id: int, *, session_factory: SessionFactory) -> Optional[User]:
    """Fetch a user by id."""
    with session_factory() as session:
        user = session.get(User, user_id)
        if user:
            session.expunge(user)
        return user


def get_user_by_email(email: str, *, session_factory: SessionFactory) -> Optional[User]:
    """Fetch a user by email address."""
    email = _normalize_email(email)
    with session_factory() as session:
        user = session.exec(select(User).where(User.email == email)).first()
        if user:
            session.expunge(user)
        return user


def email_exists(email: str, *, session_factory: SessionFactory) -> bool:
    """Return True when an account with this email is already registered."""
    return get_user_by_email(email, session_factory=session_factory) is not None


def sign_up(
    *,
    email: str,
    password: str,
    session_factory: SessionFactory,
    limiter: RateLimiter,
    timezone_name: str = "UTC",
) -> User:
    """Create a new account with a hashed password."""

    _ensure_allowed(limiter, email, "Too many attempts.")
    try:
        form = validate(AuthForm, {"email": email, "password": password})
        DayBoundary.for_timezone(timezone_name)
    except InvalidInputError:
        limiter.record(email, success=False)
        raise

    password_hash = _hasher.hash(form.password)
    try:
        with session_factory() as session:
            existing = session.exec(select(User).where(User.email == form.email)).first()
            if existing:
                raise AuthError(DUPLICATE_EMAIL_MESSAGE, status=409)
            user = User(email=form.email, password_hash=password_hash, timezone=timezone_name)
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
    except IntegrityError as exc:
        limiter.record(email, success=False)
        raise AuthError(DUPLICATE_EMAIL_MESSAGE, status=409) from exc
    except AuthError:
        limiter.record(email, success=False)
        raise

    limiter.record(email, success=True)
    logger.info("User signed up", extra={"user_id": user.id})
    return user


def sign_in(
    *,
    email: str,
    password: str,
    session_factory: SessionFactory,
    limiter: RateLimiter,
) -> User:
    """Validate credentials and return the user when correct."""

    _ensure_allowed(limiter, email, "Too many failed attempts.")
    normalized = _normalize_email(email)
    if not normalized or not password:
        limiter.record(email, success=False)
        raise AuthError(BAD_CREDENTIALS_MESSAGE, status=401)

    with session_factory() as session:
        user = session.exec(select(User).where(User.email == normalized)).first()
        verified = False
        if user is not None:
            try:
                verified = _hasher.verify(user.password_hash, password)
            except (VerifyMismatchError, InvalidHash, VerificationError):
                verified = False

        if not verified:
            limiter.record(email, success=False)
            logger.info("Sign-in failed", extra={"known_user": user is not None})
            raise AuthError(BAD_CREDENTIALS_MESSAGE, status=401)

        user.last_login = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)

    limiter.record(email, success=True)
    logger.info("User signed in", extra={"user_id": user.id})
    return user


__all__ = [
    "email_exists",
    "get_user",
    "get_user_by_email",
    "sign_in",
    "sign_up",
]
