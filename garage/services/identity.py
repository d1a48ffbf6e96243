"""Login, server-side sessions and staff accounts."""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import secrets
import uuid

from pwdlib import PasswordHash
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal, Role, authorize
from ..config import settings
from ..errors import (
    AccountDeactivated,
    ConflictError,
    InvalidStateError,
    Unauthenticated,
    ValidationError,
)
from ..models import Profile, WebSession
from ..models.base import utcnow
from . import records

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

password_hash = PasswordHash.recommended()


@dataclass(frozen=True)
class AuthResult:
    user_id: str
    session_token: str
    principal: Principal


def _session_expiry(now: datetime) -> datetime:
    return now + timedelta(minutes=settings.session_ttl_minutes)


def authenticate(db: Session, username: str, password: str) -> AuthResult:
    profile = db.execute(
        select(Profile).where(Profile.username == (username or "").strip())
    ).scalar_one_or_none()
    if profile is None or not password_hash.verify(
        password or "", profile.password_hash
    ):
        logger.info("Failed login for %r", username)
        raise Unauthenticated("Invalid username or password.")
    if not profile.is_active:
        logger.info("Login refused for deactivated account %s", profile.username)
        raise AccountDeactivated()

    now = utcnow()
    token = secrets.token_urlsafe(48)
    with records.transaction(db, "Login"):
        db.add(
            WebSession(
                session_token=token,
                profile_id=profile.id,
                created_at=now,
                last_seen_at=now,
                expires_at=_session_expiry(now),
            )
        )

    logger.info("%s logged in", profile.username)
    return AuthResult(
        user_id=profile.user_id,
        session_token=token,
        principal=Principal.from_profile(profile),
    )


def current_profile(db: Session, token: str | None) -> Principal | None:
    if not token:
        return None

    row = db.execute(
        select(WebSession, Profile)
        .join(Profile, Profile.id == WebSession.profile_id)
        .where(WebSession.session_token == token)
    ).one_or_none()
    if not row:
        return None

    web_session, profile = row
    now = utcnow()
    if web_session.revoked_at is not None or web_session.expires_at <= now:
        return None

    web_session.last_seen_at = now
    web_session.expires_at = _session_expiry(now)
    db.commit()
    return Principal.from_profile(profile)


def logout(db: Session, token: str | None) -> None:
    if not token:
        return
    web_session = db.execute(
        select(WebSession).where(WebSession.session_token == token)
    ).scalar_one_or_none()
    if web_session is None or web_session.revoked_at is not None:
        return
    web_session.revoked_at = utcnow()
    db.commit()


def _create_profile(
    db: Session, *, username: str, password: str, role: Role
) -> Profile:
    username = (username or "").strip()
    if not username or not password:
        raise ValidationError("Username and password are required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )
    taken = db.execute(
        select(Profile.id).where(Profile.username == username)
    ).scalar_one_or_none()
    if taken is not None:
        raise ConflictError(f"Username {username} is already taken.")

    profile = Profile(
        user_id=str(uuid.uuid4()),
        username=username,
        password_hash=password_hash.hash(password),
        role=role,
        is_active=True,
    )
    db.add(profile)
    db.flush()
    return profile


def create_profile(
    db: Session,
    principal: Principal | None,
    *,
    username: str,
    password: str,
) -> Profile:
    """Create an employee account. Only admins may add staff."""
    actor = authorize(principal, Role.ADMIN)
    with records.transaction(db, "Create employee"):
        profile = _create_profile(
            db, username=username, password=password, role=Role.EMPLOYEE
        )
    logger.info("Employee %s created by %s", profile.username, actor.username)
    return profile


def bootstrap_admin(db: Session, *, username: str, password: str) -> Profile | None:
    """Create the first admin account; a no-op once any admin exists."""
    existing = db.execute(
        select(Profile.id).where(Profile.role == Role.ADMIN).limit(1)
    ).scalar_one_or_none()
    if existing is not None:
        return None
    with records.transaction(db, "Create admin"):
        profile = _create_profile(
            db, username=username, password=password, role=Role.ADMIN
        )
    logger.info("Admin %s created", profile.username)
    return profile


def set_profile_active(
    db: Session,
    principal: Principal | None,
    *,
    profile_id: int,
    is_active: bool,
) -> Profile:
    actor = authorize(principal, Role.ADMIN)
    with records.transaction(db, "Update employee status"):
        profile = records.get_profile(db, profile_id)
        if not is_active and Principal.from_profile(profile).is_admin:
            raise InvalidStateError("Admin accounts cannot be deactivated.")
        profile.is_active = is_active

    logger.info(
        "Profile %s %s by %s",
        profile_id,
        "activated" if is_active else "deactivated",
        actor.username,
    )
    return profile


def list_profiles(db: Session, principal: Principal | None) -> list[Profile]:
    authorize(principal, Role.ADMIN)
    return list(
        db.execute(
            select(Profile).order_by(Profile.created_at.desc(), Profile.id.desc())
        )
        .scalars()
        .all()
    )
