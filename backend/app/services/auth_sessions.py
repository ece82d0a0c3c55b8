"""Server-side session lifecycle: create, look up, destroy, rotate."""

import secrets
from datetime import UTC, timedelta

from sqlalchemy.orm import Session

from backend.app.core.settings import get_settings
from backend.app.core.time import utc_now
from backend.app.models.auth_session import AuthSession


def _as_utc(value):
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _new_session(user_id: int) -> AuthSession:
    settings = get_settings()
    now = utc_now()
    return AuthSession(
        id=secrets.token_urlsafe(32),
        user_id=user_id,
        created_at=now,
        expires_at=now + timedelta(days=settings.session_lifetime_days),
    )


def create_session(db: Session, user_id: int) -> AuthSession:
    session = _new_session(user_id)
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def get_active_session(db: Session, session_id: str) -> AuthSession | None:
    session = db.query(AuthSession).filter(AuthSession.id == session_id).first()
    if session is None:
        return None
    if _as_utc(session.expires_at) <= utc_now():
        db.delete(session)
        db.commit()
        return None
    return session


def destroy_session(db: Session, session_id: str) -> None:
    db.query(AuthSession).filter(AuthSession.id == session_id).delete(synchronize_session=False)
    db.commit()


def rotate_session(db: Session, session_id: str, user_id: int) -> AuthSession:
    """Replace a session with a fresh one for the same user.

    Commits together with any other pending changes on ``db``, so a password
    change and the revocation of the old session land atomically.
    """
    try:
        db.query(AuthSession).filter(AuthSession.id == session_id).delete(synchronize_session=False)
        session = _new_session(user_id)
        db.add(session)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(session)
    return session
