"""Authentication dependencies for retrieving the current session and user."""

from fastapi import Cookie, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import decode_access_token
from backend.app.db.session import get_db
from backend.app.models.auth_session import AuthSession
from backend.app.models.user import User
from backend.app.services.auth_sessions import get_active_session

SESSION_COOKIE_NAME = "session"


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_session(
    db: Session = Depends(get_db),
    authorization: str | None = Header(default=None),
    session_cookie: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
) -> AuthSession:
    # An explicit Authorization header wins over the browser cookie.
    if authorization:
        if not authorization.startswith("Bearer "):
            raise _unauthorized()
        token = authorization.split(" ", 1)[1]
    elif session_cookie:
        token = session_cookie
    else:
        raise _unauthorized()

    try:
        payload = decode_access_token(token)
    except ValueError:
        raise _unauthorized()

    session_id = payload.get("sid")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized()
    if not session_id:
        raise _unauthorized()

    session = get_active_session(db, session_id)
    if session is None or session.user_id != user_id:
        raise _unauthorized()
    return session


def get_current_user(
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> User:
    user = db.query(User).filter(User.id == session.user_id).first()
    if not user:
        raise _unauthorized()
    return user
