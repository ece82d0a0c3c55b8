"""Login, logout and account endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from backend.app.core.security import create_access_token, get_password_hash, verify_password
from backend.app.core.settings import get_settings
from backend.app.db.session import get_db
from backend.app.dependencies.auth import SESSION_COOKIE_NAME, get_current_session, get_current_user
from backend.app.models.auth_session import AuthSession
from backend.app.models.user import User
from backend.app.schemas.login import LoginRequest, LoginResponse
from backend.app.schemas.user import ChangePasswordRequest, UpdateProfileRequest, UserRead
from backend.app.services.auth_sessions import create_session, destroy_session, rotate_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(response: Response, session: AuthSession) -> str:
    settings = get_settings()
    token = create_access_token(user_id=session.user_id, session_id=session.id)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=settings.session_lifetime_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )
    return token


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == credentials.username).first()
    if not user or not user.hashed_password or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    session = create_session(db, user.id)
    token = _issue_token(response, session)
    logger.info("User %s logged in", user.id)
    return LoginResponse(access_token=token, user=UserRead.model_validate(user))


@router.post("/logout")
def logout(
    response: Response,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
):
    destroy_session(db, session.id)
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/change-password", response_model=LoginResponse)
def change_password(
    payload: ChangePasswordRequest,
    response: Response,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
    current_user: User = Depends(get_current_user),
):
    if not current_user.hashed_password or not verify_password(payload.current_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")

    current_user.hashed_password = get_password_hash(payload.new_password)
    # The new hash commits with the session swap; old tokens stop working here.
    new_session = rotate_session(db, session.id, current_user.id)
    token = _issue_token(response, new_session)
    db.refresh(current_user)
    return LoginResponse(access_token=token, user=UserRead.model_validate(current_user))


@router.patch("/update-profile", response_model=UserRead)
def update_profile(
    payload: UpdateProfileRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    company_name = payload.company_name.strip()
    if not company_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Company name is required")
    current_user.company_name = company_name
    db.commit()
    db.refresh(current_user)
    return current_user
