import logging
import os

from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.core.settings import get_settings
from backend.app.models.user import User

logger = logging.getLogger(__name__)


def ensure_default_user(db: Session) -> None:
    """
    Create the default login for a fresh install if it does not exist.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    settings = get_settings()
    existing = db.query(User).filter(User.username == settings.default_username).first()
    if existing:
        return

    db.add(User(username=settings.default_username, hashed_password=get_password_hash(settings.default_password)))
    db.commit()
    logger.info("Created default user %r", settings.default_username)
