"""Follow-up calls that run after a ledger change has been committed."""

import logging
from typing import Callable, List, Optional, TypeVar

from backend.app.core.errors import AppError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def attempt(warnings: List[str], description: str, func: Callable[..., T], *args, **kwargs) -> Optional[T]:
    """Run ``func``; on failure log it, record a warning and return None."""
    try:
        return func(*args, **kwargs)
    except AppError as exc:
        logger.warning("%s failed: %s", description, exc.detail)
        warnings.append(f"{description} failed: {exc.detail}")
    except Exception:
        logger.exception("%s failed unexpectedly", description)
        warnings.append(f"{description} failed")
    return None
