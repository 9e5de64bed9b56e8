import functools
import logging
from typing import Callable, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings

logger = logging.getLogger(__name__)


def retry_on_conflict(max_attempts: Optional[int] = None):
    """Re-run a course mutation from a fresh read when its versioned write loses a race.

    The wrapped coroutine must take ``(self, db, ...)`` and commit its own work;
    a ``StaleDataError`` raised by the version check rolls the session back and
    the whole read-modify-write is attempted again.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, db: Session, *args, **kwargs):
            attempts = max_attempts or settings.CONTENT_WRITE_RETRIES
            for attempt in range(1, attempts + 1):
                try:
                    return await func(self, db, *args, **kwargs)
                except StaleDataError:
                    db.rollback()
                    logger.warning(f"{func.__name__}: concurrent course update detected (attempt {attempt}/{attempts})")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Course was modified by another request, please retry."
            )
        return wrapper
    return decorator
