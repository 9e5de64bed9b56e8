from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import jwt

from app.core.config import settings


def create_access_token(subject: Any, expires_delta: Optional[timedelta] = None, **claims) -> str:
    """Issue a bearer token for ``subject`` (a user id).

    Tokens are normally minted by the identity provider; this helper exists so
    local tooling and the test-suite can produce tokens the API accepts.
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(subject), "exp": expire, **claims}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
