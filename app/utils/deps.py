from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import decode_access_token
from app.crud.user import user as user_crud
from app.models.user import User

# auto_error=False so a missing header is a 401 rather than FastAPI's default 403
http_bearer = HTTPBearer(auto_error=False)

def _resolve_user(db: Session, credentials: Optional[HTTPAuthorizationCredentials]) -> User:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Please login to access this resource")
    try:
        payload = decode_access_token(credentials.credentials)
        subject = payload.get("sub")
        if subject is None:
            raise HTTPException(status_code=401, detail="Invalid token")
        user_id = int(subject)
    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")

    user = user_crud.get(db, id=user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return user

async def get_current_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> User:
    return _resolve_user(db, credentials)

async def get_optional_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> Optional[User]:
    """Anonymous callers are allowed; a presented token must still be valid."""
    if credentials is None:
        return None
    return _resolve_user(db, credentials)

async def get_current_instructor(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_instructor:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role: {current_user.role} is not allowed to access this resource"
        )
    return current_user

async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role: {current_user.role} is not allowed to access this resource"
        )
    return current_user
