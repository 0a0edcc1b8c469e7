from datetime import datetime, timezone
from typing import Optional

from fastapi import Request, Depends, HTTPException
from sqlalchemy.orm import Session

from fitlive.db.session import get_db
from fitlive.auth.models import User
from fitlive.core.security import decode_access_token
from fitlive.core.config import MAIN_ADMIN_USER_ID
from fitlive.core.logging import get_logger

logger = get_logger(__name__, "AUTH")


def _extract_token(request: Request) -> Optional[str]:
    """Mobile clients send a bearer header; browsers and tests may rely on the cookie."""
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()

    token = request.cookies.get("access_token")
    # Support both "Bearer <token>" and raw token values in the cookie.
    if isinstance(token, str) and token.lower().startswith("bearer "):
        token = token[7:].strip()
    return token


def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User:
    token = _extract_token(request)

    if not token:
        logger.debug(f"reject reason=missing_token path={request.url.path}")
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = decode_access_token(token)
    if not payload:
        logger.debug(f"reject reason=invalid_token path={request.url.path}")
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = db.get(User, user_id)

    if not user:
        logger.debug(f"reject reason=user_not_found user_id={user_id} path={request.url.path}")
        raise HTTPException(status_code=401, detail="User not found")

    # Update last_active timestamp so admins can see who is online
    try:
        user.last_active = datetime.now(timezone.utc)
        db.commit()
    except Exception:
        db.rollback()
        logger.warning(f"Could not update last_active for user={user.id}")

    return user


def is_admin(user: User) -> bool:
    return user.id == MAIN_ADMIN_USER_ID or user.role == "admin"


def get_admin(
    user: User = Depends(get_current_user)
) -> User:
    """Dependency to ensure the user is the main admin or has the admin role."""
    if not is_admin(user):
        raise HTTPException(status_code=403, detail="Admin access required")

    return user
