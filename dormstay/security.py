from typing import Optional
from passlib.context import CryptContext
from itsdangerous import URLSafeTimedSerializer, BadSignature
from fastapi import Request, Response, Depends, HTTPException
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .models import User, UserRole, MANAGER_ROLES

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
# Timed tokens: a cookie older than SESSION_MAX_AGE_DAYS is refused even if the browser kept it
serializer = URLSafeTimedSerializer(settings.SECRET_KEY, salt="dormstay-session")
SESSION_MAX_AGE = settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def set_session(response: Response, user: User):
    token = serializer.dumps({"uid": user.id})
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
        path="/",
        max_age=SESSION_MAX_AGE,
    )


def clear_session(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")


def session_user_id(request: Request) -> Optional[int]:
    """User id from a valid, unexpired session cookie, else None."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    try:
        return int(serializer.loads(token, max_age=SESSION_MAX_AGE)["uid"])
    except (BadSignature, KeyError, ValueError, TypeError):
        return None


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    user_id = session_user_id(request)
    user = db.get(User, user_id) if user_id else None
    if user is None:
        # No cookie, a bad or expired one, or the user was deleted since
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_role(*roles: str):
    """Dependency factory: a logged-in user holding one of ``roles``, else 403."""

    def _check(user: User = Depends(require_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user

    return _check


# Admins and staff may change rooms and tenants
require_manager = require_role(*MANAGER_ROLES)
require_admin = require_role(UserRole.ADMIN.value)
