from fastapi import APIRouter, Depends, Request, Response, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..limiter import limiter
from ..models import User
from ..security import set_session, verify_password, clear_session, require_user

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

class UserOut(BaseModel):
    id: int
    email: str
    role: str

    class Config:
        from_attributes = True

class LoginIn(BaseModel):
    email: str
    password: str

@router.post("/login", response_model=UserOut)
@limiter.limit(settings.RATE_LIMIT_AUTH_API)
def api_login(request: Request, payload: LoginIn, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid email or password")
    set_session(response, user)
    return user

@router.post("/logout")
def api_logout(response: Response):
    clear_session(response)
    return {"ok": True}

@router.get("/me", response_model=UserOut)
def api_me(user: User = Depends(require_user)):
    return user
