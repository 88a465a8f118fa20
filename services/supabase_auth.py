# services/supabase_auth.py
import logging
import os
from typing import Optional

from jose import jwt, JWTError
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from models.user import User
from database import get_db

logger = logging.getLogger(__name__)

SUPABASE_PROJECT_URL = os.getenv("SUPABASE_PROJECT_URL", "").rstrip("/")
SUPABASE_JWT_AUD = os.getenv("SUPABASE_JWT_AUD", "authenticated")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
if not SUPABASE_JWT_SECRET:
    raise RuntimeError("SUPABASE_JWT_SECRET is not set in environment variables")


def _get_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def decode_supabase_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            SUPABASE_JWT_SECRET,                 # HS256 uses shared secret
            algorithms=["HS256"],
            audience=SUPABASE_JWT_AUD,
            issuer=f"{SUPABASE_PROJECT_URL}/auth/v1",
        )
    except JWTError as e:
        logger.info("JWT rejected: %s", type(e).__name__)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")


async def get_current_supabase_user(request: Request) -> dict:
    token = _get_bearer_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    return decode_supabase_token(token)


async def get_optional_supabase_user(request: Request) -> Optional[dict]:
    """Like get_current_supabase_user, but a missing header means "no identity"."""
    token = _get_bearer_token(request)
    if not token:
        return None
    return decode_supabase_token(token)


def _resolve_db_user(db: Session, payload: dict) -> User:
    supabase_user_id = payload.get("sub")
    if not supabase_user_id:
        raise HTTPException(status_code=401, detail="Invalid auth token")

    user = (
        db.query(User)
        .filter(User.supabase_user_id == str(supabase_user_id))
        .first()
    )
    if user:
        return user

    # Auto-create local user on first login
    email = payload.get("email") or (payload.get("user_metadata") or {}).get("email")

    user = User(email=email, supabase_user_id=str(supabase_user_id))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user_created id=%s", user.id)
    return user


def get_current_db_user(
    db: Session = Depends(get_db),
    payload: dict = Depends(get_current_supabase_user),
) -> User:
    return _resolve_db_user(db, payload)


def get_optional_db_user(
    db: Session = Depends(get_db),
    payload: Optional[dict] = Depends(get_optional_supabase_user),
) -> Optional[User]:
    if payload is None:
        return None
    return _resolve_db_user(db, payload)
