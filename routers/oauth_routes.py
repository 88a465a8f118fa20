# routers/oauth_routes.py
"""
Fyers OAuth exchange and the provider token store.

Responses never carry provider error text: failures are logged here and the
caller gets a generic detail.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import limiter
from schemas.oauth import ExchangeTokenRequest, RevokeTokenRequest, SaveTokenRequest
from services.errors import LedgerError
from services.fyers_service import FyersService, derive_user_id, get_fyers_service
from services.oauth_token_service import (
    get_active_token,
    revoke_token_by_id,
    revoke_tokens_for_user,
    save_token,
    store_exchanged_token,
    to_public_dict,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _failure(message: str) -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={
            "success": False,
            "error": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@router.post("/exchange-token")
@limiter.limit("10/minute")
async def exchange_token(
    request: Request,
    payload: ExchangeTokenRequest,
    db: Session = Depends(get_db),
    fyers: FyersService = Depends(get_fyers_service),
):
    try:
        token_data = await fyers.exchange_auth_code(payload.code, payload.app_id, payload.app_secret)
        user_id = payload.user_id or derive_user_id(payload.code)
        record = store_exchanged_token(
            db,
            provider="fyers",
            user_id=user_id,
            app_id=payload.app_id,
            token_data=token_data,
        )
    except LedgerError:
        raise
    except Exception:
        logger.exception("Token exchange failed")
        raise _failure("Token exchange failed")

    return {
        "success": True,
        "message": "Token exchanged and saved successfully",
        "token_id": record.id,
        "user_id": record.user_id,
        "expires_in": record.expires_in,
        "token_type": record.token_type,
    }


@router.post("/save-token")
@limiter.limit("30/minute")
def save_direct_token(
    request: Request,
    payload: SaveTokenRequest,
    db: Session = Depends(get_db),
):
    try:
        record, replaced = save_token(
            db,
            provider="fyers",
            user_id=payload.user_id,
            app_id=payload.app_id,
            access_token=payload.access_token,
            refresh_token=payload.refresh_token,
            token_type=payload.token_type,
            expires_in=payload.expires_in,
            scope=payload.scope,
        )
    except Exception:
        logger.exception("Token save failed")
        raise _failure("Token save failed")

    return {
        "success": True,
        "message": "Token saved successfully",
        "token_id": record.id,
        "user_id": record.user_id,
        "replaced_tokens": replaced,
    }


@router.get("/get-token/{user_id}")
def get_token(
    user_id: str,
    app_id: Optional[str] = Query(None, alias="appId"),
    include_token: bool = Query(False, alias="includeToken"),
    db: Session = Depends(get_db),
):
    token = get_active_token(db, user_id, app_id)
    return {"success": True, **to_public_dict(token, include_token=include_token)}


@router.post("/revoke-token")
def revoke_token(
    payload: RevokeTokenRequest,
    db: Session = Depends(get_db),
):
    if payload.token_id:
        revoke_token_by_id(db, payload.token_id)
        return {"success": True, "message": "Token revoked successfully", "token_id": payload.token_id}

    count = revoke_tokens_for_user(db, payload.user_id, payload.app_id)
    return {"success": True, "message": f"{count} token(s) revoked successfully", "revoked_count": count}
