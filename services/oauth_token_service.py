# services/oauth_token_service.py
"""
Token store for provider access tokens (Plaid items, Fyers sessions).

One active token per (user_id, app_id) for direct saves; older ones are
flagged inactive rather than deleted so revocation stays auditable.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from models.access_token import OAuthToken
from services.errors import NotFound

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _active_query(db: Session, user_id: str, app_id: Optional[str] = None, provider: Optional[str] = None):
    query = db.query(OAuthToken).filter(OAuthToken.user_id == user_id, OAuthToken.is_active.is_(True))
    if app_id:
        query = query.filter(OAuthToken.app_id == app_id)
    if provider:
        query = query.filter(OAuthToken.provider == provider)
    return query


def store_exchanged_token(
    db: Session,
    *,
    provider: str,
    user_id: str,
    app_id: Optional[str],
    token_data: Dict[str, Any],
    source: str = "oauth_exchange",
) -> OAuthToken:
    """Persist a token returned by a provider exchange call."""
    record = OAuthToken(
        provider=provider,
        user_id=user_id,
        app_id=app_id,
        access_token=token_data["access_token"],
        refresh_token=token_data.get("refresh_token"),
        token_type=token_data.get("token_type") or "Bearer",
        expires_in=token_data.get("expires_in"),
        scope=token_data.get("scope"),
        source=source,
        is_active=True,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("oauth_token_saved id=%s provider=%s source=%s", record.id, provider, source)
    return record


def save_token(
    db: Session,
    *,
    provider: str,
    user_id: str,
    app_id: str,
    access_token: str,
    refresh_token: Optional[str] = None,
    token_type: Optional[str] = None,
    expires_in: Optional[int] = None,
    scope: Optional[str] = None,
) -> tuple[OAuthToken, int]:
    """
    Save a token the caller already holds. Deactivates the user's active
    tokens for the same app in the same transaction.
    Returns (new token, number of tokens replaced).
    """
    now = _utcnow()
    previous = _active_query(db, user_id, app_id).all()
    for tok in previous:
        tok.is_active = False
        tok.deactivated_at = now

    record = OAuthToken(
        provider=provider,
        user_id=user_id,
        app_id=app_id,
        access_token=access_token,
        refresh_token=refresh_token,
        token_type=token_type or "Bearer",
        expires_in=expires_in,
        scope=scope,
        source="direct_save",
        is_active=True,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("oauth_token_saved id=%s replaced=%d", record.id, len(previous))
    return record, len(previous)


def upsert_plaid_item(
    db: Session,
    *,
    user_id: str,
    access_token: str,
    item_id: str,
    institution_id: Optional[str] = None,
    institution_name: Optional[str] = None,
) -> OAuthToken:
    """One Plaid token per user + institution; re-linking replaces the token in place."""
    token_entry = (
        db.query(OAuthToken)
        .filter_by(provider="plaid", user_id=user_id, institution_id=institution_id)
        .first()
    )
    if token_entry:
        token_entry.access_token = access_token
        token_entry.item_id = item_id
        token_entry.institution_name = institution_name
        token_entry.is_active = True
        token_entry.revoked_at = None
        token_entry.deactivated_at = None
    else:
        token_entry = OAuthToken(
            provider="plaid",
            user_id=user_id,
            access_token=access_token,
            item_id=item_id,
            institution_id=institution_id,
            institution_name=institution_name,
            source="plaid_exchange",
        )
        db.add(token_entry)

    db.commit()
    db.refresh(token_entry)
    return token_entry


def get_active_token(db: Session, user_id: str, app_id: Optional[str] = None) -> OAuthToken:
    token = (
        _active_query(db, user_id, app_id)
        .order_by(OAuthToken.created_at.desc())
        .first()
    )
    if token is None:
        raise NotFound("No active token found for user")
    return token


def list_connections(db: Session, user_id: str, provider: Optional[str] = None) -> List[OAuthToken]:
    return (
        _active_query(db, user_id, provider=provider)
        .order_by(OAuthToken.created_at.desc())
        .all()
    )


def revoke_token_by_id(db: Session, token_id: str) -> OAuthToken:
    token = db.get(OAuthToken, token_id)
    if token is None:
        raise NotFound("Token not found")
    now = _utcnow()
    token.is_active = False
    token.revoked_at = now
    token.updated_at = now
    db.commit()
    logger.info("oauth_token_revoked id=%s", token_id)
    return token


def revoke_tokens_for_user(db: Session, user_id: str, app_id: Optional[str] = None) -> int:
    tokens = _active_query(db, user_id, app_id).all()
    now = _utcnow()
    for tok in tokens:
        tok.is_active = False
        tok.revoked_at = now
        tok.updated_at = now
    db.commit()
    logger.info("oauth_tokens_revoked count=%d", len(tokens))
    return len(tokens)


def to_public_dict(token: OAuthToken, include_token: bool = False) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "token_id": token.id,
        "provider": token.provider,
        "user_id": token.user_id,
        "app_id": token.app_id,
        "token_type": token.token_type,
        "expires_in": token.expires_in,
        "scope": token.scope,
        "created_at": token.created_at,
    }
    if include_token:
        out["access_token"] = token.access_token
    return out
