import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import limiter
from models.user import User
from schemas.oauth import PlaidExchangeRequest
from services import plaid_service
from services.oauth_token_service import list_connections, upsert_plaid_item
from services.supabase_auth import get_current_db_user

logger = logging.getLogger(__name__)
router = APIRouter()

# ----------- LINK TOKEN ----------------

@router.post("/create-link-token")
@limiter.limit("10/minute")
def create_link_token(request: Request, user: User = Depends(get_current_db_user)):
    return {"link_token": plaid_service.create_link_token(str(user.id))}


# ----------- EXCHANGE TOKEN ----------------

@router.post("/exchange-token")
@limiter.limit("10/minute")
def exchange_token(
    request: Request,
    payload: PlaidExchangeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_db_user),
):
    exchanged = plaid_service.exchange_public_token(payload.public_token)
    entry = upsert_plaid_item(
        db,
        user_id=str(user.id),
        access_token=exchanged["access_token"],
        item_id=exchanged["item_id"],
        institution_id=payload.institution_id,
        institution_name=payload.institution_name,
    )
    logger.info("plaid_item_linked token_id=%s", entry.id)
    # access token stays server-side
    return {"status": "success", "item_id": entry.item_id}


class InstitutionOut(BaseModel):
    id: str
    institution_name: str | None = None
    institution_id: str | None = None
    created_at: str


@router.get("/institutions", response_model=List[InstitutionOut])
def get_connected_institutions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_db_user),
):
    return [
        InstitutionOut(
            id=t.id,
            institution_name=t.institution_name,
            institution_id=t.institution_id,
            created_at=t.created_at.isoformat() if t.created_at else "",
        )
        for t in list_connections(db, str(user.id), provider="plaid")
    ]
