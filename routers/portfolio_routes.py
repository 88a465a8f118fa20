# routers/portfolio_routes.py
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from services.holding_service import list_holdings
from services.portfolio_service import build_portfolio_summary
from services.supabase_auth import get_current_db_user

router = APIRouter()


@router.get("/summary")
def portfolio_summary(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_db_user),
) -> Dict[str, Any]:
    return build_portfolio_summary(list_holdings(db, user))
