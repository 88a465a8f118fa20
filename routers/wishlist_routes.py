from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from schemas.wishlist import WishlistItemCreate, WishlistItemOut
from services.supabase_auth import get_current_db_user
from services.wishlist_service import add_wishlist_item, list_wishlist, remove_wishlist_item

router = APIRouter()


@router.get("", response_model=List[WishlistItemOut])
def get_user_wishlist(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_db_user),
):
    return list_wishlist(db, user.id)


@router.post("", response_model=WishlistItemOut, status_code=status.HTTP_201_CREATED)
def add_user_wishlist_item(
    payload: WishlistItemCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_db_user),
):
    try:
        return add_wishlist_item(db, user.id, ticker=payload.ticker)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_wishlist_item(
    item_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_db_user),
):
    try:
        remove_wishlist_item(db, user.id, item_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
