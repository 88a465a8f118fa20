from __future__ import annotations

from typing import List

from sqlalchemy.orm import Session

from models.wishlist import WishlistItem


def list_wishlist(db: Session, user_id: int) -> List[WishlistItem]:
    return (
        db.query(WishlistItem)
        .filter(WishlistItem.user_id == user_id)
        .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
        .all()
    )


def add_wishlist_item(db: Session, user_id: int, *, ticker: str) -> WishlistItem:
    exists = (
        db.query(WishlistItem)
        .filter(WishlistItem.user_id == user_id, WishlistItem.ticker == ticker)
        .first()
    )
    if exists:
        raise ValueError("Ticker already exists in wishlist")

    item = WishlistItem(user_id=user_id, ticker=ticker)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def remove_wishlist_item(db: Session, user_id: int, item_id: int) -> None:
    item = (
        db.query(WishlistItem)
        .filter(WishlistItem.user_id == user_id, WishlistItem.id == item_id)
        .first()
    )
    if not item:
        raise ValueError("Wishlist item not found")

    db.delete(item)
    db.commit()
