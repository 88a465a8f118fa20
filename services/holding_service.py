# services/holding_service.py
"""
Portfolio ledger write path.

record_holding merges purchases of the same ticker into one row with a
weighted-average cost basis; update_holding corrects a row by id; delete_holding
removes one. Prices are normalized into the reporting currency before they
are stored, so every persisted row is in REPORTING_CURRENCY.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.holding import Holding
from models.user import User
from schemas.holding import HoldingCreate, HoldingUpdate
from services.currency_service import REPORTING_CURRENCY, convert_to_reporting, normalize_currency_code
from services.errors import ConflictError, NotAuthenticated, NotFound, ValidationError
from services.holding_events import broker

logger = logging.getLogger(__name__)

PRICE_FIELDS = ("buy_price", "current_price")
TICKER_IN_USE = "Another holding already uses this ticker"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_user(user: Optional[User]) -> User:
    if user is None:
        raise NotAuthenticated()
    return user


def normalize_prices(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rewrite price fields into the reporting currency when `currency` is foreign.
    Only price fields present in `fields` are converted. Returns a new dict.
    """
    out = dict(fields)
    if "currency" not in out:
        return out
    ccy = normalize_currency_code(out["currency"])
    if ccy != REPORTING_CURRENCY:
        for key in PRICE_FIELDS:
            if out.get(key) is not None:
                out[key] = convert_to_reporting(out[key], ccy)
    out["currency"] = REPORTING_CURRENCY
    return out


def weighted_average_cost(q0: float, p0: float, q1: float, p1: float) -> float:
    total = q0 + q1
    if total <= 0:
        raise ValidationError("Total quantity must be positive to average cost basis")
    return (q0 * p0 + q1 * p1) / total


def _find_by_ticker(db: Session, user_id: int, ticker: str) -> Optional[Holding]:
    # Row lock closes the read-then-write window between lookup and merge
    return (
        db.query(Holding)
        .filter(Holding.user_id == user_id, Holding.ticker == ticker)
        .with_for_update()
        .first()
    )


def _ticker_in_use(db: Session, user_id: int, ticker: str, exclude_id: int) -> bool:
    return (
        db.query(Holding.id)
        .filter(Holding.user_id == user_id, Holding.ticker == ticker, Holding.id != exclude_id)
        .first()
        is not None
    )


def _merge_into(existing: Holding, quantity: float, buy_price: float, current_price: float) -> None:
    q0 = existing.quantity or 0.0
    p0 = existing.buy_price or 0.0
    existing.buy_price = weighted_average_cost(q0, p0, quantity, buy_price)
    existing.quantity = q0 + quantity
    # market quote, not a cost: overwrite instead of blending
    existing.current_price = current_price
    existing.updated_at = _utcnow()


def record_holding(db: Session, user: Optional[User], data: HoldingCreate) -> int:
    """
    Record a purchase. Merges into the user's existing holding for the same
    ticker, otherwise inserts a new row. Returns the affected holding id.
    """
    user = _require_user(user)

    fields = data.model_dump()
    if fields.get("current_price") is None:
        fields["current_price"] = fields["buy_price"]
    fields = normalize_prices(fields)
    ticker = fields.get("ticker")

    if ticker:
        existing = _find_by_ticker(db, user.id, ticker)
        if existing is not None:
            _merge_into(existing, fields["quantity"], fields["buy_price"], fields["current_price"])
            db.commit()
            logger.info("holding_merged id=%s", existing.id)
            broker.publish(user.id, {"action": "updated", "holding_id": existing.id})
            return existing.id

    now = _utcnow()
    holding = Holding(
        user_id=user.id,
        type=fields["type"],
        name=fields["name"],
        ticker=ticker,
        quantity=fields["quantity"],
        buy_price=fields["buy_price"],
        current_price=fields["current_price"],
        currency=fields["currency"],
        created_at=now,
        updated_at=now,
    )
    db.add(holding)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent writer inserted the same ticker first: merge into its row
        db.rollback()
        existing = _find_by_ticker(db, user.id, ticker) if ticker else None
        if existing is None:
            raise
        _merge_into(existing, fields["quantity"], fields["buy_price"], fields["current_price"])
        db.commit()
        logger.info("holding_merged_after_conflict id=%s", existing.id)
        broker.publish(user.id, {"action": "updated", "holding_id": existing.id})
        return existing.id

    db.refresh(holding)
    logger.info("holding_created id=%s", holding.id)
    broker.publish(user.id, {"action": "created", "holding_id": holding.id})
    return holding.id


def get_holding(db: Session, user_id: int, holding_id: int) -> Optional[Holding]:
    return (
        db.query(Holding)
        .filter(Holding.user_id == user_id, Holding.id == holding_id)
        .first()
    )


def update_holding(db: Session, user: Optional[User], holding_id: int, patch: HoldingUpdate) -> Holding:
    """Correct one holding by id. Bypasses the ticker merge."""
    user = _require_user(user)

    holding = get_holding(db, user.id, holding_id)
    if holding is None:
        raise NotFound("Holding not found")

    fields = normalize_prices(patch.model_dump(exclude_unset=True))

    if "ticker" in fields and fields["ticker"] and fields["ticker"] != holding.ticker:
        if _ticker_in_use(db, user.id, fields["ticker"], holding_id):
            raise ConflictError(TICKER_IN_USE)

    for key, value in fields.items():
        if key in ("type", "name", "quantity", "buy_price") and value is None:
            raise ValidationError(f"{key} cannot be cleared")
        setattr(holding, key, value)
    if holding.current_price is None:
        holding.current_price = holding.buy_price
    holding.updated_at = _utcnow()

    try:
        db.commit()
    except IntegrityError:
        # Another patch claimed the ticker between the check and the commit
        db.rollback()
        logger.info("holding_update_conflict id=%s", holding_id)
        raise ConflictError(TICKER_IN_USE)
    db.refresh(holding)
    logger.info("holding_updated id=%s fields=%s", holding.id, ",".join(sorted(fields)))
    broker.publish(user.id, {"action": "updated", "holding_id": holding.id})
    return holding


def delete_holding(db: Session, user: Optional[User], holding_id: int) -> None:
    """Remove a holding. Without an identity this is a silent no-op."""
    if user is None:
        logger.debug("holding_delete skipped: no identity")
        return

    holding = get_holding(db, user.id, holding_id)
    if holding is None:
        raise NotFound("Holding not found")

    db.delete(holding)
    db.commit()
    logger.info("holding_deleted id=%s", holding_id)
    broker.publish(user.id, {"action": "deleted", "holding_id": holding_id})


def list_holdings(db: Session, user: Optional[User]) -> List[Holding]:
    """All of the user's holdings, newest first."""
    user = _require_user(user)
    return (
        db.query(Holding)
        .filter(Holding.user_id == user.id)
        .order_by(Holding.created_at.desc(), Holding.id.desc())
        .all()
    )
