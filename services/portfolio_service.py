# services/portfolio_service.py
"""
Aggregate queries over a materialized list of holdings. Pure: no I/O.

Each item may be an ORM row, a pydantic model or a plain mapping. Mapping
keys may be snake_case (buy_price) or the web client's camelCase (buyPrice).
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional
from decimal import Decimal
from math import fsum

from services.currency_service import REPORTING_CURRENCY, convert_to_reporting

Number = float | int | Decimal

_ALIASES = {
    "buy_price": "buyPrice",
    "current_price": "currentPrice",
}


def _to_float(x: Number | None) -> float:
    if x is None:
        return 0.0
    if isinstance(x, Decimal):
        return float(x)
    return float(x)


def _field(h: Any, name: str) -> Any:
    if isinstance(h, Mapping):
        if name in h:
            return h[name]
        alias = _ALIASES.get(name)
        return h.get(alias) if alias else None
    return getattr(h, name, None)


def _type_key(h: Any) -> str:
    t = _field(h, "type")
    return getattr(t, "value", t) or "UNKNOWN"


def market_value(h: Any) -> float:
    """quantity * (current price, falling back to cost basis), in reporting currency."""
    price = _field(h, "current_price")
    if price is None:
        price = _field(h, "buy_price")
    value = _to_float(_field(h, "quantity")) * _to_float(price)
    return convert_to_reporting(value, _field(h, "currency"))


def cost_value(h: Any) -> float:
    value = _to_float(_field(h, "quantity")) * _to_float(_field(h, "buy_price"))
    return convert_to_reporting(value, _field(h, "currency"))


def net_worth(holdings: Optional[Iterable[Any]]) -> float:
    if not holdings:
        return 0.0
    return fsum(market_value(h) for h in holdings)


def invested_value(holdings: Optional[Iterable[Any]]) -> float:
    # cost basis only: current price never enters this total
    if not holdings:
        return 0.0
    return fsum(cost_value(h) for h in holdings)


def profit_loss(holdings: Optional[Iterable[Any]]) -> float:
    items = list(holdings or [])
    return net_worth(items) - invested_value(items)


def group_by_type(holdings: Optional[Iterable[Any]]) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for h in holdings or []:
        key = _type_key(h)
        out[key] = out.get(key, 0.0) + market_value(h)
    return out


def _normalize_alloc(d: Dict[str, float], total: float) -> List[Dict[str, Any]]:
    # sort descending by value
    items = sorted(d.items(), key=lambda kv: -kv[1])
    if total <= 0:
        return [{"key": k, "value": round(v, 2), "weight": None} for k, v in items]
    return [
        {"key": k, "value": round(v, 2), "weight": round(v / total * 100.0, 2)}
        for k, v in items
    ]


def build_portfolio_summary(holdings: Optional[Iterable[Any]]) -> Dict[str, Any]:
    items = list(holdings or [])
    worth = net_worth(items)
    invested = invested_value(items)
    pl = worth - invested
    by_type = group_by_type(items)

    return {
        "currency": REPORTING_CURRENCY,
        "count": len(items),
        "net_worth": round(worth, 2),
        "invested_value": round(invested, 2),
        "profit_loss": round(pl, 2),
        "profit_loss_pct": round(pl / invested * 100.0, 2) if invested > 0 else None,
        "by_type": {k: round(v, 2) for k, v in by_type.items()},
        "allocation": _normalize_alloc(by_type, worth),
    }
