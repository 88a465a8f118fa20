from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from services.currency_service import REPORTING_CURRENCY, normalize_currency_code


class AssetType(str, Enum):
    STOCK = "STOCK"
    MF = "MF"
    PROPERTY = "PROPERTY"
    GOLD = "GOLD"
    CASH = "CASH"


def normalize_ticker(value: Optional[str]) -> Optional[str]:
    """Trim + upper-case; empty tickers mean "no ticker"."""
    ticker = (value or "").strip().upper()
    if not ticker:
        return None
    if len(ticker) > 32:
        raise ValueError("ticker must be at most 32 characters")
    return ticker


# Closed records: unknown fields are rejected, camelCase accepted from the web client
_HOLDING_CONFIG = ConfigDict(
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
    use_enum_values=True,
    allow_inf_nan=False,
)


class HoldingCreate(BaseModel):
    model_config = _HOLDING_CONFIG

    type: AssetType
    name: str = Field(min_length=1, max_length=200)
    ticker: Optional[str] = None
    quantity: float = Field(gt=0)
    buy_price: float = Field(ge=0)
    current_price: Optional[float] = Field(default=None, ge=0)
    currency: str = REPORTING_CURRENCY

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        name = v.strip()
        if not name:
            raise ValueError("name must not be blank")
        return name

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, v: Optional[str]) -> Optional[str]:
        return normalize_ticker(v)

    @field_validator("currency")
    @classmethod
    def _normalize_currency(cls, v: str) -> str:
        return normalize_currency_code(v)


class HoldingUpdate(BaseModel):
    """Correction patch addressed by id; only fields that were sent are applied."""

    model_config = _HOLDING_CONFIG

    type: Optional[AssetType] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    ticker: Optional[str] = None
    quantity: Optional[float] = Field(default=None, gt=0)
    buy_price: Optional[float] = Field(default=None, ge=0)
    current_price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        name = v.strip()
        if not name:
            raise ValueError("name must not be blank")
        return name

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, v: Optional[str]) -> Optional[str]:
        return normalize_ticker(v)

    @field_validator("currency")
    @classmethod
    def _normalize_currency(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else normalize_currency_code(v)


class HoldingRecorded(BaseModel):
    id: int
