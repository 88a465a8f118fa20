from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from pydantic import BaseModel, ConfigDict

from database import Base


class Holding(Base):
    __tablename__ = "holdings"
    # NULL tickers are distinct in SQL, so manual entries never collide
    __table_args__ = (
        UniqueConstraint("user_id", "ticker", name="uq_holdings_user_ticker"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    type: Mapped[str] = mapped_column(String(16))
    name: Mapped[str] = mapped_column(String(200))
    ticker: Mapped[str | None] = mapped_column(String(32), nullable=True)

    quantity: Mapped[float] = mapped_column(Float)
    buy_price: Mapped[float] = mapped_column(Float)       # weighted-average cost per unit
    current_price: Mapped[float] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(8))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    owner = relationship("User", back_populates="holdings")


class HoldingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    name: str
    ticker: str | None = None
    quantity: float
    buy_price: float
    current_price: float
    currency: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Transient/computed fields (NOT in DB)
    value: float | None = None
    invested: float | None = None
    unrealized_pl: float | None = None


def to_dto(h: Holding) -> HoldingOut:
    dto = HoldingOut.model_validate(h)
    dto.value = round(h.quantity * h.current_price, 8)
    dto.invested = round(h.quantity * h.buy_price, 8)
    dto.unrealized_pl = round(dto.value - dto.invested, 8)
    return dto
