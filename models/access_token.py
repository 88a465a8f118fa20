from database import Base
from datetime import datetime, timezone
import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime, Index


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OAuthToken(Base):
    __tablename__ = "oauth_tokens"

    id: Mapped[str] = mapped_column(primary_key=True, default=lambda: str(uuid.uuid4()))
    provider: Mapped[str] = mapped_column(nullable=False)          # "plaid" | "fyers"
    user_id: Mapped[str] = mapped_column(nullable=False, index=True)
    app_id: Mapped[str | None] = mapped_column(nullable=True)
    item_id: Mapped[str | None] = mapped_column(nullable=True)     # provider-issued id (Plaid item)

    access_token: Mapped[str] = mapped_column(nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(nullable=True)
    token_type: Mapped[str] = mapped_column(default="Bearer")
    expires_in: Mapped[int | None] = mapped_column(nullable=True)
    scope: Mapped[str | None] = mapped_column(nullable=True)

    institution_id: Mapped[str | None] = mapped_column(nullable=True)
    institution_name: Mapped[str | None] = mapped_column(nullable=True)

    source: Mapped[str] = mapped_column(default="oauth_exchange")
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_oauth_tokens_user_app_active", "user_id", "app_id", "is_active"),
    )
