from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from scan_rewards.db.models.base import Base


class Coupon(Base):
    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint(
            "status IN ('UNUSED','USED','EXPIRED')",
            name="ck_coupons_status",
        ),
        CheckConstraint(
            "(status = 'USED') = (used_by IS NOT NULL AND used_at IS NOT NULL)",
            name="ck_coupons_used_fields_consistency",
        ),
        UniqueConstraint("code", name="uq_coupons_code"),
        Index("idx_coupons_campaign", "campaign_id"),
        Index("idx_coupons_batch", "batch_number"),
        Index("idx_coupons_status_expires", "status", "expires_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    campaign_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("campaigns.id"), nullable=True
    )
    batch_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    used_by: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
