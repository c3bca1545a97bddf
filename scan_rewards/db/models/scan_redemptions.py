from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from scan_rewards.db.models.base import Base


class ScanRedemption(Base):
    __tablename__ = "scan_redemptions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING_VERIFICATION','VERIFIED','CLAIMED','REJECTED')",
            name="ck_scan_redemptions_status",
        ),
        CheckConstraint(
            "assigned_rank IS NULL OR assigned_rank > 0",
            name="ck_scan_redemptions_rank_positive",
        ),
        CheckConstraint(
            "(campaign_tier_id IS NULL) = (prize_type IS NULL)",
            name="ck_scan_redemptions_prize_snapshot",
        ),
        UniqueConstraint("coupon_id", name="uq_scan_redemptions_coupon"),
        UniqueConstraint("campaign_id", "assigned_rank", name="uq_scan_redemptions_campaign_rank"),
        Index("idx_scan_redemptions_campaign", "campaign_id"),
        Index("idx_scan_redemptions_user", "user_id"),
        Index("idx_scan_redemptions_scanned_at", "scanned_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    coupon_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("coupons.id"), nullable=False)
    campaign_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("campaigns.id"), nullable=True
    )
    campaign_tier_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("campaign_tiers.id"), nullable=True
    )
    user_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), nullable=False)
    prize_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    prize_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    prize_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    assigned_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(24), nullable=False)
    scanned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
