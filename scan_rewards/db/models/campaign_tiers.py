from __future__ import annotations

from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from scan_rewards.db.models.base import Base


class CampaignTier(Base):
    __tablename__ = "campaign_tiers"
    __table_args__ = (
        CheckConstraint(
            "reward_type IN ('CASHBACK','DISCOUNT','GIFT')",
            name="ck_campaign_tiers_reward_type",
        ),
        CheckConstraint(
            "probability >= 0 AND probability <= 1",
            name="ck_campaign_tiers_probability_range",
        ),
        CheckConstraint(
            "max_winners IS NULL OR max_winners > 0",
            name="ck_campaign_tiers_max_winners_positive",
        ),
        CheckConstraint(
            "current_winners >= 0",
            name="ck_campaign_tiers_current_winners_non_negative",
        ),
        CheckConstraint(
            "max_winners IS NULL OR current_winners <= max_winners",
            name="ck_campaign_tiers_winners_le_max",
        ),
        UniqueConstraint("campaign_id", "priority", name="uq_campaign_tiers_campaign_priority"),
        Index("idx_campaign_tiers_campaign", "campaign_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    campaign_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    reward_name: Mapped[str] = mapped_column(String(128), nullable=False)
    reward_name_hi: Mapped[str | None] = mapped_column(String(128), nullable=True)
    reward_type: Mapped[str] = mapped_column(String(16), nullable=False)
    reward_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    probability: Mapped[Decimal] = mapped_column(
        Numeric(5, 4), nullable=False, server_default=text("0")
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False)
    max_winners: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_winners: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
