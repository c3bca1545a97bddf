"""s1_scan_rewards_core_tables

Revision ID: 5d2e8a41c7f0
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5d2e8a41c7f0"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "campaigns",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("distribution_type", sa.String(16), nullable=False, server_default=sa.text("'RANDOM'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("distribution_type IN ('RANDOM','SEQUENTIAL')", name="ck_campaigns_distribution_type"),
        sa.CheckConstraint("end_at > start_at", name="ck_campaigns_window"),
    )
    op.create_index("idx_campaigns_active_window", "campaigns", ["is_active", "start_at", "end_at"])

    op.create_table(
        "campaign_tiers",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("campaign_id", sa.BigInteger(), nullable=False),
        sa.Column("reward_name", sa.String(128), nullable=False),
        sa.Column("reward_name_hi", sa.String(128), nullable=True),
        sa.Column("reward_type", sa.String(16), nullable=False),
        sa.Column("reward_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("probability", sa.Numeric(5, 4), nullable=False, server_default=sa.text("0")),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("max_winners", sa.Integer(), nullable=True),
        sa.Column("current_winners", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.CheckConstraint("reward_type IN ('CASHBACK','DISCOUNT','GIFT')", name="ck_campaign_tiers_reward_type"),
        sa.CheckConstraint("probability >= 0 AND probability <= 1", name="ck_campaign_tiers_probability_range"),
        sa.CheckConstraint("max_winners IS NULL OR max_winners > 0", name="ck_campaign_tiers_max_winners_positive"),
        sa.CheckConstraint("current_winners >= 0", name="ck_campaign_tiers_current_winners_non_negative"),
        sa.CheckConstraint(
            "max_winners IS NULL OR current_winners <= max_winners",
            name="ck_campaign_tiers_winners_le_max",
        ),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("campaign_id", "priority", name="uq_campaign_tiers_campaign_priority"),
    )
    op.create_index("idx_campaign_tiers_campaign", "campaign_tiers", ["campaign_id"])

    op.create_table(
        "coupons",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("campaign_id", sa.BigInteger(), nullable=True),
        sa.Column("batch_number", sa.String(64), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("used_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("status IN ('UNUSED','USED','EXPIRED')", name="ck_coupons_status"),
        sa.CheckConstraint(
            "(status = 'USED') = (used_by IS NOT NULL AND used_at IS NOT NULL)",
            name="ck_coupons_used_fields_consistency",
        ),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"]),
        sa.UniqueConstraint("code", name="uq_coupons_code"),
    )
    op.create_index("idx_coupons_campaign", "coupons", ["campaign_id"])
    op.create_index("idx_coupons_batch", "coupons", ["batch_number"])
    op.create_index("idx_coupons_status_expires", "coupons", ["status", "expires_at"])

    op.create_table(
        "scan_redemptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("coupon_id", sa.BigInteger(), nullable=False),
        sa.Column("campaign_id", sa.BigInteger(), nullable=True),
        sa.Column("campaign_tier_id", sa.BigInteger(), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("prize_type", sa.String(16), nullable=True),
        sa.Column("prize_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("prize_name", sa.String(128), nullable=True),
        sa.Column("assigned_rank", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(24), nullable=False),
        sa.Column("scanned_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('PENDING_VERIFICATION','VERIFIED','CLAIMED','REJECTED')",
            name="ck_scan_redemptions_status",
        ),
        sa.CheckConstraint("assigned_rank IS NULL OR assigned_rank > 0", name="ck_scan_redemptions_rank_positive"),
        sa.CheckConstraint(
            "(campaign_tier_id IS NULL) = (prize_type IS NULL)",
            name="ck_scan_redemptions_prize_snapshot",
        ),
        sa.ForeignKeyConstraint(["coupon_id"], ["coupons.id"]),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"]),
        sa.ForeignKeyConstraint(["campaign_tier_id"], ["campaign_tiers.id"]),
        sa.UniqueConstraint("coupon_id", name="uq_scan_redemptions_coupon"),
        sa.UniqueConstraint("campaign_id", "assigned_rank", name="uq_scan_redemptions_campaign_rank"),
    )
    op.create_index("idx_scan_redemptions_campaign", "scan_redemptions", ["campaign_id"])
    op.create_index("idx_scan_redemptions_user", "scan_redemptions", ["user_id"])
    op.create_index("idx_scan_redemptions_scanned_at", "scan_redemptions", ["scanned_at"])


def downgrade() -> None:
    op.drop_index("idx_scan_redemptions_scanned_at", table_name="scan_redemptions")
    op.drop_index("idx_scan_redemptions_user", table_name="scan_redemptions")
    op.drop_index("idx_scan_redemptions_campaign", table_name="scan_redemptions")
    op.drop_table("scan_redemptions")

    op.drop_index("idx_coupons_status_expires", table_name="coupons")
    op.drop_index("idx_coupons_batch", table_name="coupons")
    op.drop_index("idx_coupons_campaign", table_name="coupons")
    op.drop_table("coupons")

    op.drop_index("idx_campaign_tiers_campaign", table_name="campaign_tiers")
    op.drop_table("campaign_tiers")

    op.drop_index("idx_campaigns_active_window", table_name="campaigns")
    op.drop_table("campaigns")
