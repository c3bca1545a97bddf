"""s2_scan_redemptions_append_only

Revision ID: 7a9c3f10b2d6
Revises: 5d2e8a41c7f0
Create Date: 2026-10-19 09:30:00.000000
"""

from collections.abc import Sequence

from alembic import op

revision: str = "7a9c3f10b2d6"
down_revision: str | None = "5d2e8a41c7f0"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.execute(
        """
        CREATE OR REPLACE FUNCTION fn_scan_redemptions_append_only()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
            IF TG_OP = 'DELETE' THEN
                RAISE EXCEPTION 'scan_redemptions is append-only';
            END IF;
            IF NEW.coupon_id IS DISTINCT FROM OLD.coupon_id
                OR NEW.campaign_id IS DISTINCT FROM OLD.campaign_id
                OR NEW.campaign_tier_id IS DISTINCT FROM OLD.campaign_tier_id
                OR NEW.user_id IS DISTINCT FROM OLD.user_id
                OR NEW.prize_type IS DISTINCT FROM OLD.prize_type
                OR NEW.prize_value IS DISTINCT FROM OLD.prize_value
                OR NEW.prize_name IS DISTINCT FROM OLD.prize_name
                OR NEW.assigned_rank IS DISTINCT FROM OLD.assigned_rank
                OR NEW.scanned_at IS DISTINCT FROM OLD.scanned_at
            THEN
                RAISE EXCEPTION 'scan_redemptions allocation columns are immutable';
            END IF;
            RETURN NEW;
        END;
        $$;
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_scan_redemptions_append_only
        BEFORE UPDATE OR DELETE ON scan_redemptions
        FOR EACH ROW
        EXECUTE FUNCTION fn_scan_redemptions_append_only();
        """
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_scan_redemptions_append_only ON scan_redemptions;")
    op.execute("DROP FUNCTION IF EXISTS fn_scan_redemptions_append_only();")
