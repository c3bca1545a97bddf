from __future__ import annotations

from sqlalchemy import CheckConstraint, UniqueConstraint

from scan_rewards.db.models import Campaign, CampaignTier, Coupon, ScanRedemption  # noqa: F401
from scan_rewards.db.models.base import Base


def _constraint_names(table_name: str, kind: type) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {str(constraint.name) for constraint in table.constraints if isinstance(constraint, kind)}


def test_all_tables_registered() -> None:
    assert set(Base.metadata.tables) == {
        "campaigns",
        "campaign_tiers",
        "coupons",
        "scan_redemptions",
    }


def test_tier_cap_is_enforced_by_check_constraint() -> None:
    checks = _constraint_names("campaign_tiers", CheckConstraint)
    assert "ck_campaign_tiers_winners_le_max" in checks
    assert "ck_campaign_tiers_probability_range" in checks


def test_redemption_uniqueness_constraints() -> None:
    uniques = _constraint_names("scan_redemptions", UniqueConstraint)
    assert uniques == {"uq_scan_redemptions_coupon", "uq_scan_redemptions_campaign_rank"}


def test_coupon_constraints() -> None:
    assert _constraint_names("coupons", UniqueConstraint) == {"uq_coupons_code"}
    assert {
        "ck_coupons_status",
        "ck_coupons_used_fields_consistency",
    } <= _constraint_names("coupons", CheckConstraint)


def test_campaign_window_constraint() -> None:
    assert "ck_campaigns_window" in _constraint_names("campaigns", CheckConstraint)
