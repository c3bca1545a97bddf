from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from scan_rewards.db.models.campaigns import Campaign
from scan_rewards.db.models.coupons import Coupon
from scan_rewards.rewards.types import CouponStatus, DistributionType

REWARD_TYPES = frozenset({"CASHBACK", "DISCOUNT", "GIFT"})
PROBABILITY_SUM_LIMIT = Decimal("1")


class CampaignDefinitionError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class TierDefinition:
    reward_name: str
    reward_type: str
    reward_value: Decimal
    priority: int
    probability: Decimal = Decimal("0")
    max_winners: int | None = None
    reward_name_hi: str | None = None
    image_url: str | None = None


def is_campaign_active(campaign: Campaign, now_utc: datetime) -> bool:
    return bool(campaign.is_active) and campaign.start_at <= now_utc <= campaign.end_at


def is_coupon_expired(coupon: Coupon, now_utc: datetime) -> bool:
    if coupon.status == CouponStatus.EXPIRED.value:
        return True
    return coupon.expires_at is not None and coupon.expires_at <= now_utc


def validate_campaign_definition(
    *,
    start_at: datetime,
    end_at: datetime,
    distribution_type: DistributionType | str,
    tiers: Sequence[TierDefinition],
) -> None:
    """Check the invariants the redemption path relies on but never re-validates."""
    try:
        distribution = DistributionType(distribution_type)
    except ValueError as exc:
        raise CampaignDefinitionError(f"unknown distribution type: {distribution_type}") from exc

    if end_at <= start_at:
        raise CampaignDefinitionError("end date must be after start date")
    if not tiers:
        raise CampaignDefinitionError("campaign needs at least one tier")

    priorities = [tier.priority for tier in tiers]
    if len(set(priorities)) != len(priorities):
        raise CampaignDefinitionError("tier priorities must be unique")

    for tier in tiers:
        if tier.reward_type not in REWARD_TYPES:
            raise CampaignDefinitionError(f"unknown reward type: {tier.reward_type}")
        if tier.reward_value < 0:
            raise CampaignDefinitionError("reward value must not be negative")
        if not Decimal("0") <= tier.probability <= Decimal("1"):
            raise CampaignDefinitionError("tier probability must be within [0, 1]")
        if tier.max_winners is not None and tier.max_winners <= 0:
            raise CampaignDefinitionError("max winners must be positive")

    if distribution is DistributionType.RANDOM:
        total_probability = sum((tier.probability for tier in tiers), Decimal("0"))
        if total_probability > PROBABILITY_SUM_LIMIT:
            raise CampaignDefinitionError("total probability of all tiers cannot exceed 1")
        return

    ordered = sorted(tiers, key=lambda tier: tier.priority)
    if any(tier.max_winners is None for tier in ordered[:-1]):
        raise CampaignDefinitionError("only the last sequential tier may be uncapped")


def ensure_utc(value: datetime) -> datetime:
    """Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_utc_datetime(value: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(value))
