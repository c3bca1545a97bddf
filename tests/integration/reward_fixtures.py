from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from scan_rewards.db.models.campaign_tiers import CampaignTier
from scan_rewards.db.models.campaigns import Campaign
from scan_rewards.db.models.coupons import Coupon
from scan_rewards.db.repo.campaigns_repo import CampaignsRepo
from scan_rewards.db.repo.coupons_repo import CouponsRepo
from scan_rewards.db.session import SessionLocal

UTC = timezone.utc
NOW_UTC = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class TierSeed:
    reward_name: str
    priority: int
    probability: str = "0"
    max_winners: int | None = None
    reward_type: str = "CASHBACK"
    reward_value: str = "10.00"


async def create_campaign(
    *,
    tiers: list[TierSeed],
    distribution_type: str = "RANDOM",
    now_utc: datetime = NOW_UTC,
    is_active: bool = True,
    start_at: datetime | None = None,
    end_at: datetime | None = None,
) -> tuple[int, list[int]]:
    async with SessionLocal.begin() as session:
        campaign = await CampaignsRepo.create(
            session,
            campaign=Campaign(
                name=f"campaign-{uuid4().hex[:8]}",
                description=None,
                start_at=start_at or now_utc - timedelta(days=1),
                end_at=end_at or now_utc + timedelta(days=1),
                is_active=is_active,
                distribution_type=distribution_type,
                created_at=now_utc,
                updated_at=now_utc,
            ),
            tiers=[
                CampaignTier(
                    reward_name=seed.reward_name,
                    reward_type=seed.reward_type,
                    reward_value=Decimal(seed.reward_value),
                    probability=Decimal(seed.probability),
                    priority=seed.priority,
                    max_winners=seed.max_winners,
                    current_winners=0,
                )
                for seed in tiers
            ],
        )
        loaded = await CampaignsRepo.get_campaign_with_tiers(session, campaign.id)
        assert loaded is not None
        return campaign.id, [tier.id for tier in loaded[1]]


async def create_codes(
    codes: list[str],
    *,
    campaign_id: int | None,
    expires_at: datetime | None = None,
    now_utc: datetime = NOW_UTC,
) -> list[int]:
    async with SessionLocal.begin() as session:
        created = await CouponsRepo.create_many(
            session,
            codes=codes,
            campaign_id=campaign_id,
            batch_number="B-INTEGRATION",
            expires_at=expires_at,
            now_utc=now_utc,
        )
        return [coupon.id for coupon in created]


async def get_coupon(code: str) -> Coupon | None:
    async with SessionLocal() as session:
        return await CouponsRepo.get_by_code(session, code)


async def get_tier_winners(tier_id: int) -> int:
    async with SessionLocal() as session:
        tier = await session.get(CampaignTier, tier_id)
        assert tier is not None
        return tier.current_winners


def new_user_id() -> UUID:
    return uuid4()
