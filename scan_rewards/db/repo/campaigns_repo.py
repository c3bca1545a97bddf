from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from scan_rewards.db.models.campaign_tiers import CampaignTier
from scan_rewards.db.models.campaigns import Campaign


class CampaignsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, campaign_id: int) -> Campaign | None:
        return await session.get(Campaign, campaign_id)

    @staticmethod
    async def get_for_update(session: AsyncSession, campaign_id: int) -> Campaign | None:
        stmt = (
            select(Campaign)
            .where(Campaign.id == campaign_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_tiers(session: AsyncSession, campaign_id: int) -> list[CampaignTier]:
        stmt = (
            select(CampaignTier)
            .where(CampaignTier.campaign_id == campaign_id)
            .order_by(CampaignTier.priority.asc(), CampaignTier.id.asc())
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_campaign_with_tiers(
        session: AsyncSession,
        campaign_id: int,
    ) -> tuple[Campaign, list[CampaignTier]] | None:
        """Unlocked read for setup and reporting; redemption re-reads tiers after taking its locks."""
        campaign = await CampaignsRepo.get_by_id(session, campaign_id)
        if campaign is None:
            return None
        tiers = await CampaignsRepo.list_tiers(session, campaign_id)
        return campaign, tiers

    @staticmethod
    async def increment_tier_winners(session: AsyncSession, tier_id: int) -> int | None:
        stmt = (
            update(CampaignTier)
            .where(CampaignTier.id == tier_id)
            .values(current_winners=CampaignTier.current_winners + 1)
            .returning(CampaignTier.current_winners)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        campaign: Campaign,
        tiers: Sequence[CampaignTier],
    ) -> Campaign:
        session.add(campaign)
        await session.flush()
        for tier in tiers:
            tier.campaign_id = campaign.id
        session.add_all(tiers)
        await session.flush()
        return campaign

    @staticmethod
    async def deactivate_ended_campaigns(session: AsyncSession, *, now_utc: datetime) -> int:
        stmt = (
            update(Campaign)
            .where(
                Campaign.is_active.is_(True),
                Campaign.end_at < now_utc,
            )
            .values(is_active=False, updated_at=now_utc)
        )
        result = await session.execute(stmt)
        return int(getattr(result, "rowcount", 0) or 0)
