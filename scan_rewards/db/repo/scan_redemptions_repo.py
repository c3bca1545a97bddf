from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scan_rewards.db.models.scan_redemptions import ScanRedemption


class ScanRedemptionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, redemption_id: UUID) -> ScanRedemption | None:
        return await session.get(ScanRedemption, redemption_id)

    @staticmethod
    async def get_by_coupon_id(session: AsyncSession, coupon_id: int) -> ScanRedemption | None:
        stmt = select(ScanRedemption).where(ScanRedemption.coupon_id == coupon_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def count_for_campaign(session: AsyncSession, campaign_id: int) -> int:
        stmt = select(func.count(ScanRedemption.id)).where(
            ScanRedemption.campaign_id == campaign_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_ranks_for_campaign(session: AsyncSession, campaign_id: int) -> list[int]:
        stmt = (
            select(ScanRedemption.assigned_rank)
            .where(
                ScanRedemption.campaign_id == campaign_id,
                ScanRedemption.assigned_rank.is_not(None),
            )
            .order_by(ScanRedemption.assigned_rank.asc())
        )
        result = await session.execute(stmt)
        return [int(rank) for rank in result.scalars().all()]

    @staticmethod
    async def create(session: AsyncSession, *, redemption: ScanRedemption) -> ScanRedemption:
        session.add(redemption)
        await session.flush()
        return redemption
