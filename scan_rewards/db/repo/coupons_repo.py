from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from scan_rewards.db.models.coupons import Coupon


class CouponsRepo:
    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> Coupon | None:
        stmt = select(Coupon).where(Coupon.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, coupon_id: int) -> Coupon | None:
        stmt = (
            select(Coupon)
            .where(Coupon.id == coupon_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def mark_used(
        session: AsyncSession,
        *,
        coupon_id: int,
        user_id: UUID,
        now_utc: datetime,
    ) -> bool:
        stmt = (
            update(Coupon)
            .where(Coupon.id == coupon_id, Coupon.status == "UNUSED")
            .values(status="USED", used_by=user_id, used_at=now_utc)
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return int(getattr(result, "rowcount", 0) or 0) == 1

    @staticmethod
    async def create_many(
        session: AsyncSession,
        *,
        codes: Sequence[str],
        campaign_id: int | None,
        batch_number: str | None,
        expires_at: datetime | None,
        now_utc: datetime,
    ) -> list[Coupon]:
        coupons = [
            Coupon(
                code=code,
                campaign_id=campaign_id,
                batch_number=batch_number,
                status="UNUSED",
                expires_at=expires_at,
                created_at=now_utc,
            )
            for code in codes
        ]
        session.add_all(coupons)
        await session.flush()
        return coupons

    @staticmethod
    async def list_existing_codes(session: AsyncSession, codes: Sequence[str]) -> set[str]:
        if not codes:
            return set()
        stmt = select(Coupon.code).where(Coupon.code.in_(tuple(codes)))
        result = await session.execute(stmt)
        return set(result.scalars().all())

    @staticmethod
    async def count_by_status(
        session: AsyncSession,
        *,
        campaign_id: int | None = None,
    ) -> dict[str, int]:
        stmt = select(Coupon.status, func.count(Coupon.id)).group_by(Coupon.status)
        if campaign_id is not None:
            stmt = stmt.where(Coupon.campaign_id == campaign_id)
        result = await session.execute(stmt)
        return {str(status): int(count) for status, count in result.all()}

    @staticmethod
    async def expire_overdue_coupons(session: AsyncSession, *, now_utc: datetime) -> int:
        stmt = (
            update(Coupon)
            .where(
                Coupon.status == "UNUSED",
                Coupon.expires_at.is_not(None),
                Coupon.expires_at <= now_utc,
            )
            .values(status="EXPIRED")
        )
        result = await session.execute(stmt)
        return int(getattr(result, "rowcount", 0) or 0)
