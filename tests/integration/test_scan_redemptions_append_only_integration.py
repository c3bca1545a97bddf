from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from scan_rewards.db.session import SessionLocal
from scan_rewards.rewards.service import RedemptionService
from tests.integration.reward_fixtures import NOW_UTC, TierSeed, create_campaign, create_codes, new_user_id


async def _redeemed_id() -> str:
    campaign_id, _ = await create_campaign(
        tiers=[TierSeed(reward_name="Gift", priority=1, probability="1.0")],
    )
    await create_codes(["APPEND-1"], campaign_id=campaign_id)
    result = await RedemptionService.redeem_code(code="APPEND-1", user_id=new_user_id(), now_utc=NOW_UTC)
    return str(result.redemption_id)


@pytest.mark.asyncio
async def test_scan_redemptions_block_allocation_updates_and_delete() -> None:
    redemption_id = await _redeemed_id()

    with pytest.raises(DBAPIError):
        async with SessionLocal.begin() as session:
            await session.execute(
                text("UPDATE scan_redemptions SET prize_name = 'Swapped' WHERE id = :redemption_id"),
                {"redemption_id": redemption_id},
            )

    with pytest.raises(DBAPIError):
        async with SessionLocal.begin() as session:
            await session.execute(
                text("UPDATE scan_redemptions SET assigned_rank = 99 WHERE id = :redemption_id"),
                {"redemption_id": redemption_id},
            )

    with pytest.raises(DBAPIError):
        async with SessionLocal.begin() as session:
            await session.execute(
                text("DELETE FROM scan_redemptions WHERE id = :redemption_id"),
                {"redemption_id": redemption_id},
            )


@pytest.mark.asyncio
async def test_scan_redemptions_allow_status_progression() -> None:
    redemption_id = await _redeemed_id()

    async with SessionLocal.begin() as session:
        await session.execute(
            text("UPDATE scan_redemptions SET status = 'VERIFIED' WHERE id = :redemption_id"),
            {"redemption_id": redemption_id},
        )

    async with SessionLocal() as session:
        status = await session.scalar(
            text("SELECT status FROM scan_redemptions WHERE id = :redemption_id"),
            {"redemption_id": redemption_id},
        )
    assert status == "VERIFIED"
