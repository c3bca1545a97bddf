from __future__ import annotations

from datetime import datetime, timezone

import structlog

from scan_rewards.db.repo.campaigns_repo import CampaignsRepo
from scan_rewards.db.repo.coupons_repo import CouponsRepo
from scan_rewards.db.session import SessionLocal
from scan_rewards.workers.asyncio_runner import run_async_job
from scan_rewards.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


async def run_coupon_expiry_async(*, now_utc: datetime | None = None) -> dict[str, int]:
    now_utc = now_utc or datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        expired_count = await CouponsRepo.expire_overdue_coupons(session, now_utc=now_utc)

    result = {"expired_coupons": expired_count}
    logger.info("coupon_expiry_finished", **result)
    return result


async def run_campaign_rollover_async(*, now_utc: datetime | None = None) -> dict[str, int]:
    now_utc = now_utc or datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        deactivated_count = await CampaignsRepo.deactivate_ended_campaigns(session, now_utc=now_utc)

    result = {"deactivated_campaigns": deactivated_count}
    logger.info("campaign_rollover_finished", **result)
    return result


@celery_app.task(name="scan_rewards.workers.tasks.coupon_maintenance.run_coupon_expiry")
def run_coupon_expiry() -> dict[str, int]:
    return run_async_job(run_coupon_expiry_async())


@celery_app.task(name="scan_rewards.workers.tasks.coupon_maintenance.run_campaign_rollover")
def run_campaign_rollover() -> dict[str, int]:
    return run_async_job(run_campaign_rollover_async())


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "coupon-expiry-every-10-minutes": {
            "task": "scan_rewards.workers.tasks.coupon_maintenance.run_coupon_expiry",
            "schedule": 600.0,
            "options": {"queue": "q_normal"},
        },
        "campaign-rollover-every-10-minutes": {
            "task": "scan_rewards.workers.tasks.coupon_maintenance.run_campaign_rollover",
            "schedule": 600.0,
            "options": {"queue": "q_normal"},
        },
    }
)
