from __future__ import annotations

import random
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from scan_rewards.core.config import get_settings
from scan_rewards.db.models.campaign_tiers import CampaignTier
from scan_rewards.db.models.scan_redemptions import ScanRedemption
from scan_rewards.db.repo.campaigns_repo import CampaignsRepo
from scan_rewards.db.repo.coupons_repo import CouponsRepo
from scan_rewards.db.repo.scan_redemptions_repo import ScanRedemptionsRepo
from scan_rewards.rewards.allocation import select_tier
from scan_rewards.rewards.attempt import RedemptionAttempt
from scan_rewards.rewards.campaign_rules import ensure_utc, is_campaign_active, is_coupon_expired
from scan_rewards.rewards.errors import (
    AllRewardsClaimedError,
    CampaignInactiveError,
    CodeInvalidError,
    ConflictError,
    CouponExpiredError,
    CouponUsedError,
    NoCampaignError,
    RewardError,
    TierLimitReachedError,
)
from scan_rewards.rewards.types import (
    CouponStatus,
    CouponVerification,
    DistributionType,
    RedemptionResult,
    RedemptionStage,
    RedemptionStatus,
    RewardSnapshot,
    TierState,
)
from scan_rewards.rewards.unit_of_work import redemption_unit_of_work

logger = structlog.get_logger(__name__)

_SYSTEM_RANDOM = random.SystemRandom()

SampleSource = Callable[[], float]


def normalize_coupon_code(raw_code: str) -> str:
    return raw_code.strip()


def tier_state(tier: CampaignTier) -> TierState:
    return TierState(
        tier_id=tier.id,
        priority=tier.priority,
        weight=float(tier.probability),
        max_winners=tier.max_winners,
        current_winners=tier.current_winners,
    )


class RedemptionService:
    @staticmethod
    async def _validate(
        session: AsyncSession,
        attempt: RedemptionAttempt,
        *,
        require_campaign: bool,
    ) -> None:
        if not attempt.code:
            raise CodeInvalidError

        coupon = await CouponsRepo.get_by_code(session, attempt.code)
        if coupon is None:
            raise CodeInvalidError
        if coupon.status == CouponStatus.USED.value:
            raise CouponUsedError
        if is_coupon_expired(coupon, attempt.now_utc):
            raise CouponExpiredError
        attempt.coupon = coupon

        campaign = None
        if coupon.campaign_id is not None:
            campaign = await CampaignsRepo.get_by_id(session, coupon.campaign_id)
        if campaign is not None and not is_campaign_active(campaign, attempt.now_utc):
            raise CampaignInactiveError
        if campaign is None and require_campaign:
            raise NoCampaignError
        attempt.campaign = campaign

    @staticmethod
    async def _lock(session: AsyncSession, attempt: RedemptionAttempt) -> None:
        assert attempt.coupon is not None
        coupon = await CouponsRepo.get_by_id_for_update(session, attempt.coupon.id)
        if coupon is None:
            raise CodeInvalidError
        if coupon.status == CouponStatus.USED.value:
            raise CouponUsedError
        if is_coupon_expired(coupon, attempt.now_utc):
            raise CouponExpiredError
        attempt.coupon = coupon

        campaign = attempt.campaign
        if campaign is None or campaign.distribution_type != DistributionType.SEQUENTIAL.value:
            return

        # Rank counting for the whole campaign is serialized on the campaign row.
        locked_campaign = await CampaignsRepo.get_for_update(session, campaign.id)
        if locked_campaign is None or not is_campaign_active(locked_campaign, attempt.now_utc):
            raise CampaignInactiveError
        attempt.campaign = locked_campaign

    @staticmethod
    async def _allocate(
        session: AsyncSession,
        attempt: RedemptionAttempt,
        *,
        sample_source: SampleSource,
    ) -> None:
        campaign = attempt.campaign
        if campaign is None:
            return

        attempt.tiers = await CampaignsRepo.list_tiers(session, campaign.id)
        states = [tier_state(tier) for tier in attempt.tiers]
        distribution = DistributionType(campaign.distribution_type)

        if distribution is DistributionType.SEQUENTIAL:
            prior_redemptions = await ScanRedemptionsRepo.count_for_campaign(session, campaign.id)
            allocation = select_tier(distribution, states, prior_redemptions=prior_redemptions)
        else:
            allocation = select_tier(distribution, states, sample=sample_source())

        if allocation is None:
            raise AllRewardsClaimedError
        attempt.allocation = allocation

    @staticmethod
    async def _persist(session: AsyncSession, attempt: RedemptionAttempt) -> ScanRedemption:
        assert attempt.coupon is not None
        tier = attempt.selected_tier

        if tier is not None:
            try:
                new_count = await CampaignsRepo.increment_tier_winners(session, tier.id)
            except IntegrityError as exc:
                raise TierLimitReachedError from exc
            if new_count is None:
                raise ConflictError
            if tier.max_winners is not None and new_count > tier.max_winners:
                raise TierLimitReachedError

        marked = await CouponsRepo.mark_used(
            session,
            coupon_id=attempt.coupon.id,
            user_id=attempt.user_id,
            now_utc=attempt.now_utc,
        )
        if not marked:
            raise CouponUsedError

        try:
            return await ScanRedemptionsRepo.create(
                session,
                redemption=ScanRedemption(
                    id=uuid4(),
                    coupon_id=attempt.coupon.id,
                    campaign_id=attempt.campaign.id if attempt.campaign is not None else None,
                    campaign_tier_id=tier.id if tier is not None else None,
                    user_id=attempt.user_id,
                    prize_type=tier.reward_type if tier is not None else None,
                    prize_value=tier.reward_value if tier is not None else None,
                    prize_name=tier.reward_name if tier is not None else None,
                    assigned_rank=attempt.allocation.rank if attempt.allocation is not None else None,
                    status=RedemptionStatus.PENDING_VERIFICATION.value,
                    scanned_at=attempt.now_utc,
                ),
            )
        except IntegrityError as exc:
            raise ConflictError from exc

    @staticmethod
    async def redeem(
        session: AsyncSession,
        *,
        code: str,
        user_id: UUID,
        now_utc: datetime | None = None,
        sample_source: SampleSource | None = None,
        require_campaign: bool = True,
    ) -> RedemptionResult:
        """Run one redemption attempt inside the caller's transaction.

        Every write happens in this transaction; raising any ``RewardError``
        leaves it to the caller to roll back.
        """
        attempt = RedemptionAttempt(
            code=normalize_coupon_code(code),
            user_id=user_id,
            now_utc=ensure_utc(now_utc or datetime.now(timezone.utc)),
        )

        try:
            await RedemptionService._validate(session, attempt, require_campaign=require_campaign)
            attempt.advance(RedemptionStage.LOCKING)
            await RedemptionService._lock(session, attempt)
            attempt.advance(RedemptionStage.ALLOCATING)
            await RedemptionService._allocate(
                session,
                attempt,
                sample_source=sample_source or _SYSTEM_RANDOM.random,
            )
            attempt.advance(RedemptionStage.PERSISTING)
            redemption = await RedemptionService._persist(session, attempt)
            attempt.advance(RedemptionStage.COMMITTED)
        except RewardError as exc:
            attempt.abort()
            logger.info(
                "scan_redeem_aborted",
                stage=attempt.aborted_at_stage.value if attempt.aborted_at_stage else None,
                error_code=exc.code,
                retryable=exc.retryable,
                coupon_id=attempt.coupon.id if attempt.coupon is not None else None,
                user_id=str(user_id),
            )
            raise

        tier = attempt.selected_tier
        logger.info(
            "scan_redeem_committed",
            redemption_id=str(redemption.id),
            coupon_id=redemption.coupon_id,
            campaign_id=redemption.campaign_id,
            tier_id=redemption.campaign_tier_id,
            assigned_rank=redemption.assigned_rank,
            user_id=str(user_id),
        )
        return RedemptionResult(
            redemption_id=redemption.id,
            coupon_code=attempt.coupon.code,
            tier=(
                RewardSnapshot(
                    name=tier.reward_name,
                    type=tier.reward_type,
                    value=tier.reward_value,
                    image_url=tier.image_url,
                )
                if tier is not None
                else None
            ),
            assigned_rank=redemption.assigned_rank,
            status=redemption.status,
            redeemed_at=redemption.scanned_at,
            tier_id=redemption.campaign_tier_id,
            campaign_id=redemption.campaign_id,
        )

    @staticmethod
    async def redeem_code(
        *,
        code: str,
        user_id: UUID,
        now_utc: datetime | None = None,
        sample_source: SampleSource | None = None,
        require_campaign: bool = True,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        max_retries: int | None = None,
    ) -> RedemptionResult:
        settings = get_settings()
        if session_factory is None:
            from scan_rewards.db.session import SessionLocal

            session_factory = SessionLocal
        retries_left = settings.redeem_max_retries if max_retries is None else max_retries

        while True:
            try:
                async with redemption_unit_of_work(
                    session_factory,
                    lock_timeout_ms=settings.redeem_lock_timeout_ms,
                ) as session:
                    return await RedemptionService.redeem(
                        session,
                        code=code,
                        user_id=user_id,
                        now_utc=now_utc,
                        sample_source=sample_source,
                        require_campaign=require_campaign,
                    )
            except RewardError as exc:
                if not exc.retryable or retries_left <= 0:
                    raise
                retries_left -= 1
                logger.warning(
                    "scan_redeem_retrying",
                    error_code=exc.code,
                    retries_left=retries_left,
                    user_id=str(user_id),
                )

    @staticmethod
    async def verify(
        session: AsyncSession,
        *,
        code: str,
        now_utc: datetime | None = None,
        require_campaign: bool = True,
    ) -> CouponVerification:
        """Run the redemption checks without locking or consuming the code.

        No prize is previewed: the tier is only decided when the code is redeemed.
        """
        attempt = RedemptionAttempt(
            code=normalize_coupon_code(code),
            user_id=None,
            now_utc=ensure_utc(now_utc or datetime.now(timezone.utc)),
        )
        try:
            await RedemptionService._validate(session, attempt, require_campaign=require_campaign)
        except RewardError as exc:
            logger.info("scan_verify_rejected", error_code=exc.code)
            raise

        coupon = attempt.coupon
        assert coupon is not None
        campaign = attempt.campaign
        return CouponVerification(
            coupon_code=coupon.code,
            coupon_status=coupon.status,
            expires_at=coupon.expires_at,
            campaign_id=campaign.id if campaign is not None else None,
            campaign_name=campaign.name if campaign is not None else None,
            campaign_ends_at=campaign.end_at if campaign is not None else None,
            distribution_type=campaign.distribution_type if campaign is not None else None,
        )

    @staticmethod
    async def verify_code(
        *,
        code: str,
        now_utc: datetime | None = None,
        require_campaign: bool = True,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> CouponVerification:
        if session_factory is None:
            from scan_rewards.db.session import SessionLocal

            session_factory = SessionLocal
        async with session_factory() as session:
            return await RedemptionService.verify(
                session,
                code=code,
                now_utc=now_utc,
                require_campaign=require_campaign,
            )
