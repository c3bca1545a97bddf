from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request

from scan_rewards.core.config import get_settings
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
from scan_rewards.rewards.service import RedemptionService
from scan_rewards.rewards.types import CouponVerification, RedemptionResult
from scan_rewards.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

from .internal_scan_models import (
    ScanRedeemRequest,
    ScanRedeemResponse,
    ScanRewardResponse,
    ScanVerifyRequest,
    ScanVerifyResponse,
)

router = APIRouter(tags=["internal", "scan"])
logger = structlog.get_logger(__name__)

ERROR_STATUS_CODES: dict[type[RewardError], int] = {
    CodeInvalidError: 404,
    CouponUsedError: 409,
    CouponExpiredError: 410,
    CampaignInactiveError: 422,
    NoCampaignError: 422,
    AllRewardsClaimedError: 410,
    TierLimitReachedError: 409,
    ConflictError: 409,
}


def _assert_internal_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(
        request,
        trusted_proxies=getattr(settings, "internal_api_trusted_proxies", ""),
    )

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning("internal_scan_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_internal_request_authenticated(request, expected_token=settings.internal_api_token):
        logger.warning(
            "internal_scan_auth_failed",
            reason="invalid_credentials",
            client_ip=client_ip,
        )
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def _as_response(result: RedemptionResult) -> ScanRedeemResponse:
    tier = None
    if result.tier is not None:
        tier = ScanRewardResponse(
            name=result.tier.name,
            type=result.tier.type,
            value=result.tier.value,
            image_url=result.tier.image_url,
        )
    return ScanRedeemResponse(
        redemption_id=result.redemption_id,
        coupon_code=result.coupon_code,
        tier=tier,
        assigned_rank=result.assigned_rank,
        status=result.status,
        redeemed_at=result.redeemed_at,
    )


def _as_verify_response(verification: CouponVerification) -> ScanVerifyResponse:
    return ScanVerifyResponse(
        coupon_code=verification.coupon_code,
        coupon_status=verification.coupon_status,
        expires_at=verification.expires_at,
        campaign_id=verification.campaign_id,
        campaign_name=verification.campaign_name,
        campaign_ends_at=verification.campaign_ends_at,
        distribution_type=verification.distribution_type,
    )


def _as_http_error(exc: RewardError) -> HTTPException:
    status_code = ERROR_STATUS_CODES.get(type(exc), 409)
    return HTTPException(
        status_code=status_code,
        detail={"code": exc.code, "message": exc.message},
    )


@router.post("/internal/scan/redeem", response_model=ScanRedeemResponse)
async def redeem_scan_code(payload: ScanRedeemRequest, request: Request) -> ScanRedeemResponse:
    _assert_internal_access(request)

    try:
        result = await RedemptionService.redeem_code(code=payload.code, user_id=payload.user_id)
    except RewardError as exc:
        raise _as_http_error(exc) from exc

    return _as_response(result)


@router.post("/internal/scan/verify", response_model=ScanVerifyResponse)
async def verify_scan_code(payload: ScanVerifyRequest, request: Request) -> ScanVerifyResponse:
    _assert_internal_access(request)

    try:
        verification = await RedemptionService.verify_code(code=payload.code)
    except RewardError as exc:
        raise _as_http_error(exc) from exc

    return _as_verify_response(verification)
