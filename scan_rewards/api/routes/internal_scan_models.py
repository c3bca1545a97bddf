from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class ScanRedeemRequest(BaseModel):
    user_id: UUID
    code: str = Field(min_length=1, max_length=64)


class ScanRewardResponse(BaseModel):
    name: str
    type: str
    value: Decimal
    image_url: str | None = None


class ScanRedeemResponse(BaseModel):
    redemption_id: UUID
    coupon_code: str
    tier: ScanRewardResponse | None = None
    assigned_rank: int | None = None
    status: str
    redeemed_at: datetime


class ScanVerifyRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)


class ScanVerifyResponse(BaseModel):
    coupon_code: str
    coupon_status: str
    expires_at: datetime | None = None
    campaign_id: int | None = None
    campaign_name: str | None = None
    campaign_ends_at: datetime | None = None
    distribution_type: str | None = None
