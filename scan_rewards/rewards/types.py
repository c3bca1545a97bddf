from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class DistributionType(str, Enum):
    RANDOM = "RANDOM"
    SEQUENTIAL = "SEQUENTIAL"


class CouponStatus(str, Enum):
    UNUSED = "UNUSED"
    USED = "USED"
    EXPIRED = "EXPIRED"


class RedemptionStatus(str, Enum):
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"
    CLAIMED = "CLAIMED"
    REJECTED = "REJECTED"


class RedemptionStage(str, Enum):
    VALIDATING = "VALIDATING"
    LOCKING = "LOCKING"
    ALLOCATING = "ALLOCATING"
    PERSISTING = "PERSISTING"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"


@dataclass(frozen=True, slots=True)
class TierState:
    """Point-in-time view of a campaign tier used by the allocation rules."""

    tier_id: int
    priority: int
    weight: float
    max_winners: int | None
    current_winners: int

    @property
    def has_capacity(self) -> bool:
        return self.max_winners is None or self.current_winners < self.max_winners


@dataclass(frozen=True, slots=True)
class TierAllocation:
    tier: TierState
    rank: int | None = None


@dataclass(frozen=True, slots=True)
class RewardSnapshot:
    name: str
    type: str
    value: Decimal
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class RedemptionResult:
    redemption_id: UUID
    coupon_code: str
    tier: RewardSnapshot | None
    assigned_rank: int | None
    status: str
    redeemed_at: datetime
    tier_id: int | None = None
    campaign_id: int | None = None


@dataclass(frozen=True, slots=True)
class CouponVerification:
    coupon_code: str
    coupon_status: str
    expires_at: datetime | None
    campaign_id: int | None
    campaign_name: str | None
    campaign_ends_at: datetime | None
    distribution_type: str | None
