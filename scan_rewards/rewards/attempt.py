from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from scan_rewards.db.models.campaign_tiers import CampaignTier
from scan_rewards.db.models.campaigns import Campaign
from scan_rewards.db.models.coupons import Coupon
from scan_rewards.rewards.types import RedemptionStage, TierAllocation

_ALLOWED_TRANSITIONS: dict[RedemptionStage, frozenset[RedemptionStage]] = {
    RedemptionStage.VALIDATING: frozenset({RedemptionStage.LOCKING, RedemptionStage.ABORTED}),
    RedemptionStage.LOCKING: frozenset({RedemptionStage.ALLOCATING, RedemptionStage.ABORTED}),
    RedemptionStage.ALLOCATING: frozenset({RedemptionStage.PERSISTING, RedemptionStage.ABORTED}),
    RedemptionStage.PERSISTING: frozenset({RedemptionStage.COMMITTED, RedemptionStage.ABORTED}),
    RedemptionStage.COMMITTED: frozenset(),
    RedemptionStage.ABORTED: frozenset(),
}


class InvalidStageTransitionError(RuntimeError):
    def __init__(self, current: RedemptionStage, requested: RedemptionStage) -> None:
        super().__init__(f"cannot move redemption from {current.value} to {requested.value}")
        self.current = current
        self.requested = requested


@dataclass(slots=True)
class RedemptionAttempt:
    """Mutable state of one redemption attempt as it moves through its stages."""

    code: str
    user_id: UUID | None
    now_utc: datetime
    stage: RedemptionStage = RedemptionStage.VALIDATING
    coupon: Coupon | None = None
    campaign: Campaign | None = None
    tiers: list[CampaignTier] = field(default_factory=list)
    allocation: TierAllocation | None = None
    aborted_at_stage: RedemptionStage | None = None

    def advance(self, stage: RedemptionStage) -> None:
        if stage not in _ALLOWED_TRANSITIONS[self.stage]:
            raise InvalidStageTransitionError(self.stage, stage)
        self.stage = stage

    def abort(self) -> None:
        if self.stage in (RedemptionStage.COMMITTED, RedemptionStage.ABORTED):
            return
        self.aborted_at_stage = self.stage
        self.stage = RedemptionStage.ABORTED

    @property
    def selected_tier(self) -> CampaignTier | None:
        if self.allocation is None:
            return None
        tier_id = self.allocation.tier.tier_id
        return next((tier for tier in self.tiers if tier.id == tier_id), None)
