"""Tier selection rules for RANDOM and SEQUENTIAL campaigns.

Everything here is pure: callers pass tier snapshots and, for RANDOM
campaigns, one uniform sample in ``[0, 1)``. Tiers are always walked in
ascending ``(priority, tier_id)`` order; that order decides which tier
absorbs floating-point residue in the weighted walk and which block of
ranks each tier owns in the sequential walk.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from scan_rewards.rewards.types import DistributionType, TierAllocation, TierState


def walk_order(tiers: Iterable[TierState]) -> list[TierState]:
    return sorted(tiers, key=lambda tier: (tier.priority, tier.tier_id))


def eligible_tiers(tiers: Iterable[TierState]) -> list[TierState]:
    return [tier for tier in walk_order(tiers) if tier.has_capacity]


def draw_weighted_tier(tiers: Sequence[TierState], *, sample: float) -> TierState | None:
    if not 0.0 <= sample < 1.0:
        raise ValueError("sample must be in [0, 1)")

    candidates = eligible_tiers(tiers)
    if not candidates:
        return None

    total_weight = sum(max(tier.weight, 0.0) for tier in candidates)
    remaining = sample * total_weight
    for tier in candidates:
        weight = max(tier.weight, 0.0)
        if remaining < weight:
            return tier
        remaining -= weight

    # Rounding residue (or an all-zero weight set) falls through to the last tier.
    return candidates[-1]


def assign_sequential_tier(
    tiers: Sequence[TierState],
    *,
    prior_redemptions: int,
) -> TierAllocation | None:
    if prior_redemptions < 0:
        raise ValueError("prior_redemptions must be non-negative")

    rank = prior_redemptions + 1
    block_start = 0
    for tier in walk_order(tiers):
        if tier.max_winners is None:
            return TierAllocation(tier=tier, rank=rank)
        block_end = block_start + tier.max_winners
        if block_start < rank <= block_end:
            return TierAllocation(tier=tier, rank=rank)
        block_start = block_end

    return None


def select_tier(
    distribution_type: DistributionType | str,
    tiers: Sequence[TierState],
    *,
    sample: float | None = None,
    prior_redemptions: int | None = None,
) -> TierAllocation | None:
    distribution = DistributionType(distribution_type)

    if distribution is DistributionType.SEQUENTIAL:
        if prior_redemptions is None:
            raise ValueError("prior_redemptions is required for SEQUENTIAL campaigns")
        return assign_sequential_tier(tiers, prior_redemptions=prior_redemptions)

    if sample is None:
        raise ValueError("sample is required for RANDOM campaigns")
    selected = draw_weighted_tier(tiers, sample=sample)
    if selected is None:
        return None
    return TierAllocation(tier=selected)
