from scan_rewards.rewards.errors import RewardError
from scan_rewards.rewards.service import RedemptionService, normalize_coupon_code
from scan_rewards.rewards.types import CouponVerification, RedemptionResult, RewardSnapshot

__all__ = [
    "CouponVerification",
    "RedemptionResult",
    "RedemptionService",
    "RewardError",
    "RewardSnapshot",
    "normalize_coupon_code",
]
