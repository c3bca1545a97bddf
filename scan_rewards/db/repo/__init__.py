from scan_rewards.db.repo.campaigns_repo import CampaignsRepo
from scan_rewards.db.repo.coupons_repo import CouponsRepo
from scan_rewards.db.repo.scan_redemptions_repo import ScanRedemptionsRepo

__all__ = [
    "CampaignsRepo",
    "CouponsRepo",
    "ScanRedemptionsRepo",
]
