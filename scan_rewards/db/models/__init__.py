from scan_rewards.db.models.campaign_tiers import CampaignTier
from scan_rewards.db.models.campaigns import Campaign
from scan_rewards.db.models.coupons import Coupon
from scan_rewards.db.models.scan_redemptions import ScanRedemption

__all__ = [
    "Campaign",
    "CampaignTier",
    "Coupon",
    "ScanRedemption",
]
