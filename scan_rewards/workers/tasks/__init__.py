from scan_rewards.workers.tasks.coupon_maintenance import run_campaign_rollover, run_coupon_expiry

__all__ = [
    "run_campaign_rollover",
    "run_coupon_expiry",
]
