class RewardError(Exception):
    code = "E_REWARD"
    message = "The code could not be redeemed."
    retryable = False


class CodeInvalidError(RewardError):
    code = "E_CODE_INVALID"
    message = "This code is invalid."


class CouponUsedError(RewardError):
    code = "E_COUPON_USED"
    message = "This code has already been used."


class CouponExpiredError(RewardError):
    code = "E_COUPON_EXPIRED"
    message = "This code has expired."


class CampaignInactiveError(RewardError):
    code = "E_CAMPAIGN_INACTIVE"
    message = "This campaign is not active."


class NoCampaignError(RewardError):
    code = "E_NO_CAMPAIGN"
    message = "No campaign is linked to this code."


class AllRewardsClaimedError(RewardError):
    code = "E_ALL_REWARDS_CLAIMED"
    message = "All rewards for this campaign have been claimed."


class TierLimitReachedError(RewardError):
    code = "E_TIER_LIMIT_REACHED"
    message = "Please try again."
    retryable = True


class ConflictError(RewardError):
    code = "E_CONFLICT"
    message = "Please try again."
    retryable = True
