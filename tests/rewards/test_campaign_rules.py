from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from scan_rewards.rewards.campaign_rules import (
    CampaignDefinitionError,
    TierDefinition,
    ensure_utc,
    is_campaign_active,
    is_coupon_expired,
    parse_utc_datetime,
    validate_campaign_definition,
)

NOW_UTC = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
START = NOW_UTC - timedelta(days=1)
END = NOW_UTC + timedelta(days=1)


def _tier(priority: int, *, probability: str = "0.25", max_winners: int | None = 10, **overrides) -> TierDefinition:
    values = {
        "reward_name": f"Tier {priority}",
        "reward_type": "CASHBACK",
        "reward_value": Decimal("10.00"),
        "priority": priority,
        "probability": Decimal(probability),
        "max_winners": max_winners,
    }
    values.update(overrides)
    return TierDefinition(**values)


def test_is_campaign_active_requires_flag_and_window() -> None:
    campaign = SimpleNamespace(is_active=True, start_at=START, end_at=END)
    assert is_campaign_active(campaign, NOW_UTC) is True
    assert is_campaign_active(campaign, START) is True
    assert is_campaign_active(campaign, END) is True
    assert is_campaign_active(campaign, END + timedelta(seconds=1)) is False
    assert is_campaign_active(campaign, START - timedelta(seconds=1)) is False

    campaign.is_active = False
    assert is_campaign_active(campaign, NOW_UTC) is False


def test_is_coupon_expired_checks_status_and_deadline() -> None:
    assert is_coupon_expired(SimpleNamespace(status="UNUSED", expires_at=None), NOW_UTC) is False
    assert is_coupon_expired(SimpleNamespace(status="EXPIRED", expires_at=None), NOW_UTC) is True
    assert is_coupon_expired(SimpleNamespace(status="UNUSED", expires_at=NOW_UTC), NOW_UTC) is True
    assert (
        is_coupon_expired(SimpleNamespace(status="UNUSED", expires_at=END), NOW_UTC) is False
    )


def test_validate_campaign_definition_accepts_random_campaign() -> None:
    validate_campaign_definition(
        start_at=START,
        end_at=END,
        distribution_type="RANDOM",
        tiers=[_tier(1, probability="0.1"), _tier(2, probability="0.4"), _tier(3, probability="0.5")],
    )


def test_validate_campaign_definition_accepts_sequential_with_uncapped_tail() -> None:
    validate_campaign_definition(
        start_at=START,
        end_at=END,
        distribution_type="SEQUENTIAL",
        tiers=[_tier(2, max_winners=None), _tier(1, max_winners=5)],
    )


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"end_at": START}, "end date must be after start date"),
        ({"distribution_type": "LOTTERY"}, "unknown distribution type"),
        ({"tiers": []}, "at least one tier"),
        ({"tiers": [_tier(1), _tier(1)]}, "priorities must be unique"),
        ({"tiers": [_tier(1, reward_type="POINTS")]}, "unknown reward type"),
        ({"tiers": [_tier(1, reward_value=Decimal("-1"))]}, "must not be negative"),
        ({"tiers": [_tier(1, probability="1.5")]}, r"within \[0, 1\]"),
        ({"tiers": [_tier(1, max_winners=0)]}, "max winners must be positive"),
        (
            {"tiers": [_tier(1, probability="0.6"), _tier(2, probability="0.5")]},
            "cannot exceed 1",
        ),
        (
            {
                "distribution_type": "SEQUENTIAL",
                "tiers": [_tier(1, max_winners=None), _tier(2, max_winners=3)],
            },
            "only the last sequential tier may be uncapped",
        ),
    ],
)
def test_validate_campaign_definition_rejects_broken_definitions(kwargs: dict, message: str) -> None:
    params = {
        "start_at": START,
        "end_at": END,
        "distribution_type": "RANDOM",
        "tiers": [_tier(1)],
    }
    params.update(kwargs)

    with pytest.raises(CampaignDefinitionError, match=message):
        validate_campaign_definition(**params)


def test_parse_utc_datetime_supports_naive_and_aware() -> None:
    assert parse_utc_datetime("2026-10-19T12:00:00") == NOW_UTC
    assert parse_utc_datetime("2026-10-19T14:00:00+02:00") == NOW_UTC


def test_ensure_utc_treats_naive_as_utc_and_converts_offsets() -> None:
    assert ensure_utc(datetime(2026, 10, 19, 12, 0)) == NOW_UTC
    assert ensure_utc(datetime(2026, 10, 19, 12, 0)).tzinfo is timezone.utc

    ist = timezone(timedelta(hours=5, minutes=30))
    converted = ensure_utc(datetime(2026, 10, 19, 17, 30, tzinfo=ist))
    assert converted == NOW_UTC
    assert converted.tzinfo is timezone.utc


def test_is_campaign_active_with_normalized_naive_now() -> None:
    campaign = SimpleNamespace(is_active=True, start_at=START, end_at=END)

    assert is_campaign_active(campaign, ensure_utc(NOW_UTC.replace(tzinfo=None))) is True
