from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from scan_rewards.db.models.campaign_tiers import CampaignTier
from scan_rewards.db.models.campaigns import Campaign
from scan_rewards.db.repo.campaigns_repo import CampaignsRepo
from scan_rewards.db.repo.coupons_repo import CouponsRepo
from scan_rewards.db.session import SessionLocal
from scan_rewards.rewards.campaign_rules import (
    CampaignDefinitionError,
    TierDefinition,
    parse_utc_datetime,
    validate_campaign_definition,
)
from scan_rewards.rewards.service import normalize_coupon_code
from scan_rewards.rewards.types import CouponStatus, DistributionType

MAX_CODE_LENGTH = 64


@dataclass(slots=True)
class CampaignDefinition:
    name: str
    start_at: datetime
    end_at: datetime
    distribution_type: str
    tiers: list[TierDefinition] = field(default_factory=list)
    description: str | None = None
    is_active: bool = True


def _as_decimal(value: Any, *, field_name: str) -> Decimal:
    try:
        parsed = Decimal(str(value))
    except InvalidOperation as exc:
        raise CampaignDefinitionError(f"{field_name} must be a number") from exc
    if not parsed.is_finite():
        raise CampaignDefinitionError(f"{field_name} must be a finite number")
    return parsed


def _as_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool):
        raise CampaignDefinitionError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise CampaignDefinitionError(f"{field_name} must be an integer") from exc


def _parse_tier(raw: dict[str, Any]) -> TierDefinition:
    try:
        return TierDefinition(
            reward_name=str(raw["reward_name"]),
            reward_type=str(raw["reward_type"]),
            reward_value=_as_decimal(raw["reward_value"], field_name="reward_value"),
            priority=_as_int(raw["priority"], field_name="priority"),
            probability=_as_decimal(raw.get("probability", "0"), field_name="probability"),
            max_winners=(
                _as_int(raw["max_winners"], field_name="max_winners")
                if raw.get("max_winners") is not None
                else None
            ),
            reward_name_hi=raw.get("reward_name_hi"),
            image_url=raw.get("image_url"),
        )
    except KeyError as exc:
        raise CampaignDefinitionError(f"tier is missing field: {exc.args[0]}") from exc


def parse_campaign_definition(payload: dict[str, Any]) -> CampaignDefinition:
    try:
        definition = CampaignDefinition(
            name=str(payload["name"]).strip(),
            start_at=parse_utc_datetime(str(payload["start_at"])),
            end_at=parse_utc_datetime(str(payload["end_at"])),
            distribution_type=str(payload.get("distribution_type", DistributionType.RANDOM.value)),
            tiers=[_parse_tier(raw) for raw in payload.get("tiers", [])],
            description=payload.get("description"),
            is_active=bool(payload.get("is_active", True)),
        )
    except KeyError as exc:
        raise CampaignDefinitionError(f"campaign is missing field: {exc.args[0]}") from exc

    if not definition.name:
        raise CampaignDefinitionError("campaign name is required")
    validate_campaign_definition(
        start_at=definition.start_at,
        end_at=definition.end_at,
        distribution_type=definition.distribution_type,
        tiers=definition.tiers,
    )
    return definition


def load_codes(path: Path) -> list[str]:
    codes: list[str] = []
    seen: set[str] = set()
    with path.open("r", encoding="utf-8") as file:
        for line in file:
            code = normalize_coupon_code(line)
            if not code:
                continue
            if len(code) > MAX_CODE_LENGTH:
                raise ValueError(f"code longer than {MAX_CODE_LENGTH} characters: {code}")
            if code in seen:
                raise ValueError(f"duplicate code in file: {code}")
            seen.add(code)
            codes.append(code)
    return codes


async def create_campaign(definition: CampaignDefinition) -> int:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        campaign = await CampaignsRepo.create(
            session,
            campaign=Campaign(
                name=definition.name,
                description=definition.description,
                start_at=definition.start_at,
                end_at=definition.end_at,
                is_active=definition.is_active,
                distribution_type=DistributionType(definition.distribution_type).value,
                created_at=now_utc,
                updated_at=now_utc,
            ),
            tiers=[
                CampaignTier(
                    reward_name=tier.reward_name,
                    reward_name_hi=tier.reward_name_hi,
                    reward_type=tier.reward_type,
                    reward_value=tier.reward_value,
                    probability=tier.probability,
                    priority=tier.priority,
                    max_winners=tier.max_winners,
                    current_winners=0,
                    image_url=tier.image_url,
                )
                for tier in definition.tiers
            ],
        )
        return int(campaign.id)


async def link_codes(
    *,
    campaign_id: int,
    codes: list[str],
    batch_number: str | None,
    expires_at: datetime | None,
) -> int:
    if not codes:
        raise ValueError("no codes to link")

    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        loaded = await CampaignsRepo.get_campaign_with_tiers(session, campaign_id)
        if loaded is None:
            raise ValueError(f"campaign not found: {campaign_id}")
        _, tiers = loaded
        if not tiers:
            raise ValueError(f"campaign has no tiers: {campaign_id}")

        existing = await CouponsRepo.list_existing_codes(session, codes)
        if existing:
            sample = ", ".join(sorted(existing)[:5])
            raise ValueError(f"{len(existing)} codes already registered: {sample}")

        created = await CouponsRepo.create_many(
            session,
            codes=codes,
            campaign_id=campaign_id,
            batch_number=batch_number,
            expires_at=expires_at,
            now_utc=now_utc,
        )
        counts = await CouponsRepo.count_by_status(session, campaign_id=campaign_id)

    print(  # noqa: T201
        f"campaign={campaign_id} tiers={len(tiers)} linked={len(created)} "
        f"unused_total={counts.get(CouponStatus.UNUSED.value, 0)}"
    )
    return len(created)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scan campaign setup tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser("create-campaign", help="create a campaign with tiers")
    create_parser.add_argument("--file", type=Path, required=True, help="campaign JSON definition")
    create_parser.add_argument("--dry-run", action="store_true")

    link_parser = subparsers.add_parser("link-codes", help="register pre-issued codes")
    link_parser.add_argument("--campaign-id", type=int, required=True)
    link_parser.add_argument("--file", type=Path, required=True, help="one code per line")
    link_parser.add_argument("--batch-number")
    link_parser.add_argument("--expires-at", help="ISO datetime")
    return parser.parse_args(argv)


async def _run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    if args.command == "create-campaign":
        payload = json.loads(args.file.read_text(encoding="utf-8"))
        definition = parse_campaign_definition(payload)
        if args.dry_run:
            print(f"valid campaign={definition.name} tiers={len(definition.tiers)}")  # noqa: T201
            return 0
        campaign_id = await create_campaign(definition)
        print(f"created campaign={campaign_id} tiers={len(definition.tiers)}")  # noqa: T201
        return 0

    expires_at = parse_utc_datetime(args.expires_at) if args.expires_at else None
    await link_codes(
        campaign_id=args.campaign_id,
        codes=load_codes(args.file),
        batch_number=args.batch_number,
        expires_at=expires_at,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(_run(argv))


if __name__ == "__main__":
    raise SystemExit(main())
