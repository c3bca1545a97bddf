from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from scan_rewards.core.integration_db_safety import assert_safe_integration_db
from scan_rewards.db.session import engine

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"

TRUNCATE_TABLES = (
    "scan_redemptions",
    "coupons",
    "campaign_tiers",
    "campaigns",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"


@pytest.fixture(scope="session", autouse=True)
def guard_integration_db_target() -> None:
    assert_safe_integration_db(str(engine.url))


@pytest.fixture(scope="session", autouse=True)
def migrated_schema(guard_integration_db_target: None) -> None:
    config = Config(str(ALEMBIC_INI))
    config.attributes["database_url"] = engine.url.render_as_string(hide_password=False)
    try:
        command.upgrade(config, "head")
    except (OSError, SQLAlchemyError) as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")


@pytest.fixture(autouse=True)
async def cleanup_db() -> None:
    # asyncpg connections must not be reused across event loops.
    await engine.dispose()

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    async with engine.begin() as conn:
        await conn.execute(text(TRUNCATE_SQL))

    yield

    await engine.dispose()
