from __future__ import annotations

import argparse
import asyncio
import re
from pathlib import Path

import asyncpg
from alembic import command
from alembic.config import Config
from sqlalchemy.engine import make_url

from scan_rewards.core.config import get_settings
from scan_rewards.core.integration_db_safety import assess_integration_db_safety

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def _check_target(database_url: str) -> str:
    safety = assess_integration_db_safety(database_url)
    if not safety.is_safe:
        raise RuntimeError(f"Refusing to prepare database '{safety.database_name}': {safety.reason}")
    if IDENTIFIER_RE.fullmatch(safety.database_name) is None:
        raise RuntimeError(
            f"Unsupported database name '{safety.database_name}'. "
            "Only [A-Za-z0-9_] identifiers are supported."
        )
    return safety.database_name


async def _ensure_database_exists(database_url: str) -> bool:
    db_name = _check_target(database_url)
    parsed = make_url(database_url)
    if parsed.username is None:
        raise RuntimeError("DATABASE_URL username is required.")

    conn = await asyncpg.connect(
        host=parsed.host or "localhost",
        port=int(parsed.port or 5432),
        user=parsed.username,
        password=parsed.password,
        database="postgres",
    )
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", db_name)
        if exists:
            print(f"ensure_test_db: exists db={db_name}")  # noqa: T201
            return False

        await conn.execute(f'CREATE DATABASE "{db_name}"')
        print(f"ensure_test_db: created db={db_name}")  # noqa: T201
        return True
    finally:
        await conn.close()


def _upgrade_schema(database_url: str) -> None:
    config = Config(str(ALEMBIC_INI))
    config.attributes["database_url"] = database_url
    command.upgrade(config, "head")
    print("ensure_test_db: schema at head")  # noqa: T201


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the local integration-test database")
    parser.add_argument("--database-url", default=None, help="defaults to DATABASE_URL")
    parser.add_argument("--migrate", action="store_true", help="run alembic upgrade head")
    args = parser.parse_args(argv)

    database_url = args.database_url or get_settings().database_url
    asyncio.run(_ensure_database_exists(database_url))
    if args.migrate:
        _upgrade_schema(database_url)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
