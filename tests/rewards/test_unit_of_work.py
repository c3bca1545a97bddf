from __future__ import annotations

from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import DBAPIError

from scan_rewards.rewards.errors import ConflictError
from scan_rewards.rewards.unit_of_work import redemption_unit_of_work, sqlstate_of


class _PgError(Exception):
    def __init__(self, sqlstate: str) -> None:
        super().__init__(f"pg error {sqlstate}")
        self.sqlstate = sqlstate


class _FakeSessionFactory:
    def __init__(self) -> None:
        self.session = SimpleNamespace(statements=[])

        async def _execute(statement, params=None):
            del params
            self.session.statements.append(str(statement))

        self.session.execute = _execute

    @asynccontextmanager
    async def begin(self):
        yield self.session


def _dbapi_error(orig: Exception) -> DBAPIError:
    return DBAPIError("SELECT 1", {}, orig)


def test_sqlstate_of_reads_adapted_error_and_its_cause() -> None:
    assert sqlstate_of(_dbapi_error(_PgError("55P03"))) == "55P03"

    adapted = Exception("adapted")
    adapted.__cause__ = _PgError("40P01")
    assert sqlstate_of(_dbapi_error(adapted)) == "40P01"

    assert sqlstate_of(_dbapi_error(Exception("no state"))) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("sqlstate", ["55P03", "40001", "40P01"])
async def test_unit_of_work_maps_contention_to_conflict(sqlstate: str) -> None:
    factory = _FakeSessionFactory()

    with pytest.raises(ConflictError):
        async with redemption_unit_of_work(factory, lock_timeout_ms=1500):
            raise _dbapi_error(_PgError(sqlstate))

    assert factory.session.statements == ["SET LOCAL lock_timeout = '1500ms'"]


@pytest.mark.asyncio
async def test_unit_of_work_reraises_other_database_errors() -> None:
    with pytest.raises(DBAPIError):
        async with redemption_unit_of_work(_FakeSessionFactory(), lock_timeout_ms=1500):
            raise _dbapi_error(_PgError("23505"))
