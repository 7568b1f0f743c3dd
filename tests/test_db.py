from __future__ import annotations

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from core.db import is_transient, run_in_transaction


def _locked() -> OperationalError:
    return OperationalError("INSERT INTO team_members", {}, Exception("database is locked"))


@pytest.mark.asyncio
async def test_transient_error_reruns_the_transaction(db_engine) -> None:
    calls = []

    async def work(session):
        calls.append(session)
        if len(calls) == 1:
            raise _locked()
        return "done"

    assert await run_in_transaction(work) == "done"
    assert len(calls) == 2
    assert calls[0] is not calls[1]


@pytest.mark.asyncio
async def test_transient_error_is_raised_after_the_retry(db_engine) -> None:
    calls = []

    async def work(session):
        calls.append(session)
        raise _locked()

    with pytest.raises(OperationalError):
        await run_in_transaction(work, retries=1)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_integrity_error_is_not_retried(db_engine) -> None:
    calls = []

    async def work(session):
        calls.append(session)
        raise IntegrityError("INSERT INTO team_members", {}, Exception("UNIQUE constraint failed"))

    with pytest.raises(IntegrityError):
        await run_in_transaction(work)
    assert len(calls) == 1


def test_serialization_failure_is_transient() -> None:
    class PgError(Exception):
        sqlstate = "40001"

    assert is_transient(DBAPIError("UPDATE rotations", {}, PgError())) is True
    assert is_transient(DBAPIError("UPDATE rotations", {}, Exception("syntax error"))) is False
    assert is_transient(IntegrityError("INSERT INTO team_members", {}, PgError())) is False
