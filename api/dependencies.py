from __future__ import annotations

from fastapi import Header
from sqlalchemy.ext.asyncio import AsyncSession

from core import services
from core.db import run_in_transaction
from planning.authorization import Caller


async def get_caller(
    x_user_id: int | None = Header(None),
    x_user_admin: bool = Header(False),
    x_impersonating: bool = Header(False),
) -> Caller:
    """Build the caller from the identity headers set by the authentication proxy."""

    if x_user_id is None:
        return Caller(is_admin=x_user_admin, impersonating=x_impersonating)

    async def load(db: AsyncSession) -> Caller:
        return Caller(
            user_id=x_user_id,
            is_admin=x_user_admin,
            impersonating=x_impersonating,
            directed_sessions=frozenset(await services.directed_session_ids(db, x_user_id)),
            registered_sessions=frozenset(await services.registered_session_ids(db, x_user_id)),
        )

    return await run_in_transaction(load)
