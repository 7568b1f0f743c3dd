from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AuditLog


async def record_mutation(
    db: AsyncSession,
    actor: str,
    action: str,
    session_id: int,
    **meta: Any,
) -> AuditLog:
    """Add an audit row to the mutation's own transaction."""

    entry = AuditLog(actor=actor, action=action, session_id=session_id, meta=meta)
    db.add(entry)
    await db.flush()
    return entry


async def list_audit_logs(db: AsyncSession, session_id: int | None = None, limit: int = 100) -> list[AuditLog]:
    stmt = select(AuditLog).order_by(AuditLog.id.desc()).limit(limit)
    if session_id is not None:
        stmt = stmt.where(AuditLog.session_id == session_id)
    result = await db.execute(stmt)
    return list(result.scalars())
