from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from core.audit import list_audit_logs
from core.db import run_in_transaction
from core.models import AuditLog
from core.schemas import AuditLogRead
from planning.authorization import Caller
from planning.exceptions import PermissionDenied

from .dependencies import get_caller

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=list[AuditLogRead])
async def read_audit_logs(
    session_id: int | None = None,
    limit: int = Query(100, ge=1, le=1000),
    caller: Caller = Depends(get_caller),
) -> list[AuditLog]:
    if not caller.is_admin or caller.impersonating:
        raise PermissionDenied("Only administrators can read the audit log")
    return await run_in_transaction(lambda db: list_audit_logs(db, session_id=session_id, limit=limit))
