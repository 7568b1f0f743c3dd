from __future__ import annotations

from fastapi import APIRouter, Depends

from core.db import run_in_transaction
from core.schemas import GasCountsPayload, GasSupplyRead
from palanquee import GasCounts
from planning.authorization import Caller
from planning.queries import GasSource, gas_supply_read, session_gas_supply

from .dependencies import get_caller

router = APIRouter(tags=["gas"])


@router.get("/sessions/{session_id}/gas-supply", response_model=GasSupplyRead)
async def read_session_gas_supply(
    session_id: int,
    source: GasSource = GasSource.registrations,
    caller: Caller = Depends(get_caller),
) -> GasSupplyRead:
    return await run_in_transaction(lambda db: session_gas_supply(db, caller, session_id, source))


@router.post("/gas-supply", response_model=GasSupplyRead)
async def compute_gas_supply(payload: GasCountsPayload) -> GasSupplyRead:
    counts = GasCounts(
        supervisor_count=payload.supervisor_count,
        supervisor_enriched_count=payload.supervisor_enriched_count,
        student_count=payload.student_count,
        student_enriched_training_count=payload.student_enriched_training_count,
    )
    return gas_supply_read(counts, payload.optimization_mode)
