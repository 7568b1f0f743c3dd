from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from core.db import run_in_transaction
from planning.authorization import Caller
from planning.safety_sheet import SheetOptions, build_safety_sheet, render_safety_sheet

from .dependencies import get_caller

router = APIRouter(tags=["safety-sheet"])


@router.get("/sessions/{session_id}/safety-sheet", response_class=HTMLResponse)
async def read_safety_sheet(
    session_id: int,
    date: str | None = None,
    club: str | None = None,
    director: str | None = None,
    site: str | None = None,
    position: str | None = None,
    surface_safety: str | None = None,
    observations: str | None = None,
    caller: Caller = Depends(get_caller),
) -> HTMLResponse:
    options = SheetOptions(
        date=date,
        club=club,
        director=director,
        site=site,
        position=position,
        surface_safety=surface_safety,
        observations=observations,
    )
    sheet = await run_in_transaction(lambda db: build_safety_sheet(db, caller, session_id, options))
    return HTMLResponse(render_safety_sheet(sheet))
