from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from core.db import run_in_transaction
from core.models import DiveTeam, Rotation, TeamMember
from core.schemas import (
    DiveTeamCreate,
    DiveTeamRead,
    DiveTeamUpdate,
    MemberCreate,
    MemberRead,
    RotationRead,
    SessionTeamsRead,
)
from planning.authorization import Caller
from planning.engine import AssignmentEngine
from planning.queries import get_session_teams

from .dependencies import get_caller

router = APIRouter(tags=["teams"])


def get_engine() -> AssignmentEngine:
    return AssignmentEngine()


@router.get("/sessions/{session_id}/teams", response_model=SessionTeamsRead)
async def read_session_teams(
    session_id: int,
    caller: Caller = Depends(get_caller),
) -> SessionTeamsRead:
    return await run_in_transaction(lambda db: get_session_teams(db, caller, session_id))


@router.post("/sessions/{session_id}/rotations", response_model=RotationRead, status_code=status.HTTP_201_CREATED)
async def create_rotation(
    session_id: int,
    caller: Caller = Depends(get_caller),
    engine: AssignmentEngine = Depends(get_engine),
) -> Rotation:
    return await engine.create_rotation(caller, session_id)


@router.delete("/rotations/{rotation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rotation(
    rotation_id: int,
    caller: Caller = Depends(get_caller),
    engine: AssignmentEngine = Depends(get_engine),
) -> Response:
    await engine.delete_rotation(caller, rotation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/rotations/{rotation_id}/teams", response_model=DiveTeamRead, status_code=status.HTTP_201_CREATED)
async def create_dive_team(
    rotation_id: int,
    payload: DiveTeamCreate | None = None,
    caller: Caller = Depends(get_caller),
    engine: AssignmentEngine = Depends(get_engine),
) -> DiveTeam:
    call_sign = payload.call_sign if payload is not None else None
    return await engine.create_dive_team(caller, rotation_id, call_sign=call_sign)


@router.delete("/teams/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dive_team(
    team_id: int,
    caller: Caller = Depends(get_caller),
    engine: AssignmentEngine = Depends(get_engine),
) -> Response:
    await engine.delete_dive_team(caller, team_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/teams/{team_id}", response_model=DiveTeamRead)
async def update_dive_team(
    team_id: int,
    payload: DiveTeamUpdate,
    caller: Caller = Depends(get_caller),
    engine: AssignmentEngine = Depends(get_engine),
) -> DiveTeam:
    return await engine.update_dive_team_params(caller, team_id, payload.changes())


@router.post("/teams/{team_id}/members", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
async def add_member(
    team_id: int,
    payload: MemberCreate,
    caller: Caller = Depends(get_caller),
    engine: AssignmentEngine = Depends(get_engine),
) -> TeamMember:
    return await engine.add_member(caller, team_id, payload.participant_id, payload.role, payload.gas_type)


@router.delete("/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    member_id: int,
    caller: Caller = Depends(get_caller),
    engine: AssignmentEngine = Depends(get_engine),
) -> Response:
    await engine.remove_member(caller, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
