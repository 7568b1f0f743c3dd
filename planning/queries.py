"""Read side of dive team planning.

Nothing here is cached: unassigned participants, their grouping and gas
figures are recomputed from the store on every call.
"""

from __future__ import annotations

import enum
from typing import Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core import services
from core.models import DiveSession, Participant, Rotation
from core.schemas import (
    GasSupplyRead,
    ParticipantGroupRead,
    ParticipantRead,
    RotationTeamsRead,
    SessionTeamsRead,
)
from palanquee import (
    Assignment,
    GasCounts,
    classify_participants,
    compute_gas_supply,
    counts_from_assignments,
    counts_from_registrations,
)

from .authorization import Caller, can_edit, require_view
from .exceptions import NotFound


class GasSource(str, enum.Enum):
    registrations = "registrations"
    assignments = "assignments"


async def load_session(db: AsyncSession, caller: Caller, session_id: int) -> DiveSession:
    session = await services.get_dive_session(db, session_id)
    if session is None:
        raise NotFound(f"Session {session_id} not found")
    require_view(session_id, caller)
    return session


def assigned_ids(rotations: Iterable[Rotation]) -> set[int]:
    return {member.participant_id for rotation in rotations for team in rotation.dive_teams for member in team.members}


def assignments(rotations: Iterable[Rotation]) -> list[Assignment]:
    return [
        Assignment(participant_id=member.participant_id, role=member.role, gas_type=member.gas_type)
        for rotation in rotations
        for team in rotation.dive_teams
        for member in team.members
    ]


def grouped(participants: Sequence[Participant]) -> list[ParticipantGroupRead]:
    by_id = {participant.id: participant for participant in participants}
    return [
        ParticipantGroupRead(
            key=group.key,
            label=group.label,
            participants=[ParticipantRead.model_validate(by_id[profile.id]) for profile in group.participants],
        )
        for group in classify_participants(participant.profile() for participant in participants)
    ]


def gas_supply_read(counts: GasCounts, optimization_mode: bool) -> GasSupplyRead:
    supply = compute_gas_supply(counts, optimization_mode)
    return GasSupplyRead(
        **supply.as_dict(),
        supervisor_count=counts.supervisor_count,
        supervisor_enriched_count=counts.supervisor_enriched_count,
        student_count=counts.student_count,
        student_enriched_training_count=counts.student_enriched_training_count,
    )


async def get_session_teams(db: AsyncSession, caller: Caller, session_id: int) -> SessionTeamsRead:
    session = await load_session(db, caller, session_id)
    participants = await services.list_participants(db, session_id)
    rotations = await services.list_rotations(db, session_id)

    taken = assigned_ids(rotations)
    rotation_views = []
    for rotation in rotations:
        in_rotation = assigned_ids([rotation])
        view = RotationTeamsRead.model_validate(rotation)
        view.available = grouped([p for p in participants if p.id not in in_rotation])
        rotation_views.append(view)

    return SessionTeamsRead(
        session_id=session.id,
        session_name=session.name,
        optimization_mode=session.optimization_mode,
        can_edit=can_edit(session_id, caller),
        rotations=rotation_views,
        unassigned=grouped([p for p in participants if p.id not in taken]),
        gas_supply=gas_supply_read(counts_from_assignments(assignments(rotations)), session.optimization_mode),
    )


async def session_gas_supply(
    db: AsyncSession,
    caller: Caller,
    session_id: int,
    source: GasSource = GasSource.registrations,
) -> GasSupplyRead:
    session = await load_session(db, caller, session_id)
    if GasSource(source) == GasSource.assignments:
        counts = counts_from_assignments(assignments(await services.list_rotations(db, session_id)))
    else:
        participants = await services.list_participants(db, session_id)
        counts = counts_from_registrations(p.profile() for p in participants)
    return gas_supply_read(counts, session.optimization_mode)
