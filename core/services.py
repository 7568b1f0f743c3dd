from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import (
    DiveDirector,
    DiveSession,
    DiveTeam,
    Participant,
    Rotation,
    TeamMember,
)


async def get_dive_session(db: AsyncSession, session_id: int, *, for_update: bool = False) -> DiveSession | None:
    stmt = select(DiveSession).where(DiveSession.id == session_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_rotation(db: AsyncSession, rotation_id: int, *, for_update: bool = False) -> Rotation | None:
    stmt = select(Rotation).where(Rotation.id == rotation_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_dive_team(db: AsyncSession, team_id: int) -> DiveTeam | None:
    result = await db.execute(
        select(DiveTeam).options(selectinload(DiveTeam.members).selectinload(TeamMember.participant)).where(
            DiveTeam.id == team_id
        )
    )
    return result.scalar_one_or_none()


async def get_team_member(db: AsyncSession, member_id: int) -> TeamMember | None:
    result = await db.execute(select(TeamMember).where(TeamMember.id == member_id))
    return result.scalar_one_or_none()


async def get_participant(db: AsyncSession, participant_id: int) -> Participant | None:
    return await db.get(Participant, participant_id)


async def session_id_for_rotation(db: AsyncSession, rotation_id: int) -> int | None:
    return await db.scalar(select(Rotation.session_id).where(Rotation.id == rotation_id))


async def locate_team(db: AsyncSession, team_id: int) -> tuple[int, int] | None:
    """Return ``(session_id, rotation_id)`` owning a dive team."""

    result = await db.execute(
        select(Rotation.session_id, Rotation.id)
        .join(DiveTeam, DiveTeam.rotation_id == Rotation.id)
        .where(DiveTeam.id == team_id)
    )
    row = result.first()
    return (row[0], row[1]) if row else None


async def locate_member(db: AsyncSession, member_id: int) -> tuple[int, int] | None:
    """Return ``(session_id, rotation_id)`` owning a team member."""

    result = await db.execute(
        select(Rotation.session_id, Rotation.id)
        .join(TeamMember, TeamMember.rotation_id == Rotation.id)
        .where(TeamMember.id == member_id)
    )
    row = result.first()
    return (row[0], row[1]) if row else None


async def next_rotation_number(db: AsyncSession, session_id: int) -> int:
    current = await db.scalar(select(func.max(Rotation.number)).where(Rotation.session_id == session_id))
    return (current or 0) + 1


async def next_team_number(db: AsyncSession, rotation_id: int) -> int:
    current = await db.scalar(select(func.max(DiveTeam.number)).where(DiveTeam.rotation_id == rotation_id))
    return (current or 0) + 1


async def rotation_has_participant(db: AsyncSession, rotation_id: int, participant_id: int) -> bool:
    found = await db.scalar(
        select(TeamMember.id).where(
            TeamMember.rotation_id == rotation_id,
            TeamMember.participant_id == participant_id,
        )
    )
    return found is not None


async def team_roles(db: AsyncSession, team_id: int) -> list:
    result = await db.execute(select(TeamMember.role).where(TeamMember.dive_team_id == team_id))
    return list(result.scalars())


async def delete_team_cascade(db: AsyncSession, team_ids: Iterable[int]) -> int:
    ids = list(team_ids)
    if not ids:
        return 0
    removed = await db.execute(delete(TeamMember).where(TeamMember.dive_team_id.in_(ids)))
    await db.execute(delete(DiveTeam).where(DiveTeam.id.in_(ids)))
    return removed.rowcount or 0


async def delete_rotation_cascade(db: AsyncSession, rotation_id: int) -> int:
    result = await db.execute(select(DiveTeam.id).where(DiveTeam.rotation_id == rotation_id))
    removed = await delete_team_cascade(db, result.scalars())
    await db.execute(delete(TeamMember).where(TeamMember.rotation_id == rotation_id))
    await db.execute(delete(Rotation).where(Rotation.id == rotation_id))
    return removed


async def list_participants(db: AsyncSession, session_id: int) -> list[Participant]:
    result = await db.execute(
        select(Participant)
        .where(Participant.session_id == session_id)
        .order_by(Participant.last_name, Participant.first_name, Participant.id)
    )
    return list(result.scalars())


async def list_rotations(db: AsyncSession, session_id: int) -> list[Rotation]:
    result = await db.execute(
        select(Rotation)
        .options(
            selectinload(Rotation.dive_teams)
            .selectinload(DiveTeam.members)
            .selectinload(TeamMember.participant)
        )
        .where(Rotation.session_id == session_id)
        .order_by(Rotation.number)
    )
    return list(result.scalars())


async def directed_session_ids(db: AsyncSession, person_id: int) -> set[int]:
    result = await db.execute(
        select(DiveDirector.session_id)
        .join(Participant, Participant.id == DiveDirector.participant_id)
        .where(Participant.person_id == person_id)
    )
    return set(result.scalars())


async def registered_session_ids(db: AsyncSession, person_id: int) -> set[int]:
    result = await db.execute(select(Participant.session_id).where(Participant.person_id == person_id))
    return set(result.scalars())
