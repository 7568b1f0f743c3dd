from __future__ import annotations

import asyncio
from datetime import time
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core import db as core_db
from core import services
from core.audit import record_mutation
from core.config import Settings, get_settings
from core.logging import logger
from core.models import DiveTeam, Rotation, TeamMember
from palanquee import GasType, Role, ViolationKind, capacity_violation

from .authorization import Caller, require_edit
from .exceptions import ConstraintViolation, NotFound
from .locks import SessionLocks

T = TypeVar("T")

TEAM_PARAMETERS = frozenset(
    {
        "call_sign",
        "planned_departure_time",
        "planned_duration",
        "planned_depth",
        "actual_departure_time",
        "actual_return_time",
        "actual_duration",
        "actual_depth",
    }
)

# PostgreSQL names the constraint, SQLite lists its columns
DUPLICATE_MEMBER_MARKERS = (
    "uq_team_member_rotation_participant",
    "team_members.rotation_id, team_members.participant_id",
)

session_locks = SessionLocks(timeout=get_settings().lock_timeout_sec)


def _is_duplicate_member(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in DUPLICATE_MEMBER_MARKERS)


def _jsonable(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value.strftime("%H:%M") if isinstance(value, time) else value for key, value in values.items()}


class AssignmentEngine:
    """Every mutation of rotations, dive teams and their members.

    Each public method is one transaction. Mutations of a session are
    serialized by a per-session lock held until commit, and the owning row is
    locked with ``SELECT ... FOR UPDATE`` for backends that support it.
    """

    def __init__(self, settings: Settings | None = None, locks: SessionLocks | None = None) -> None:
        self.settings = settings or get_settings()
        self.locks = locks or session_locks

    async def _lookup(self, fn: Callable[[AsyncSession, int], Awaitable[T]], key: int) -> T:
        async with core_db.AsyncSessionLocal() as db:
            return await fn(db, key)

    async def _mutate(self, session_id: int, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async def locked() -> T:
            async with self.locks.hold(session_id):
                return await core_db.run_in_transaction(work)

        # a client going away must not interrupt a transaction half-way
        return await asyncio.shield(locked())

    async def _locked_rotation(self, db: AsyncSession, rotation_id: int) -> Rotation:
        rotation = await services.get_rotation(db, rotation_id, for_update=True)
        if rotation is None:
            raise NotFound(f"Rotation {rotation_id} not found")
        return rotation

    async def _locate_team(self, team_id: int) -> tuple[int, int]:
        location = await self._lookup(services.locate_team, team_id)
        if location is None:
            raise NotFound(f"Dive team {team_id} not found")
        return location

    # rotations

    async def create_rotation(self, caller: Caller, session_id: int) -> Rotation:
        if await self._lookup(services.get_dive_session, session_id) is None:
            raise NotFound(f"Session {session_id} not found")

        async def work(db: AsyncSession) -> Rotation:
            if await services.get_dive_session(db, session_id, for_update=True) is None:
                raise NotFound(f"Session {session_id} not found")
            require_edit(session_id, caller)
            rotation = Rotation(
                session_id=session_id,
                number=await services.next_rotation_number(db, session_id),
                dive_teams=[],
            )
            db.add(rotation)
            await db.flush()
            await record_mutation(db, caller.actor, "rotation_created", session_id, rotation_id=rotation.id)
            return rotation

        rotation = await self._mutate(session_id, work)
        logger.bind(event="rotation_created", session_id=session_id, rotation_id=rotation.id).info(
            "Rotation {} created for session {}", rotation.number, session_id
        )
        return rotation

    async def delete_rotation(self, caller: Caller, rotation_id: int) -> None:
        session_id = await self._lookup(services.session_id_for_rotation, rotation_id)
        if session_id is None:
            raise NotFound(f"Rotation {rotation_id} not found")

        async def work(db: AsyncSession) -> int:
            await self._locked_rotation(db, rotation_id)
            require_edit(session_id, caller)
            removed = await services.delete_rotation_cascade(db, rotation_id)
            await record_mutation(
                db, caller.actor, "rotation_deleted", session_id, rotation_id=rotation_id, members_removed=removed
            )
            return removed

        removed = await self._mutate(session_id, work)
        logger.bind(event="rotation_deleted", session_id=session_id, rotation_id=rotation_id).info(
            "Rotation {} deleted with {} members", rotation_id, removed
        )

    # dive teams

    async def create_dive_team(self, caller: Caller, rotation_id: int, call_sign: str | None = None) -> DiveTeam:
        session_id = await self._lookup(services.session_id_for_rotation, rotation_id)
        if session_id is None:
            raise NotFound(f"Rotation {rotation_id} not found")

        async def work(db: AsyncSession) -> DiveTeam:
            await self._locked_rotation(db, rotation_id)
            require_edit(session_id, caller)
            team = DiveTeam(
                rotation_id=rotation_id,
                number=await services.next_team_number(db, rotation_id),
                call_sign=call_sign,
                members=[],
            )
            db.add(team)
            await db.flush()
            await record_mutation(
                db, caller.actor, "dive_team_created", session_id, rotation_id=rotation_id, dive_team_id=team.id
            )
            return team

        team = await self._mutate(session_id, work)
        logger.bind(event="dive_team_created", session_id=session_id, dive_team_id=team.id).info(
            "Dive team {} created in rotation {}", team.number, rotation_id
        )
        return team

    async def delete_dive_team(self, caller: Caller, team_id: int) -> None:
        session_id, rotation_id = await self._locate_team(team_id)

        async def work(db: AsyncSession) -> int:
            await self._locked_rotation(db, rotation_id)
            if await db.get(DiveTeam, team_id) is None:
                raise NotFound(f"Dive team {team_id} not found")
            require_edit(session_id, caller)
            removed = await services.delete_team_cascade(db, [team_id])
            await record_mutation(
                db, caller.actor, "dive_team_deleted", session_id, dive_team_id=team_id, members_removed=removed
            )
            return removed

        removed = await self._mutate(session_id, work)
        logger.bind(event="dive_team_deleted", session_id=session_id, dive_team_id=team_id).info(
            "Dive team {} deleted with {} members", team_id, removed
        )

    async def update_dive_team_params(self, caller: Caller, team_id: int, changes: Mapping[str, Any]) -> DiveTeam:
        unknown = set(changes) - TEAM_PARAMETERS
        if unknown:
            raise ValueError(f"Unknown dive team parameters: {', '.join(sorted(unknown))}")
        session_id, rotation_id = await self._locate_team(team_id)

        async def work(db: AsyncSession) -> DiveTeam:
            await self._locked_rotation(db, rotation_id)
            team = await services.get_dive_team(db, team_id)
            if team is None:
                raise NotFound(f"Dive team {team_id} not found")
            require_edit(session_id, caller)
            for field, value in changes.items():
                setattr(team, field, value)
            await db.flush()
            await record_mutation(
                db, caller.actor, "dive_team_updated", session_id, dive_team_id=team_id, changes=_jsonable(changes)
            )
            return team

        team = await self._mutate(session_id, work)
        logger.bind(event="dive_team_updated", session_id=session_id, dive_team_id=team_id).info(
            "Dive team {} updated: {}", team_id, sorted(changes)
        )
        return team

    # members

    async def add_member(
        self,
        caller: Caller,
        team_id: int,
        participant_id: int,
        role: Role,
        gas_type: GasType | None = None,
    ) -> TeamMember:
        role = Role(role)
        session_id, rotation_id = await self._locate_team(team_id)

        async def work(db: AsyncSession) -> TeamMember:
            await self._locked_rotation(db, rotation_id)
            if await db.get(DiveTeam, team_id) is None:
                raise NotFound(f"Dive team {team_id} not found")
            require_edit(session_id, caller)

            participant = await services.get_participant(db, participant_id)
            if participant is None or participant.session_id != session_id:
                raise NotFound(f"Participant {participant_id} is not registered for session {session_id}")

            if await services.rotation_has_participant(db, rotation_id, participant_id):
                raise ConstraintViolation(
                    ViolationKind.duplicate_in_rotation,
                    f"Participant {participant_id} already dives in rotation {rotation_id}",
                )
            violation = capacity_violation(await services.team_roles(db, team_id), role)
            if violation is not None:
                raise ConstraintViolation(violation, f"Dive team {team_id} is full for role {role.value}")

            member = TeamMember(
                dive_team_id=team_id,
                rotation_id=rotation_id,
                participant_id=participant_id,
                role=role,
                gas_type=GasType(gas_type) if gas_type is not None else participant.profile().default_gas,
                participant=participant,
            )
            db.add(member)
            try:
                await db.flush()
            except IntegrityError as exc:
                if not _is_duplicate_member(exc):
                    raise NotFound(
                        f"Participant {participant_id} or dive team {team_id} was removed while adding the member"
                    ) from exc
                raise ConstraintViolation(
                    ViolationKind.duplicate_in_rotation,
                    f"Participant {participant_id} already dives in rotation {rotation_id}",
                ) from exc
            await record_mutation(
                db,
                caller.actor,
                "member_added",
                session_id,
                dive_team_id=team_id,
                participant_id=participant_id,
                role=role.value,
                gas_type=member.gas_type.value,
            )
            return member

        try:
            member = await self._mutate(session_id, work)
        except ConstraintViolation as exc:
            logger.bind(
                event="member_rejected",
                session_id=session_id,
                dive_team_id=team_id,
                participant_id=participant_id,
                reason=exc.kind.value,
            ).info("Member rejected: {}", exc)
            raise
        logger.bind(
            event="member_added",
            session_id=session_id,
            dive_team_id=team_id,
            participant_id=participant_id,
            role=member.role.value,
            gas_type=member.gas_type.value,
        ).info("Participant {} added to dive team {}", participant_id, team_id)
        return member

    async def remove_member(self, caller: Caller, member_id: int) -> bool:
        """Remove a member; returns ``False`` when it was already gone."""

        location = await self._lookup(services.locate_member, member_id)
        if location is None:
            logger.bind(event="member_already_removed", member_id=member_id).debug(
                "Member {} already removed", member_id
            )
            return False
        session_id, rotation_id = location

        async def work(db: AsyncSession) -> bool:
            await self._locked_rotation(db, rotation_id)
            member = await services.get_team_member(db, member_id)
            if member is None:
                return False
            require_edit(session_id, caller)
            await db.delete(member)
            await db.flush()
            await record_mutation(
                db,
                caller.actor,
                "member_removed",
                session_id,
                dive_team_id=member.dive_team_id,
                participant_id=member.participant_id,
            )
            return True

        try:
            removed = await self._mutate(session_id, work)
        except NotFound:
            # rotation deleted in the meantime, the member went with it
            removed = False
        if removed:
            logger.bind(event="member_removed", session_id=session_id, member_id=member_id).info(
                "Member {} removed", member_id
            )
        return removed
