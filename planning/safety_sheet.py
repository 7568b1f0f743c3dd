"""Printable safety sheet for a dive session.

The sheet is a projection of the rotations, dive teams and members of a
session; building it never changes stored state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from pathlib import Path
from typing import List

from fastapi.templating import Jinja2Templates
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core import services
from core.config import get_settings
from core.models import DiveDirector, DiveSession, Outing, Participant
from core.schemas import ROLE_ORDER
from palanquee import GasType, Role

from .authorization import Caller
from .queries import load_session

TEMPLATES_DIR = Path(__file__).parent / "templates"

ROLE_LABELS = {Role.supervisor: "Supervisor", Role.instructor: "Instructor", Role.student: "Student"}
GAS_LABELS = {GasType.standard: "Air", GasType.enriched: "Nitrox"}

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@dataclass
class SheetOptions:
    date: str | None = None
    club: str | None = None
    director: str | None = None
    site: str | None = None
    position: str | None = None
    surface_safety: str | None = None
    observations: str | None = None


@dataclass
class SheetMember:
    name: str
    role: str
    gas: str
    aptitude: str
    preparing: str | None = None


@dataclass
class SheetTeam:
    rotation: int
    number: int
    call_sign: str | None = None
    planned_departure_time: str | None = None
    planned_duration: int | None = None
    planned_depth: int | None = None
    actual_departure_time: str | None = None
    actual_return_time: str | None = None
    actual_duration: int | None = None
    actual_depth: int | None = None
    members: List[SheetMember] = field(default_factory=list)


@dataclass
class SafetySheet:
    title: str
    date: str
    club: str
    director: str
    site: str
    position: str
    surface_safety: str
    observations: str
    teams: List[SheetTeam] = field(default_factory=list)

    @property
    def diver_count(self) -> int:
        return sum(len(team.members) for team in self.teams)


def _hhmm(value: time | None) -> str | None:
    return value.strftime("%H:%M") if value is not None else None


def _member_name(participant: Participant) -> str:
    return f"{participant.last_name.upper()} {participant.first_name}".strip()


async def _director_names(db: AsyncSession, session_id: int) -> str:
    result = await db.execute(
        select(Participant)
        .join(DiveDirector, DiveDirector.participant_id == Participant.id)
        .where(DiveDirector.session_id == session_id)
        .order_by(Participant.last_name, Participant.first_name)
    )
    return ", ".join(_member_name(participant) for participant in result.scalars())


async def _title(db: AsyncSession, session: DiveSession) -> str:
    if session.outing_id is None:
        return session.name
    outing = await db.get(Outing, session.outing_id)
    if outing is None:
        return session.name
    if session.dive_number:
        return f"{outing.name} - dive {session.dive_number}"
    return outing.name


async def build_safety_sheet(
    db: AsyncSession, caller: Caller, session_id: int, options: SheetOptions | None = None
) -> SafetySheet:
    options = options or SheetOptions()
    session = await load_session(db, caller, session_id)

    teams: List[SheetTeam] = []
    for rotation in await services.list_rotations(db, session_id):
        for team in rotation.dive_teams:
            members = sorted(
                team.members,
                key=lambda m: (ROLE_ORDER[m.role], m.participant.last_name.casefold()),
            )
            teams.append(
                SheetTeam(
                    rotation=rotation.number,
                    number=team.number,
                    call_sign=team.call_sign,
                    planned_departure_time=_hhmm(team.planned_departure_time),
                    planned_duration=team.planned_duration,
                    planned_depth=team.planned_depth,
                    actual_departure_time=_hhmm(team.actual_departure_time),
                    actual_return_time=_hhmm(team.actual_return_time),
                    actual_duration=team.actual_duration,
                    actual_depth=team.actual_depth,
                    members=[
                        SheetMember(
                            name=_member_name(member.participant),
                            role=ROLE_LABELS[member.role],
                            gas=GAS_LABELS[member.gas_type],
                            aptitude=member.participant.diving_level or "",
                            preparing=member.participant.target_certification_level,
                        )
                        for member in members
                    ],
                )
            )

    default_date = session.start_date.strftime("%d/%m/%Y") if session.start_date else ""
    return SafetySheet(
        title=await _title(db, session),
        date=options.date or default_date,
        club=options.club or get_settings().club_name,
        director=options.director or await _director_names(db, session_id),
        site=options.site or session.location or "",
        position=options.position or "",
        surface_safety=options.surface_safety or "",
        observations=options.observations or "",
        teams=teams,
    )


def render_safety_sheet(sheet: SafetySheet) -> str:
    return templates.get_template("safety_sheet.html").render(sheet=sheet)
