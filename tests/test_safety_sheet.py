from __future__ import annotations

from datetime import time

import pytest

from palanquee import GasType, Role
from planning.engine import AssignmentEngine
from planning.exceptions import Unavailable
from planning.locks import SessionLocks
from planning.safety_sheet import SheetOptions, build_safety_sheet, render_safety_sheet


@pytest.fixture
async def planned(dive_day, director):
    engine = AssignmentEngine(locks=SessionLocks(timeout=5))
    rotation = await engine.create_rotation(director, dive_day.session_id)
    team = await engine.create_dive_team(director, rotation.id, call_sign="Alpha")
    await engine.add_member(director, team.id, dive_day.students[0], Role.student)
    await engine.add_member(director, team.id, dive_day.supervisors[1], Role.supervisor)
    await engine.add_member(director, team.id, dive_day.nitrox_student, Role.student, GasType.enriched)
    await engine.update_dive_team_params(
        director, team.id, {"planned_departure_time": time(9, 15), "planned_depth": 12}
    )
    return dive_day


@pytest.mark.asyncio
async def test_sheet_defaults_come_from_the_session(db_session, planned, diver) -> None:
    sheet = await build_safety_sheet(db_session, diver, planned.session_id)

    assert sheet.title == "Marseille weekend - dive 1"
    assert sheet.date == "15/06/2024"
    assert sheet.site == "Riou"
    assert sheet.club == "Club de plongee"
    assert sheet.director == "MARTIN Claire"
    assert sheet.diver_count == 3

    (team,) = sheet.teams
    assert (team.rotation, team.number, team.call_sign) == (1, 1, "Alpha")
    assert team.planned_departure_time == "09:15"
    assert [member.name for member in team.members] == ["BERNARD Paul", "LAMBERT Zoe", "ROUX Emma"]
    assert [member.gas for member in team.members] == ["Air", "Nitrox", "Air"]


@pytest.mark.asyncio
async def test_sheet_options_override_defaults(db_session, planned, director) -> None:
    options = SheetOptions(date="16/06/2024", site="Planier", observations="Swell <1m>")
    sheet = await build_safety_sheet(db_session, director, planned.session_id, options)
    html = render_safety_sheet(sheet)

    assert "16/06/2024" in html
    assert "Planier" in html
    assert "BERNARD Paul" in html
    assert "Swell &lt;1m&gt;" in html


@pytest.mark.asyncio
async def test_sheet_requires_read_access(db_session, planned, stranger) -> None:
    with pytest.raises(Unavailable):
        await build_safety_sheet(db_session, stranger, planned.session_id)
