from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from typing import AsyncIterator

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Ensure deterministic environment for tests
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DB_ISOLATION_LEVEL", "")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_PATH", "logs/test.log")
os.environ.setdefault("CLUB_NAME", "Club de plongee")
os.environ.setdefault("LOCK_TIMEOUT_SEC", "5")

from core import config as config_module
from core import db as core_db
from core.models import Base, DiveDirector, DiveSession, Outing, Participant
from planning.authorization import Caller

config_module.get_settings.cache_clear()
settings = config_module.get_settings()


@pytest.fixture
async def db_engine(tmp_path, monkeypatch) -> AsyncIterator[None]:
    # a file database, so concurrent transactions get their own connection
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'palanquee.db'}", future=True)

    @event.listens_for(engine.sync_engine, "connect")
    def _enforce_foreign_keys(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    monkeypatch.setattr(core_db, "async_engine", engine)
    monkeypatch.setattr(core_db, "AsyncSessionLocal", session_factory)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncIterator[AsyncSession]:
    async with core_db.AsyncSessionLocal() as session:
        yield session


@dataclass
class DiveDay:
    session_id: int
    director: int
    supervisors: list[int]
    instructor: int
    students: list[int]
    nitrox_student: int
    outsider_session_id: int
    outsider: int


def _participant(session_id: int, person_id: int, first: str, last: str, **flags) -> Participant:
    return Participant(session_id=session_id, person_id=person_id, first_name=first, last_name=last, **flags)


@pytest.fixture
async def dive_day(db_session: AsyncSession) -> DiveDay:
    """A session with a director, three supervisors, one instructor and six students."""

    outing = Outing(name="Marseille weekend", location="Marseille")
    session = DiveSession(
        name="Saturday morning",
        start_date=date(2024, 6, 15),
        location="Riou",
        outing=outing,
        dive_number=1,
    )
    other = DiveSession(name="Sunday morning", start_date=date(2024, 6, 16), location="Planier")
    db_session.add_all([outing, session, other])
    await db_session.flush()

    director = _participant(session.id, 100, "Claire", "Martin", is_supervisor=True, diving_level="E3")
    supervisors = [
        _participant(session.id, 101, "Paul", "Bernard", is_supervisor=True, diving_level="E2"),
        _participant(
            session.id, 102, "Lucie", "Dubois", is_supervisor=True, wants_enriched_gas=True, diving_level="E3"
        ),
    ]
    instructor = _participant(session.id, 103, "Marc", "Petit", is_supervisor=True, diving_level="E4")
    students = [
        _participant(session.id, 200 + index, first, last, diving_level="N1", target_certification_level="N2")
        for index, (first, last) in enumerate(
            [("Emma", "Roux"), ("Hugo", "Faure"), ("Jade", "Blanc"), ("Louis", "Garnier"), ("Nina", "Chevalier")]
        )
    ]
    nitrox_student = _participant(
        session.id, 210, "Zoe", "Lambert", in_enriched_gas_training=True, diving_level="N2"
    )
    outsider = _participant(other.id, 300, "Theo", "Moreau", diving_level="N1")
    db_session.add_all([director, *supervisors, instructor, *students, nitrox_student, outsider])
    await db_session.flush()

    db_session.add(DiveDirector(session_id=session.id, participant_id=director.id))
    await db_session.commit()

    return DiveDay(
        session_id=session.id,
        director=director.id,
        supervisors=[director.id, *(p.id for p in supervisors)],
        instructor=instructor.id,
        students=[p.id for p in students],
        nitrox_student=nitrox_student.id,
        outsider_session_id=other.id,
        outsider=outsider.id,
    )


@pytest.fixture
def admin() -> Caller:
    return Caller(user_id=1, is_admin=True)


@pytest.fixture
def director(dive_day: DiveDay) -> Caller:
    return Caller(
        user_id=100,
        directed_sessions=frozenset({dive_day.session_id}),
        registered_sessions=frozenset({dive_day.session_id}),
    )


@pytest.fixture
def diver(dive_day: DiveDay) -> Caller:
    return Caller(user_id=200, registered_sessions=frozenset({dive_day.session_id}))


@pytest.fixture
def stranger() -> Caller:
    return Caller(user_id=999)
