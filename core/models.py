from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from palanquee import GasType, ParticipantProfile, Role


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Outing(Base, TimestampMixin):
    __tablename__ = "outings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    dives: Mapped[list["DiveSession"]] = relationship(back_populates="outing", order_by="DiveSession.dive_number")


class DiveSession(Base, TimestampMixin):
    __tablename__ = "dive_sessions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    optimization_mode: Mapped[bool] = mapped_column(Boolean, default=False)
    outing_id: Mapped[int | None] = mapped_column(ForeignKey("outings.id", ondelete="CASCADE"), nullable=True)
    dive_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    outing: Mapped["Outing | None"] = relationship(back_populates="dives")
    participants: Mapped[list["Participant"]] = relationship(back_populates="session")
    rotations: Mapped[list["Rotation"]] = relationship(back_populates="session", order_by="Rotation.number")


class Participant(Base, TimestampMixin):
    """A questionnaire: one person registered for one session."""

    __tablename__ = "participants"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("dive_sessions.id", ondelete="CASCADE"), index=True)
    person_id: Mapped[int] = mapped_column(Integer, index=True)
    first_name: Mapped[str] = mapped_column(String(255), default="")
    last_name: Mapped[str] = mapped_column(String(255), default="")
    diving_level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_supervisor: Mapped[bool] = mapped_column(Boolean, default=False)
    wants_enriched_gas: Mapped[bool] = mapped_column(Boolean, default=False)
    in_enriched_gas_training: Mapped[bool] = mapped_column(Boolean, default=False)
    in_advanced_enriched_gas_training: Mapped[bool] = mapped_column(Boolean, default=False)
    target_certification_level: Mapped[str | None] = mapped_column(String(16), nullable=True)

    session: Mapped["DiveSession"] = relationship(back_populates="participants")

    def profile(self) -> ParticipantProfile:
        return ParticipantProfile(
            id=self.id,
            first_name=self.first_name or "",
            last_name=self.last_name or "",
            is_supervisor=bool(self.is_supervisor),
            wants_enriched_gas=bool(self.wants_enriched_gas),
            in_enriched_gas_training=bool(self.in_enriched_gas_training),
            in_advanced_enriched_gas_training=bool(self.in_advanced_enriched_gas_training),
            target_certification_level=self.target_certification_level,
        )


class DiveDirector(Base, TimestampMixin):
    __tablename__ = "dive_directors"
    __table_args__ = (UniqueConstraint("session_id", "participant_id", name="uq_dive_director_session_participant"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("dive_sessions.id", ondelete="CASCADE"), index=True)
    participant_id: Mapped[int] = mapped_column(ForeignKey("participants.id", ondelete="CASCADE"))


class Rotation(Base, TimestampMixin):
    __tablename__ = "rotations"
    __table_args__ = (UniqueConstraint("session_id", "number", name="uq_rotation_session_number"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("dive_sessions.id", ondelete="CASCADE"), index=True)
    number: Mapped[int] = mapped_column(Integer)

    session: Mapped["DiveSession"] = relationship(back_populates="rotations")
    dive_teams: Mapped[list["DiveTeam"]] = relationship(
        back_populates="rotation", order_by="DiveTeam.number", passive_deletes=True
    )


class DiveTeam(Base, TimestampMixin):
    __tablename__ = "dive_teams"
    __table_args__ = (UniqueConstraint("rotation_id", "number", name="uq_dive_team_rotation_number"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    rotation_id: Mapped[int] = mapped_column(ForeignKey("rotations.id", ondelete="CASCADE"), index=True)
    number: Mapped[int] = mapped_column(Integer)
    call_sign: Mapped[str | None] = mapped_column(String(64), nullable=True)
    planned_departure_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    planned_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    planned_depth: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actual_departure_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    actual_return_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    actual_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actual_depth: Mapped[int | None] = mapped_column(Integer, nullable=True)

    rotation: Mapped["Rotation"] = relationship(back_populates="dive_teams")
    members: Mapped[list["TeamMember"]] = relationship(back_populates="dive_team", passive_deletes=True)


class TeamMember(Base, TimestampMixin):
    __tablename__ = "team_members"
    __table_args__ = (UniqueConstraint("rotation_id", "participant_id", name="uq_team_member_rotation_participant"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    dive_team_id: Mapped[int] = mapped_column(ForeignKey("dive_teams.id", ondelete="CASCADE"), index=True)
    rotation_id: Mapped[int] = mapped_column(ForeignKey("rotations.id", ondelete="CASCADE"))
    participant_id: Mapped[int] = mapped_column(ForeignKey("participants.id", ondelete="CASCADE"))
    role: Mapped[Role] = mapped_column(Enum(Role, name="member_role", native_enum=False))
    gas_type: Mapped[GasType] = mapped_column(Enum(GasType, name="gas_type", native_enum=False))

    dive_team: Mapped["DiveTeam"] = relationship(back_populates="members")
    participant: Mapped["Participant"] = relationship()


class AuditLog(Base, TimestampMixin):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    actor: Mapped[str] = mapped_column(String(255))
    action: Mapped[str] = mapped_column(String(255))
    session_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    meta: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
