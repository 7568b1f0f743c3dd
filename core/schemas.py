from __future__ import annotations

from datetime import datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from palanquee import GasType, Role

ROLE_ORDER = {Role.supervisor: 0, Role.instructor: 1, Role.student: 2}


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ParticipantRead(ORMModel):
    id: int
    person_id: int
    first_name: str
    last_name: str
    diving_level: str | None = None
    is_supervisor: bool
    wants_enriched_gas: bool
    in_enriched_gas_training: bool
    in_advanced_enriched_gas_training: bool
    target_certification_level: str | None = None


class ParticipantGroupRead(BaseModel):
    key: str
    label: str
    participants: list[ParticipantRead]


class MemberRead(ORMModel):
    id: int
    dive_team_id: int
    participant_id: int
    role: Role
    gas_type: GasType
    participant: ParticipantRead


class DiveTeamRead(ORMModel):
    id: int
    rotation_id: int
    number: int
    call_sign: str | None = None
    planned_departure_time: time | None = None
    planned_duration: int | None = None
    planned_depth: int | None = None
    actual_departure_time: time | None = None
    actual_return_time: time | None = None
    actual_duration: int | None = None
    actual_depth: int | None = None
    members: list[MemberRead] = Field(default_factory=list)

    @field_validator("members")
    @classmethod
    def _leaders_first(cls, members: list[MemberRead]) -> list[MemberRead]:
        return sorted(
            members,
            key=lambda m: (ROLE_ORDER[m.role], m.participant.last_name.casefold(), m.participant.first_name.casefold()),
        )

    @field_serializer("planned_departure_time", "actual_departure_time", "actual_return_time")
    def _format_time(self, value: time | None) -> str | None:
        return value.strftime("%H:%M") if value is not None else None


class RotationRead(ORMModel):
    id: int
    session_id: int
    number: int
    dive_teams: list[DiveTeamRead] = Field(default_factory=list)


class RotationTeamsRead(RotationRead):
    available: list[ParticipantGroupRead] = Field(default_factory=list)


class GasCountsPayload(BaseModel):
    supervisor_count: int = Field(0, ge=0)
    supervisor_enriched_count: int = Field(0, ge=0)
    student_count: int = Field(0, ge=0)
    student_enriched_training_count: int = Field(0, ge=0)
    optimization_mode: bool = False


class GasSupplyRead(BaseModel):
    required_standard: int
    required_enriched: int
    total: int
    optimization_mode: bool
    supervisor_count: int
    supervisor_enriched_count: int
    student_count: int
    student_enriched_training_count: int


class SessionTeamsRead(BaseModel):
    session_id: int
    session_name: str
    optimization_mode: bool
    can_edit: bool
    rotations: list[RotationTeamsRead]
    unassigned: list[ParticipantGroupRead]
    gas_supply: GasSupplyRead


class DiveTeamCreate(BaseModel):
    call_sign: str | None = Field(None, max_length=64)


class DiveTeamUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    call_sign: str | None = Field(None, max_length=64)
    planned_departure_time: time | None = None
    planned_duration: int | None = Field(None, ge=0)
    planned_depth: int | None = Field(None, ge=0)
    actual_departure_time: time | None = None
    actual_return_time: time | None = None
    actual_duration: int | None = Field(None, ge=0)
    actual_depth: int | None = Field(None, ge=0)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class MemberCreate(BaseModel):
    participant_id: int
    role: Role
    gas_type: GasType | None = None


class AuditLogRead(ORMModel):
    id: int
    actor: str
    action: str
    session_id: int | None = None
    meta: dict[str, Any]
    created_at: datetime
