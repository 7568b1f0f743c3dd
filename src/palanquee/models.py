"""Value objects shared by the planning engine and its pure helpers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Sequence

from .exceptions import ValidationError


class Role(str, enum.Enum):
    supervisor = "supervisor"
    instructor = "instructor"
    student = "student"

    @property
    def leads_team(self) -> bool:
        return self in LEADING_ROLES


LEADING_ROLES = frozenset({Role.supervisor, Role.instructor})


class GasType(str, enum.Enum):
    standard = "standard"
    enriched = "enriched"


@dataclass(slots=True, frozen=True)
class ParticipantProfile:
    """Read-only view of a registered participant (one questionnaire)."""

    id: int
    first_name: str = ""
    last_name: str = ""
    is_supervisor: bool = False
    wants_enriched_gas: bool = False
    in_enriched_gas_training: bool = False
    in_advanced_enriched_gas_training: bool = False
    target_certification_level: str | None = None

    @property
    def default_gas(self) -> GasType:
        """Gas assigned when the caller does not pick one explicitly."""

        if (
            self.wants_enriched_gas
            or self.in_enriched_gas_training
            or self.in_advanced_enriched_gas_training
        ):
            return GasType.enriched
        return GasType.standard

    @property
    def in_any_enriched_gas_training(self) -> bool:
        return self.in_enriched_gas_training or self.in_advanced_enriched_gas_training


@dataclass(slots=True, frozen=True)
class Assignment:
    """A participant placed in a dive team, as seen by the gas counters."""

    participant_id: int
    role: Role
    gas_type: GasType


@dataclass(slots=True, frozen=True)
class GasCounts:
    """The four head counts the gas supply optimizer works from."""

    supervisor_count: int = 0
    supervisor_enriched_count: int = 0
    student_count: int = 0
    student_enriched_training_count: int = 0

    def __post_init__(self) -> None:
        for name in (
            "supervisor_count",
            "supervisor_enriched_count",
            "student_count",
            "student_enriched_training_count",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{name} must be an integer.")
            if value < 0:
                raise ValidationError(f"{name} cannot be negative.")
        if self.supervisor_enriched_count > self.supervisor_count:
            raise ValidationError("supervisor_enriched_count cannot exceed supervisor_count.")
        if self.student_enriched_training_count > self.student_count:
            raise ValidationError(
                "student_enriched_training_count cannot exceed student_count."
            )


@dataclass(slots=True, frozen=True)
class GasSupply:
    """Number of physical cylinders to bring for a session."""

    required_standard: int
    required_enriched: int
    optimization_mode: bool = False

    @property
    def total(self) -> int:
        return self.required_standard + self.required_enriched

    def as_dict(self) -> dict[str, int | bool]:
        """Return a serialisable representation useful for reporting."""

        return {
            "required_standard": self.required_standard,
            "required_enriched": self.required_enriched,
            "total": self.total,
            "optimization_mode": self.optimization_mode,
        }


@dataclass(slots=True, frozen=True)
class ParticipantGroup:
    """Presentation group produced by the classifier."""

    key: str
    label: str
    participants: Sequence[ParticipantProfile] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "participants", tuple(self.participants))

    def __len__(self) -> int:
        return len(self.participants)
