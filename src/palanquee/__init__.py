"""Dive team and breathing-gas planning primitives."""

from .classifier import CERTIFICATION_LEVELS, classify_participants
from .exceptions import PalanqueeError, ValidationError
from .gas import BACKUP_CYLINDERS, compute_gas_supply, counts_from_assignments, counts_from_registrations
from .models import (
    Assignment,
    GasCounts,
    GasSupply,
    GasType,
    ParticipantGroup,
    ParticipantProfile,
    Role,
)
from .rules import MAX_LEADERS_PER_TEAM, MAX_STUDENTS_PER_TEAM, ViolationKind, capacity_violation

__all__ = [
    "Assignment",
    "GasCounts",
    "GasSupply",
    "GasType",
    "ParticipantGroup",
    "ParticipantProfile",
    "Role",
    "ViolationKind",
    "PalanqueeError",
    "ValidationError",
    "BACKUP_CYLINDERS",
    "CERTIFICATION_LEVELS",
    "MAX_LEADERS_PER_TEAM",
    "MAX_STUDENTS_PER_TEAM",
    "capacity_violation",
    "classify_participants",
    "compute_gas_supply",
    "counts_from_assignments",
    "counts_from_registrations",
]
