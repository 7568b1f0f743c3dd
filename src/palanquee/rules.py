"""Dive team composition limits."""

from __future__ import annotations

import enum
from typing import Iterable

from .models import Role

MAX_LEADERS_PER_TEAM = 2
MAX_STUDENTS_PER_TEAM = 4


class ViolationKind(str, enum.Enum):
    duplicate_in_rotation = "duplicate_in_rotation"
    supervisor_capacity_exceeded = "supervisor_capacity_exceeded"
    student_capacity_exceeded = "student_capacity_exceeded"


def capacity_violation(current_roles: Iterable[Role], new_role: Role) -> ViolationKind | None:
    """Return the limit ``new_role`` would break in a team, if any.

    Supervisors and instructors share the leader limit.
    """

    roles = [Role(role) for role in current_roles]
    if new_role.leads_team:
        leaders = sum(1 for role in roles if role.leads_team)
        if leaders >= MAX_LEADERS_PER_TEAM:
            return ViolationKind.supervisor_capacity_exceeded
        return None
    students = sum(1 for role in roles if role == Role.student)
    if students >= MAX_STUDENTS_PER_TEAM:
        return ViolationKind.student_capacity_exceeded
    return None
