"""Breathing-gas cylinder planning.

Cylinder needs depend only on four head counts and the session's
optimization flag:

* every supervisor needs one cylinder of the gas they dive on;
* every student needs one cylinder, enriched for students in enriched-gas
  training, standard otherwise;
* one standard-gas cylinder is always added as a safety spare;
* in optimization mode students make two water rotations sharing the same
  cylinders, so the student demand (spare included) is halved, rounding up.

The counts can be derived either from registrations, before any team exists,
or from the actual team membership for a live figure while editing.
"""

from __future__ import annotations

import math
from typing import Iterable

from .models import Assignment, GasCounts, GasSupply, GasType, ParticipantProfile

BACKUP_CYLINDERS = 1


def _shared(value: int) -> int:
    return math.ceil(value / 2)


def compute_gas_supply(counts: GasCounts, optimization_mode: bool = False) -> GasSupply:
    """Return the number of standard and enriched cylinders to bring."""

    student_standard_count = counts.student_count - counts.student_enriched_training_count
    student_standard_demand = student_standard_count + BACKUP_CYLINDERS
    student_enriched_demand = counts.student_enriched_training_count
    if optimization_mode:
        student_standard_demand = _shared(student_standard_demand)
        student_enriched_demand = _shared(student_enriched_demand)

    supervisor_standard = counts.supervisor_count - counts.supervisor_enriched_count
    return GasSupply(
        required_standard=supervisor_standard + student_standard_demand,
        required_enriched=counts.supervisor_enriched_count + student_enriched_demand,
        optimization_mode=optimization_mode,
    )


def counts_from_registrations(participants: Iterable[ParticipantProfile]) -> GasCounts:
    """Head counts for session-wide planning, before teams are built."""

    supervisors = students = supervisors_enriched = students_enriched = 0
    for participant in participants:
        if participant.is_supervisor:
            supervisors += 1
            if participant.wants_enriched_gas:
                supervisors_enriched += 1
        else:
            students += 1
            if participant.in_any_enriched_gas_training:
                students_enriched += 1
    return GasCounts(
        supervisor_count=supervisors,
        supervisor_enriched_count=supervisors_enriched,
        student_count=students,
        student_enriched_training_count=students_enriched,
    )


def counts_from_assignments(assignments: Iterable[Assignment]) -> GasCounts:
    """Head counts from actual membership, each participant counted once.

    A participant placed in several rotations is a supervisor if any of their
    placements leads a team, and dives on enriched gas if any placement does.
    """

    leading: dict[int, bool] = {}
    enriched: dict[int, bool] = {}
    for item in assignments:
        pid = item.participant_id
        leading[pid] = leading.get(pid, False) or item.role.leads_team
        enriched[pid] = enriched.get(pid, False) or item.gas_type == GasType.enriched

    supervisors = [pid for pid, leads in leading.items() if leads]
    students = [pid for pid, leads in leading.items() if not leads]
    return GasCounts(
        supervisor_count=len(supervisors),
        supervisor_enriched_count=sum(1 for pid in supervisors if enriched[pid]),
        student_count=len(students),
        student_enriched_training_count=sum(1 for pid in students if enriched[pid]),
    )
