"""Grouping of unassigned participants for presentation.

Groups come in a fixed precedence and a participant lands in the first group
that matches:

1. supervisors;
2. enriched-gas base training (not already in advanced training);
3. enriched-gas advanced training;
4. candidates for each certification level, N1 to N4;
5. everyone else.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Tuple

from .models import ParticipantGroup, ParticipantProfile

CERTIFICATION_LEVELS: Tuple[str, ...] = ("N1", "N2", "N3", "N4")

UNCATEGORIZED = ("uncategorized", "Uncategorized")

Rule = Tuple[str, str, Callable[[ParticipantProfile], bool]]


def normalise_level(level: str | None) -> str | None:
    if not level:
        return None
    cleaned = level.strip().upper()
    return cleaned or None


def _level_rule(level: str) -> Rule:
    return (
        f"level_{level.lower()}",
        f"{level} candidates",
        lambda p: normalise_level(p.target_certification_level) == level,
    )


RULES: Tuple[Rule, ...] = (
    ("supervisors", "Supervisors", lambda p: p.is_supervisor),
    (
        "enriched_gas_base",
        "Enriched-gas base training",
        lambda p: p.in_enriched_gas_training and not p.in_advanced_enriched_gas_training,
    ),
    (
        "enriched_gas_advanced",
        "Enriched-gas advanced training",
        lambda p: p.in_advanced_enriched_gas_training,
    ),
    *(_level_rule(level) for level in CERTIFICATION_LEVELS),
)


def _sort_key(participant: ParticipantProfile) -> tuple[str, str, int]:
    return (participant.last_name.casefold(), participant.first_name.casefold(), participant.id)


def classify_participants(participants: Iterable[ParticipantProfile]) -> List[ParticipantGroup]:
    """Partition ``participants`` into ordered presentation groups.

    Empty groups are left out; every participant appears exactly once.
    """

    buckets: dict[str, list[ParticipantProfile]] = {key: [] for key, _, _ in RULES}
    buckets[UNCATEGORIZED[0]] = []
    for participant in participants:
        for key, _, matches in RULES:
            if matches(participant):
                buckets[key].append(participant)
                break
        else:
            buckets[UNCATEGORIZED[0]].append(participant)

    groups: List[ParticipantGroup] = []
    for key, label in [(key, label) for key, label, _ in RULES] + [UNCATEGORIZED]:
        members = buckets[key]
        if members:
            groups.append(ParticipantGroup(key=key, label=label, participants=sorted(members, key=_sort_key)))
    return groups
