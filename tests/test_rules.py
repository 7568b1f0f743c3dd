import pytest

from palanquee import Role, ViolationKind, capacity_violation


def test_third_leader_is_rejected_whatever_the_leading_role() -> None:
    leaders = [Role.supervisor, Role.supervisor]
    assert capacity_violation(leaders, Role.instructor) == ViolationKind.supervisor_capacity_exceeded
    assert capacity_violation([Role.supervisor, Role.instructor], Role.supervisor) == (
        ViolationKind.supervisor_capacity_exceeded
    )


def test_fifth_student_is_rejected() -> None:
    team = [Role.supervisor] + [Role.student] * 4
    assert capacity_violation(team, Role.student) == ViolationKind.student_capacity_exceeded
    # students do not use leader slots
    assert capacity_violation(team, Role.instructor) is None


@pytest.mark.parametrize(
    "roles, new_role",
    [
        ([], Role.supervisor),
        ([Role.supervisor], Role.instructor),
        ([Role.student] * 3, Role.student),
        ([Role.supervisor, Role.instructor], Role.student),
    ],
)
def test_room_left(roles, new_role) -> None:
    assert capacity_violation(roles, new_role) is None


def test_roles_given_as_strings() -> None:
    assert capacity_violation(["student"] * 4, Role.student) == ViolationKind.student_capacity_exceeded
