from palanquee import ViolationKind


class PlanningError(Exception):
    code = "planning_error"


class PermissionDenied(PlanningError):
    code = "permission_denied"


class NotFound(PlanningError):
    code = "not_found"


class Unavailable(PlanningError):
    code = "unavailable"


class Busy(PlanningError):
    code = "busy"


class ConstraintViolation(PlanningError):
    code = "constraint_violation"

    def __init__(self, kind: ViolationKind, message: str | None = None) -> None:
        self.kind = ViolationKind(kind)
        super().__init__(message or self.kind.value.replace("_", " "))
