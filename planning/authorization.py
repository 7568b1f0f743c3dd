"""Caller capabilities consumed by the planning engine.

Who is an administrator and who directs which dive is decided upstream; this
module only turns that decision into a value passed explicitly to every call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from .exceptions import PermissionDenied, Unavailable


@dataclass(frozen=True)
class Caller:
    user_id: int | None = None
    is_admin: bool = False
    impersonating: bool = False
    directed_sessions: FrozenSet[int] = field(default_factory=frozenset)
    registered_sessions: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def actor(self) -> str:
        return f"user:{self.user_id}" if self.user_id is not None else "anonymous"


def can_edit(session_id: int, caller: Caller) -> bool:
    if caller.is_admin and not caller.impersonating:
        return True
    return session_id in caller.directed_sessions


def can_view(session_id: int, caller: Caller) -> bool:
    return can_edit(session_id, caller) or session_id in caller.registered_sessions


def require_edit(session_id: int, caller: Caller) -> None:
    if not can_edit(session_id, caller):
        raise PermissionDenied(f"Caller may not edit dive teams of session {session_id}")


def require_view(session_id: int, caller: Caller) -> None:
    if not can_view(session_id, caller):
        raise Unavailable(f"Session {session_id} is not available to this caller")
