from dataclasses import dataclass, field
from enum import IntEnum
from functools import wraps
from typing import FrozenSet, Iterable, Optional

from flask import g, jsonify


class Role(IntEnum):
    """Closed set of roles, ordered by privilege."""

    USER = 1
    STAFF = 2
    ADMIN = 3

    @classmethod
    def parse(cls, name) -> Optional["Role"]:
        if isinstance(name, Role):
            return name
        name = name if isinstance(name, str) else getattr(name, "name", None)
        if not name:
            return None
        return cls.__members__.get(name.strip().upper())

    @classmethod
    def highest(cls, names: Iterable) -> "Role":
        """Effective role of a user holding several role rows; unknown names are ignored."""
        parsed = [r for r in (cls.parse(n) for n in names or []) if r is not None]
        return max(parsed) if parsed else cls.USER


@dataclass(frozen=True)
class ActorContext:
    """Verified identity handed to the scheduling core by the request layer."""

    user_id: Optional[int]
    role: Role = Role.USER
    venue_ids: FrozenSet[int] = field(default_factory=frozenset)

    @classmethod
    def from_user(cls, user) -> "ActorContext":
        return cls(
            user_id=user.id,
            role=Role.highest(user.role_names),
            venue_ids=frozenset(user.venue_ids),
        )

    def at_least(self, role: Role) -> bool:
        return self.role >= role

    def can_manage_venue(self, venue_id: int) -> bool:
        # ADMIN is not bound to an assignment; STAFF only manages assigned venues
        if self.role >= Role.ADMIN:
            return True
        return self.role >= Role.STAFF and venue_id in self.venue_ids


def current_role() -> Optional[Role]:
    user = getattr(g, "user", None)
    if not user:
        return None
    return Role.highest(user.role_names)


def require_role(minimum: Role):
    """
    Usage: @require_role(Role.STAFF)
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            role = current_role()
            if role is None:
                return jsonify(error="Authentication required"), 401
            if role < minimum:
                return jsonify(error="Forbidden"), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
