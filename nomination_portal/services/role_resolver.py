"""
Role & Scope Resolver — who holds which role, where.

Reads ``UserRole`` rows and turns them into an explicit ``Principal`` value
that is passed into every workflow operation.  Nothing here mutates state.

An unknown user, or a user with no assignments, is not an error: the
result is an empty set, and every authorization check downstream denies on
empty input.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import select

from nomination_portal.models import db
from nomination_portal.models.auth import REVIEWER_ROLES, Role, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleAssignment:
    """One (role, scope) pair.  A ``None`` scope id means unscoped."""

    role: Role
    campus_id: int | None = None
    faculty_id: int | None = None
    department_id: int | None = None

    @classmethod
    def from_row(cls, row: UserRole) -> "RoleAssignment":
        return cls(
            role=Role(row.role),
            campus_id=row.campus_id,
            faculty_id=row.faculty_id,
            department_id=row.department_id,
        )


@dataclass(frozen=True)
class Principal:
    """An authenticated actor together with its resolved role assignments."""

    user_id: int
    assignments: frozenset[RoleAssignment] = field(default_factory=frozenset)

    def assignments_for(self, *roles: Role) -> list[RoleAssignment]:
        wanted = set(roles)
        return [a for a in self.assignments if a.role in wanted]


def roles_of(user_id: int | None) -> frozenset[RoleAssignment]:
    """Return every (role, scope) the user holds."""
    if user_id is None:
        return frozenset()
    rows = db.session.execute(
        select(UserRole).where(UserRole.user_id == user_id)
    ).scalars().all()
    result = set()
    for row in rows:
        try:
            result.add(RoleAssignment.from_row(row))
        except ValueError:
            logger.warning("Ignoring unknown role %r on user_roles.id=%s", row.role, row.id)
    return frozenset(result)


def resolve_principal(user_id: int) -> Principal:
    """Build the Principal passed into workflow operations."""
    return Principal(user_id=user_id, assignments=roles_of(user_id))


def has_role(principal: Principal | None, role: Role) -> bool:
    if principal is None:
        return False
    return any(a.role == role for a in principal.assignments)


def is_system_admin(principal: Principal | None) -> bool:
    return has_role(principal, Role.SYSTEM_ADMIN)


def reviewer_roles_of(principal: Principal | None) -> frozenset[Role]:
    """Reviewing roles held, excluding ``student`` and ``system_admin``."""
    if principal is None:
        return frozenset()
    return frozenset(a.role for a in principal.assignments if a.role in REVIEWER_ROLES)
