"""
Authorization Gate — may this principal act on this application now?

Combines the principal's role assignments with the application's current
status and organisational placement.  Deny-by-default: an empty principal,
a non-reviewable status, or a role without a matching scope all deny.

Scope is checked along a different dimension per role family:

    department_head                      -> department (must be set)
    dean, associate_dean                 -> faculty    (must be set)
    student_affairs, committee_member,
    committee_chairman, president        -> campus     (NULL = all campuses)

``system_admin`` skips the scope check but still needs the stage's role.
"""

import logging
from typing import Callable, NamedTuple

from nomination_portal.core.exceptions import Forbidden
from nomination_portal.models.application import Status
from nomination_portal.models.auth import Role
from nomination_portal.services.role_resolver import (
    Principal,
    RoleAssignment,
    is_system_admin,
)
from nomination_portal.services.workflow import (
    NON_REVIEWABLE,
    is_reviewable,
    reviewer_role_for,
)

logger = logging.getLogger(__name__)


class Placement(NamedTuple):
    """Where an application sits in the organisation."""

    campus_id: int | None
    faculty_id: int | None
    department_id: int | None

    @classmethod
    def of(cls, application) -> "Placement":
        return cls(
            campus_id=application.campus_id,
            faculty_id=application.faculty_id,
            department_id=application.department_id,
        )


def _department_scope(a: RoleAssignment, p: Placement) -> bool:
    # An unscoped department head is a misconfiguration and matches nothing.
    return a.department_id is not None and a.department_id == p.department_id


def _faculty_scope(a: RoleAssignment, p: Placement) -> bool:
    return a.faculty_id is not None and a.faculty_id == p.faculty_id


def _campus_scope(a: RoleAssignment, p: Placement) -> bool:
    return a.campus_id is None or a.campus_id == p.campus_id


def _no_scope(a: RoleAssignment, p: Placement) -> bool:
    return False


SCOPE_PREDICATES: dict[Role, Callable[[RoleAssignment, Placement], bool]] = {
    Role.DEPARTMENT_HEAD: _department_scope,
    Role.ASSOCIATE_DEAN: _faculty_scope,
    Role.DEAN: _faculty_scope,
    Role.STUDENT_AFFAIRS: _campus_scope,
    Role.COMMITTEE_MEMBER: _campus_scope,
    Role.COMMITTEE_CHAIRMAN: _campus_scope,
    Role.PRESIDENT: _campus_scope,
    # Students never review; admins bypass scope before reaching this table.
    Role.STUDENT: _no_scope,
    Role.SYSTEM_ADMIN: _no_scope,
}

assert set(SCOPE_PREDICATES) == set(Role)


def can_act_as(principal: Principal | None, placement: Placement, role: Role) -> bool:
    """True if the principal holds ``role`` with a scope covering ``placement``."""
    if principal is None:
        return False
    held = principal.assignments_for(role)
    if not held:
        return False
    if is_system_admin(principal):
        return True
    predicate = SCOPE_PREDICATES[role]
    return any(predicate(a, placement) for a in held)


def can_review(principal: Principal | None, placement: Placement, status) -> bool:
    """True if the principal may act on an application at ``status``."""
    if not is_reviewable(status):
        return False
    allowed = reviewer_role_for(status).all
    return any(can_act_as(principal, placement, role) for role in allowed)


def require_review(principal: Principal | None, application) -> None:
    """Raise Forbidden unless ``principal`` may review ``application`` now."""
    if not can_review(principal, Placement.of(application), application.current_status):
        logger.warning(
            "Review denied: user=%s application=%s status=%s",
            principal.user_id if principal else None,
            application.id,
            application.current_status,
        )
        raise Forbidden(f"no reviewing role in scope for {application.current_status}")


def require_role(principal: Principal | None, application, role: Role) -> None:
    """Raise Forbidden unless ``principal`` holds ``role`` in scope of ``application``."""
    if not can_act_as(principal, Placement.of(application), role):
        logger.warning(
            "Role check denied: user=%s application=%s role=%s",
            principal.user_id if principal else None,
            application.id,
            role,
        )
        raise Forbidden(f"missing {role} in scope")


def reviewable_statuses_for(principal: Principal | None) -> list[Status]:
    """Stages at which the principal holds a reviewing role (scope ignored)."""
    if principal is None:
        return []
    held = {a.role for a in principal.assignments}
    return [
        s for s in Status
        if s not in NON_REVIEWABLE and held.intersection(reviewer_role_for(s).all)
    ]
