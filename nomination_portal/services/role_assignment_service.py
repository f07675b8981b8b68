"""
Role Assignment Service — system administrators grant and revoke roles.

Scope rules enforced on grant:
    department_head           department_id required
    dean / associate_dean     faculty_id required
    system_admin, student     no scope columns
    everything else           optional campus_id (NULL = all campuses)

Referenced users, campuses, faculties and departments must exist.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from nomination_portal.core.exceptions import (
    ConflictError,
    Forbidden,
    NotFoundError,
    ValidationError,
)
from nomination_portal.models import db
from nomination_portal.models.auth import VALID_ROLES, Role, User, UserRole
from nomination_portal.models.organization import Campus, Department, Faculty
from nomination_portal.services.role_resolver import Principal, is_system_admin

logger = logging.getLogger(__name__)

_SCOPE_FIELDS = ("campus_id", "faculty_id", "department_id")

_REQUIRED_SCOPE = {
    Role.DEPARTMENT_HEAD: "department_id",
    Role.DEAN: "faculty_id",
    Role.ASSOCIATE_DEAN: "faculty_id",
}

_UNSCOPED_ROLES = frozenset({Role.SYSTEM_ADMIN, Role.STUDENT})


def require_admin(principal: Principal) -> None:
    if not is_system_admin(principal):
        logger.warning("Role administration denied: user=%s", principal.user_id)
        raise Forbidden("system_admin required")


def _validate_scope(role: Role, scope: dict) -> None:
    errors = {}
    required = _REQUIRED_SCOPE.get(role)
    if required and scope.get(required) is None:
        errors[required] = f"is required for {role}"
    if role in _UNSCOPED_ROLES:
        for f in _SCOPE_FIELDS:
            if scope.get(f) is not None:
                errors[f] = f"{role} cannot be scoped"

    for f, model in (("campus_id", Campus), ("faculty_id", Faculty), ("department_id", Department)):
        if f not in errors and scope.get(f) is not None and db.session.get(model, scope[f]) is None:
            errors[f] = f"{model.__name__} {scope[f]} does not exist"
    if errors:
        raise ValidationError("Invalid role scope", details=errors)


def list_assignments(principal: Principal, user_id: int | None = None) -> list[dict]:
    require_admin(principal)
    stmt = select(UserRole).order_by(UserRole.user_id, UserRole.id)
    if user_id is not None:
        stmt = stmt.where(UserRole.user_id == user_id)
    return [r.to_dict() for r in db.session.execute(stmt).scalars().all()]


def assign_role(principal: Principal, data: dict) -> dict:
    """Grant a (role, scope) to a user.

    Raises:
        Forbidden: caller is not a system administrator.
        ValidationError: unknown role or invalid scope.
        NotFoundError: unknown user.
        ConflictError: the same assignment already exists.
    """
    require_admin(principal)

    role_name = data.get("role")
    if not isinstance(role_name, str) or role_name not in VALID_ROLES:
        raise ValidationError(
            "Unknown role",
            details={"role": f"must be one of {sorted(VALID_ROLES)}"},
        )
    role = Role(role_name)
    user_id = data.get("user_id")
    if user_id is None or db.session.get(User, user_id) is None:
        raise NotFoundError(resource="User", resource_id=user_id)

    scope = {f: data.get(f) for f in _SCOPE_FIELDS}
    _validate_scope(role, scope)

    existing = db.session.execute(
        select(UserRole).where(
            UserRole.user_id == user_id,
            UserRole.role == role.value,
            *[
                getattr(UserRole, f).is_(None) if v is None else getattr(UserRole, f) == v
                for f, v in scope.items()
            ],
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictError("Role assignment already exists")

    row = UserRole(user_id=user_id, role=role.value, **scope)
    try:
        db.session.add(row)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Role assignment already exists") from None
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Role assigned: user=%s role=%s scope=%s by=%s",
        user_id, role, scope, principal.user_id,
    )
    return row.to_dict()


def revoke_role(principal: Principal, assignment_id: int) -> None:
    require_admin(principal)
    row = db.session.get(UserRole, assignment_id)
    if row is None:
        raise NotFoundError(resource="UserRole", resource_id=assignment_id)
    user_id, role = row.user_id, row.role
    try:
        db.session.delete(row)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Role revoked: user=%s role=%s by=%s", user_id, role, principal.user_id)
