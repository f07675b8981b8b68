"""
Committee Assignment Service — per-period committee roster.

System administrators appoint committee members and chairmen for an
academic period, optionally for one campus.  Appointing also grants the
matching campus-scoped ``UserRole`` if the user does not hold it yet, so
the appointee can vote.  Removing an appointment leaves role assignments
untouched; revoke those through ``role_assignment_service``.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from nomination_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from nomination_portal.models import db
from nomination_portal.models.auth import User, UserRole
from nomination_portal.models.committee import COMMITTEE_ROLES, CommitteeAssignment
from nomination_portal.models.organization import AcademicPeriod, Campus
from nomination_portal.services.role_assignment_service import require_admin
from nomination_portal.services.role_resolver import Principal

logger = logging.getLogger(__name__)


def _same_campus(column, campus_id):
    return column.is_(None) if campus_id is None else column == campus_id


def _covers_campus(column, campus_id):
    # NULL scope means every campus.
    return column.is_(None) if campus_id is None else or_(column.is_(None), column == campus_id)


def list_assignments(
    principal: Principal,
    period_id: int | None = None,
    campus_id: int | None = None,
) -> list[dict]:
    require_admin(principal)
    stmt = select(CommitteeAssignment).order_by(
        CommitteeAssignment.created_at.desc(), CommitteeAssignment.id.desc(),
    )
    if period_id is not None:
        stmt = stmt.where(CommitteeAssignment.period_id == period_id)
    if campus_id is not None:
        stmt = stmt.where(CommitteeAssignment.campus_id == campus_id)
    return [a.to_dict() for a in db.session.execute(stmt).scalars().all()]


def _ensure_role(user_id: int, role: str, campus_id: int | None) -> bool:
    """Grant ``role`` scoped to ``campus_id`` unless an equal or wider one is held.

    Returns True if a role was granted.
    """
    held = db.session.execute(
        select(UserRole.id).where(
            UserRole.user_id == user_id,
            UserRole.role == role,
            _covers_campus(UserRole.campus_id, campus_id),
            UserRole.faculty_id.is_(None),
            UserRole.department_id.is_(None),
        )
    ).first()
    if held is not None:
        return False
    db.session.add(UserRole(user_id=user_id, role=role, campus_id=campus_id))
    return True


def create_assignment(principal: Principal, data: dict) -> dict:
    """Appoint a user to a period's committee.

    Raises:
        Forbidden: caller is not a system administrator.
        ValidationError: not a committee role, or unknown period / campus.
        NotFoundError: unknown user.
        ConflictError: the same appointment already exists.
    """
    require_admin(principal)

    role = data.get("role")
    if not isinstance(role, str) or role not in COMMITTEE_ROLES:
        raise ValidationError(
            "Unknown committee role",
            details={"role": f"must be one of {sorted(COMMITTEE_ROLES)}"},
        )
    user_id = data.get("user_id")
    if user_id is None or db.session.get(User, user_id) is None:
        raise NotFoundError(resource="User", resource_id=user_id)

    period_id = data.get("period_id")
    campus_id = data.get("campus_id")
    errors = {}
    if period_id is None or db.session.get(AcademicPeriod, period_id) is None:
        errors["period_id"] = f"AcademicPeriod {period_id} does not exist"
    if campus_id is not None and db.session.get(Campus, campus_id) is None:
        errors["campus_id"] = f"Campus {campus_id} does not exist"
    if errors:
        raise ValidationError("Unknown reference data", details=errors)

    existing = db.session.execute(
        select(CommitteeAssignment.id).where(
            CommitteeAssignment.period_id == period_id,
            CommitteeAssignment.user_id == user_id,
            CommitteeAssignment.role == role,
            _same_campus(CommitteeAssignment.campus_id, campus_id),
        )
    ).first()
    if existing is not None:
        raise ConflictError("Committee assignment already exists")

    row = CommitteeAssignment(
        period_id=period_id,
        user_id=user_id,
        role=role,
        campus_id=campus_id,
        assigned_by=principal.user_id,
    )
    try:
        db.session.add(row)
        granted = _ensure_role(user_id, role, campus_id)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Committee assignment already exists") from None
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Committee assignment created: user=%s role=%s period=%s campus=%s role_granted=%s by=%s",
        user_id, role, period_id, campus_id, granted, principal.user_id,
    )
    return row.to_dict()


def delete_assignment(principal: Principal, assignment_id: int) -> None:
    require_admin(principal)
    row = db.session.get(CommitteeAssignment, assignment_id)
    if row is None:
        raise NotFoundError(resource="CommitteeAssignment", resource_id=assignment_id)
    user_id, period_id = row.user_id, row.period_id
    try:
        db.session.delete(row)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(
        "Committee assignment removed: user=%s period=%s by=%s",
        user_id, period_id, principal.user_id,
    )
