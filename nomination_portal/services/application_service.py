"""
Application Service — nomination CRUD and reviewer decisions.

Owns every write to ``applications``:
    create / update / delete      student-owned, draft only
    submit_application            draft -> submitted
    decide                        approve / reject at the current stage;
                                  chairman and president decisions also
                                  append a signed endorsement

Status never changes through ``update_application``.  Every status change
goes through ``transition_service.apply_transition`` (compare-and-set +
audit entry) inside one commit.

Committee stage: ``decide`` refuses both actions at committee_review.
That stage is left only through ``voting_service.close_voting``.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select

from nomination_portal.core.exceptions import (
    Forbidden,
    IllegalTransition,
    NotFoundError,
    ValidationError,
)
from nomination_portal.models import db
from nomination_portal.models.application import EDITABLE_FIELDS, Application, Status
from nomination_portal.models.audit import ActionType
from nomination_portal.models.auth import StudentProfile
from nomination_portal.models.organization import AcademicPeriod, AwardType, Campus
from nomination_portal.services import audit_service, endorsement_service, voting_service
from nomination_portal.services.authorization import (
    Placement,
    can_review,
    require_review,
    reviewable_statuses_for,
)
from nomination_portal.services.role_resolver import Principal, is_system_admin
from nomination_portal.services.transition_service import apply_transition
from nomination_portal.services.workflow import (
    APPROVE,
    DECISIONS,
    step_index,
    validate_override,
)

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────────


def get_application_or_raise(application_id: str) -> Application:
    app = db.session.get(Application, application_id)
    if app is None:
        raise NotFoundError(resource="Application", resource_id=application_id)
    return app


def _require_owner(principal: Principal, app: Application, *, allow_admin: bool = False) -> None:
    if app.student_id == principal.user_id:
        return
    if allow_admin and is_system_admin(principal):
        return
    logger.warning("Owner check denied: user=%s application=%s", principal.user_id, app.id)
    raise Forbidden("not the application owner")


def _require_draft(app: Application, action: str) -> None:
    if app.current_status != Status.DRAFT:
        raise ValidationError(
            f"Only draft applications can be {action}",
            details={"current_status": app.current_status},
        )


def _validate_references(data: dict) -> None:
    """Check that referenced award type / period / campus rows exist."""
    errors = {}
    for field, model in (
        ("award_type_id", AwardType),
        ("period_id", AcademicPeriod),
        ("campus_id", Campus),
    ):
        if field not in data:
            continue
        if data[field] is None:
            errors[field] = "is required"
        elif db.session.get(model, data[field]) is None:
            errors[field] = f"{model.__name__} {data[field]} does not exist"
    if errors:
        raise ValidationError("Unknown reference data", details=errors)


# ── Queries ────────────────────────────────────────────────────────────────────


def list_applications(
    filters: dict | None = None,
    page: int = 1,
    limit: int = 20,
    principal: Principal | None = None,
    reviewable: bool = False,
) -> dict:
    """Paginated application list, newest first.

    Args:
        filters: optional ``status``, ``award_type_id``, ``period_id``,
            ``campus_id``, ``student_id`` equality filters.
        reviewable: narrow to applications ``principal`` can act on now
            (the reviewer's queue).  Scope is evaluated per row.
    """
    filters = filters or {}
    stmt = select(Application).order_by(Application.created_at.desc(), Application.id)
    if filters.get("status"):
        stmt = stmt.where(Application.current_status == filters["status"])
    for field in ("award_type_id", "period_id", "campus_id", "student_id"):
        if filters.get(field) is not None:
            stmt = stmt.where(getattr(Application, field) == filters[field])

    offset = (page - 1) * limit
    if reviewable:
        statuses = [str(s) for s in reviewable_statuses_for(principal)]
        if not statuses:
            rows = []
        else:
            candidates = db.session.execute(
                stmt.where(Application.current_status.in_(statuses))
            ).scalars().all()
            rows = [
                a for a in candidates
                if can_review(principal, Placement.of(a), a.current_status)
            ]
        total = len(rows)
        items = rows[offset:offset + limit]
    else:
        total = db.session.execute(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        ).scalar_one()
        items = db.session.execute(stmt.limit(limit).offset(offset)).scalars().all()

    return {
        "data": [_list_item(a) for a in items],
        "pagination": {"page": page, "limit": limit, "total": total},
    }


def _list_item(app: Application) -> dict:
    d = app.to_dict()
    d["award_type"] = (
        {"type_code": app.award_type.type_code, "type_name": app.award_type.type_name}
        if app.award_type else None
    )
    d["student_email"] = app.student.email if app.student else None
    d["step_index"] = step_index(app.current_status)
    return d


def get_application_detail(application_id: str, principal: Principal | None = None) -> dict:
    """Application with nested award type, period, campus, votes, log and summary."""
    app = get_application_or_raise(application_id)
    d = app.to_dict()
    d["award_type"] = app.award_type.to_dict() if app.award_type else None
    d["period"] = app.period.to_dict() if app.period else None
    d["campus"] = app.campus.to_dict() if app.campus else None
    d["student"] = {"id": app.student_id, "email": app.student.email if app.student else None}
    d["committee_votes"] = voting_service.list_votes(app.id)
    d["approval_logs"] = audit_service.list_for(app.id)
    d["voting_summary"] = voting_service.get_voting_summary(app.id)
    d["endorsements"] = endorsement_service.list_for(app.id)
    d["step_index"] = step_index(app.current_status)
    if principal is not None:
        d["can_review"] = can_review(principal, Placement.of(app), app.current_status)
    return d


def get_statistics() -> dict:
    """Counts by status and by award type code (dashboard)."""
    by_status = dict(
        db.session.execute(
            select(Application.current_status, func.count(Application.id))
            .group_by(Application.current_status)
        ).all()
    )
    by_award_type = dict(
        db.session.execute(
            select(AwardType.type_code, func.count(Application.id))
            .join(AwardType, AwardType.id == Application.award_type_id)
            .group_by(AwardType.type_code)
        ).all()
    )
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "by_award_type": by_award_type,
    }


# ── Student operations ─────────────────────────────────────────────────────────


def create_application(principal: Principal, data: dict, submit: bool = False) -> dict:
    """Create an application owned by ``principal``.

    Status is ``draft``, or ``submitted`` when ``submit`` is True (which
    also appends a ``submit`` log entry).

    Raises:
        ValidationError: missing student profile or unknown references.
    """
    profile = db.session.execute(
        select(StudentProfile).where(StudentProfile.user_id == principal.user_id)
    ).scalar_one_or_none()
    if profile is None:
        raise ValidationError("A student profile is required to apply")

    _validate_references(data)

    app = Application(
        student_id=principal.user_id,
        current_status=Status.DRAFT.value,
        **{f: data.get(f) for f in EDITABLE_FIELDS},
    )
    try:
        db.session.add(app)
        db.session.flush()
        if submit:
            apply_transition(
                app,
                expected=Status.DRAFT,
                target=Status.SUBMITTED,
                action_type=ActionType.SUBMIT,
                actor_id=principal.user_id,
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Application created",
        extra={"application_id": app.id, "actor_id": principal.user_id},
    )
    return app.to_dict()


def update_application(principal: Principal, application_id: str, data: dict) -> dict:
    """Edit content fields of a draft.  ``current_status`` is not writable."""
    app = get_application_or_raise(application_id)
    _require_owner(principal, app)
    _require_draft(app, "edited")
    if "current_status" in data:
        raise ValidationError(
            "current_status can only change through the approval workflow",
            details={"current_status": "read-only"},
        )

    changes = {f: data[f] for f in EDITABLE_FIELDS if f in data}
    _validate_references(changes)
    for field, value in changes.items():
        setattr(app, field, value)

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return app.to_dict()


def submit_application(principal: Principal, application_id: str, comment: str | None = None) -> dict:
    """Move the owner's draft to ``submitted``."""
    app = get_application_or_raise(application_id)
    _require_owner(principal, app)
    if app.current_status != Status.DRAFT:
        logger.warning(
            "Submit from non-draft status: application=%s status=%s",
            app.id, app.current_status,
        )
        raise IllegalTransition(app.current_status, "submit", "only drafts can be submitted")

    try:
        apply_transition(
            app,
            expected=Status.DRAFT,
            target=Status.SUBMITTED,
            action_type=ActionType.SUBMIT,
            actor_id=principal.user_id,
            comment=comment,
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return {"success": True, "previous_status": str(Status.DRAFT), "new_status": app.current_status}


def delete_application(principal: Principal, application_id: str) -> None:
    """Delete a draft.  Submitted applications are part of the record."""
    app = get_application_or_raise(application_id)
    _require_owner(principal, app, allow_admin=True)
    _require_draft(app, "deleted")
    try:
        db.session.delete(app)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(
        "Draft application deleted",
        extra={"application_id": application_id, "actor_id": principal.user_id},
    )


# ── Reviewer decision ──────────────────────────────────────────────────────────


def decide(
    principal: Principal,
    application_id: str,
    action: str,
    comment: str | None = None,
    to_status: str | None = None,
) -> dict:
    """Approve or reject an application at its current stage.

    Order of checks: existence (404) -> authorization gate (403) ->
    committee stage refusal and legal-transition table (400) ->
    compare-and-set (409).

    Returns:
        {"success": True, "previous_status": ..., "new_status": ...}
    """
    if action not in DECISIONS:
        raise IllegalTransition("unknown", action, "action must be 'approve' or 'reject'")

    app = get_application_or_raise(application_id)
    require_review(principal, app)

    current = app.status
    if current == Status.COMMITTEE_REVIEW:
        logger.warning(
            "Direct %s at committee stage refused: application=%s user=%s",
            action, app.id, principal.user_id,
        )
        raise IllegalTransition(
            current, action, "committee review is decided by closing the vote",
        )

    try:
        target = validate_override(current, action, to_status)
    except IllegalTransition:
        logger.warning(
            "Illegal transition requested: application=%s status=%s action=%s to_status=%s",
            app.id, current, action, to_status,
        )
        raise

    try:
        apply_transition(
            app,
            expected=current,
            target=target,
            action_type=action,
            actor_id=principal.user_id,
            comment=comment,
        )
        endorsement_service.record_endorsement(
            app.id, current, principal.user_id, action == APPROVE, comment,
        )
        if target == Status.COMMITTEE_REVIEW:
            voting_service.ensure_summary_row(app.id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return {
        "success": True,
        "previous_status": str(current),
        "new_status": str(target),
    }
