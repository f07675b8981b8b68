"""
Application Blueprint — nominations, reviewer decisions and committee votes.

Routes:
  GET    /applications                          – list (filters, review queue)
  POST   /applications                          – create draft (or submit)
  GET    /applications/<id>                     – detail
  PUT    /applications/<id>                     – edit draft
  DELETE /applications/<id>                     – delete draft
  POST   /applications/<id>/submit              – draft -> submitted
  POST   /applications/<id>/approve             – approve / reject current stage
  POST   /applications/<id>/vote                – committee vote
  GET    /applications/<id>/voting-summary      – tally
  POST   /applications/<id>/close-voting        – chairman closes the vote
  GET    /applications/<id>/endorsements        – chairman / president endorsements
  GET    /applications/<id>/history             – audit trail, oldest first
  GET    /statistics                            – dashboard counts

Every route needs an authenticated caller.  Business rules live in the
services; this module only parses input and shapes responses.
"""

import logging

from flask import Blueprint, jsonify, request

from nomination_portal.blueprints import (
    current_principal,
    json_body,
    parse_pagination,
    register_error_handlers,
)
from nomination_portal.models.application import EDITABLE_FIELDS, VALID_STATUSES
from nomination_portal.services import (
    application_service,
    audit_service,
    endorsement_service,
    voting_service,
)
from nomination_portal.services.workflow import DECISIONS
from nomination_portal.utils.errors import E, api_error

logger = logging.getLogger(__name__)

application_bp = Blueprint("application_bp", __name__, url_prefix="/api/v1")
register_error_handlers(application_bp)

_REQUIRED_ON_CREATE = ("award_type_id", "period_id", "campus_id", "project_name")
_INT_FIELDS = ("award_type_id", "period_id", "campus_id", "activity_hours")


# ── helpers ──────────────────────────────────────────────────────────────

def _bad_request(message, details=None):
    return api_error(E.BAD_REQUEST, message, details=details)


def _check_types(data):
    """Return a field -> message dict for ints that aren't ints."""
    errors = {}
    for field in _INT_FIELDS:
        value = data.get(field)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            errors[field] = "must be an integer"
    for field in ("project_name", "description", "achievements"):
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            errors[field] = "must be a string"
    return errors


def _non_string_fields(data, *fields):
    """Return a field -> message dict for present, non-null, non-string values."""
    return {
        f: "must be a string"
        for f in fields
        if data.get(f) is not None and not isinstance(data[f], str)
    }


def _int_arg(name):
    value = request.args.get(name)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


# ═════════════════════════════════════════════════════════════════════════════
# APPLICATION CRUD
# ═════════════════════════════════════════════════════════════════════════════

@application_bp.route("/applications", methods=["GET"])
def list_applications():
    """List applications, newest first.

    Query params: status, award_type_id, period_id, campus_id,
    reviewable=true (caller's review queue), mine=true, page, limit.
    """
    principal = current_principal()
    status = request.args.get("status")
    if status and status not in VALID_STATUSES:
        return _bad_request(f"status must be one of {sorted(VALID_STATUSES)}")

    filters = {
        "status": status,
        "award_type_id": _int_arg("award_type_id"),
        "period_id": _int_arg("period_id"),
        "campus_id": _int_arg("campus_id"),
    }
    if request.args.get("mine") == "true":
        filters["student_id"] = principal.user_id
    page, limit = parse_pagination()
    result = application_service.list_applications(
        filters,
        page=page,
        limit=limit,
        principal=principal,
        reviewable=request.args.get("reviewable") == "true",
    )
    return jsonify(result)


@application_bp.route("/applications", methods=["POST"])
def create_application():
    """Create an application owned by the caller.

    Body: { award_type_id, period_id, campus_id, project_name,
            description?, achievements?, activity_hours?, submit? }
    """
    principal = current_principal()
    data = json_body()

    missing = [f for f in _REQUIRED_ON_CREATE if data.get(f) in (None, "")]
    if missing:
        return _bad_request(
            "Missing required fields",
            details={f: "is required" for f in missing},
        )
    errors = _check_types(data)
    if errors:
        return _bad_request("Invalid field types", details=errors)

    fields = {f: data[f] for f in EDITABLE_FIELDS if f in data}
    created = application_service.create_application(
        principal, fields, submit=bool(data.get("submit", False)),
    )
    return jsonify(created), 201


@application_bp.route("/applications/<string:application_id>", methods=["GET"])
def get_application(application_id):
    principal = current_principal()
    return jsonify(application_service.get_application_detail(application_id, principal))


@application_bp.route("/applications/<string:application_id>", methods=["PUT", "PATCH"])
def update_application(application_id):
    """Edit content fields of a draft.  ``current_status`` is rejected."""
    principal = current_principal()
    data = json_body()
    if not data:
        return _bad_request("Request body must be a JSON object")
    errors = _check_types(data)
    if errors:
        return _bad_request("Invalid field types", details=errors)
    return jsonify(application_service.update_application(principal, application_id, data))


@application_bp.route("/applications/<string:application_id>", methods=["DELETE"])
def delete_application(application_id):
    principal = current_principal()
    application_service.delete_application(principal, application_id)
    return jsonify({"success": True}), 200


# ═════════════════════════════════════════════════════════════════════════════
# WORKFLOW
# ═════════════════════════════════════════════════════════════════════════════

@application_bp.route("/applications/<string:application_id>/submit", methods=["POST"])
def submit_application(application_id):
    principal = current_principal()
    data = json_body()
    errors = _non_string_fields(data, "comment")
    if errors:
        return _bad_request("Invalid field types", details=errors)
    return jsonify(
        application_service.submit_application(principal, application_id, data.get("comment"))
    )


@application_bp.route("/applications/<string:application_id>/approve", methods=["POST"])
def decide_application(application_id):
    """Approve or reject the application at its current stage.

    Body: { action: "approve" | "reject", comment?, to_status? }
    """
    principal = current_principal()
    data = json_body()
    errors = _non_string_fields(data, "action", "to_status", "comment")
    if errors:
        return _bad_request("Invalid field types", details=errors)
    action = data.get("action")
    if action not in DECISIONS:
        return _bad_request("action must be 'approve' or 'reject'", details={"action": action})
    to_status = data.get("to_status")
    if to_status is not None and to_status not in VALID_STATUSES:
        return _bad_request(
            f"to_status must be one of {sorted(VALID_STATUSES)}",
            details={"to_status": to_status},
        )
    result = application_service.decide(
        principal,
        application_id,
        action,
        comment=data.get("comment"),
        to_status=to_status,
    )
    return jsonify(result)


@application_bp.route("/applications/<string:application_id>/vote", methods=["POST"])
def cast_vote(application_id):
    """Body: { is_agree: bool, comment? }.  Re-voting replaces the earlier vote."""
    principal = current_principal()
    data = json_body()
    is_agree = data.get("is_agree")
    if not isinstance(is_agree, bool):
        return _bad_request("is_agree must be a boolean", details={"is_agree": is_agree})
    errors = _non_string_fields(data, "comment")
    if errors:
        return _bad_request("Invalid field types", details=errors)
    comment = data.get("comment")
    vote = voting_service.cast_vote(application_id, principal, is_agree, comment)
    return jsonify({"success": True, "vote": vote})


@application_bp.route("/applications/<string:application_id>/voting-summary", methods=["GET"])
def voting_summary(application_id):
    current_principal()
    return jsonify(voting_service.get_voting_summary(application_id))


@application_bp.route("/applications/<string:application_id>/close-voting", methods=["POST"])
def close_voting(application_id):
    principal = current_principal()
    passed = voting_service.close_voting(application_id, principal)
    app = application_service.get_application_or_raise(application_id)
    return jsonify({"success": True, "passed": passed, "new_status": app.current_status})


@application_bp.route("/applications/<string:application_id>/endorsements", methods=["GET"])
def application_endorsements(application_id):
    current_principal()
    application_service.get_application_or_raise(application_id)
    return jsonify(endorsement_service.list_for(application_id))


@application_bp.route("/applications/<string:application_id>/history", methods=["GET"])
def application_history(application_id):
    current_principal()
    return jsonify(audit_service.history_for(application_id))


# ═════════════════════════════════════════════════════════════════════════════
# DASHBOARD
# ═════════════════════════════════════════════════════════════════════════════

@application_bp.route("/statistics", methods=["GET"])
def statistics():
    current_principal()
    return jsonify(application_service.get_statistics())
