"""
Admin Blueprint — role assignments and committee roster (system_admin only).

Routes:
  GET    /admin/role-assignments          ?user_id=
  POST   /admin/role-assignments          { user_id, role, campus_id?, faculty_id?, department_id? }
  DELETE /admin/role-assignments/<id>
  GET    /admin/committee-assignments     ?period_id= &campus_id=
  POST   /admin/committee-assignments     { user_id, period_id, role, campus_id? }
  DELETE /admin/committee-assignments/<id>
"""

from flask import Blueprint, jsonify, request

from nomination_portal.blueprints import current_principal, json_body, register_error_handlers
from nomination_portal.services import committee_assignment_service, role_assignment_service
from nomination_portal.utils.errors import E, api_error

admin_bp = Blueprint("admin_bp", __name__, url_prefix="/api/v1/admin")
register_error_handlers(admin_bp)

_ID_FIELDS = ("user_id", "campus_id", "faculty_id", "department_id")


@admin_bp.route("/role-assignments", methods=["GET"])
def list_role_assignments():
    principal = current_principal()
    user_id = request.args.get("user_id", type=int)
    return jsonify(role_assignment_service.list_assignments(principal, user_id=user_id))


@admin_bp.route("/role-assignments", methods=["POST"])
def create_role_assignment():
    principal = current_principal()
    data = json_body()
    if not data.get("role") or data.get("user_id") is None:
        return api_error(E.BAD_REQUEST, "user_id and role are required")
    if not isinstance(data["role"], str):
        return api_error(
            E.BAD_REQUEST, "Invalid field types", details={"role": "must be a string"},
        )
    bad = [
        f for f in _ID_FIELDS
        if data.get(f) is not None and (isinstance(data[f], bool) or not isinstance(data[f], int))
    ]
    if bad:
        return api_error(
            E.BAD_REQUEST, "Invalid field types",
            details={f: "must be an integer" for f in bad},
        )
    return jsonify(role_assignment_service.assign_role(principal, data)), 201


@admin_bp.route("/role-assignments/<int:assignment_id>", methods=["DELETE"])
def delete_role_assignment(assignment_id):
    principal = current_principal()
    role_assignment_service.revoke_role(principal, assignment_id)
    return jsonify({"success": True})


# ── Committee roster ─────────────────────────────────────────────────────────


@admin_bp.route("/committee-assignments", methods=["GET"])
def list_committee_assignments():
    principal = current_principal()
    return jsonify(committee_assignment_service.list_assignments(
        principal,
        period_id=request.args.get("period_id", type=int),
        campus_id=request.args.get("campus_id", type=int),
    ))


@admin_bp.route("/committee-assignments", methods=["POST"])
def create_committee_assignment():
    principal = current_principal()
    data = json_body()
    missing = [f for f in ("user_id", "period_id", "role") if data.get(f) is None]
    if missing:
        return api_error(
            E.BAD_REQUEST, "Missing required fields",
            details={f: "is required" for f in missing},
        )
    errors = {
        f: "must be an integer"
        for f in ("user_id", "period_id", "campus_id")
        if data.get(f) is not None and (isinstance(data[f], bool) or not isinstance(data[f], int))
    }
    if not isinstance(data["role"], str):
        errors["role"] = "must be a string"
    if errors:
        return api_error(E.BAD_REQUEST, "Invalid field types", details=errors)
    return jsonify(committee_assignment_service.create_assignment(principal, data)), 201


@admin_bp.route("/committee-assignments/<int:assignment_id>", methods=["DELETE"])
def delete_committee_assignment(assignment_id):
    principal = current_principal()
    committee_assignment_service.delete_assignment(principal, assignment_id)
    return jsonify({"success": True})
