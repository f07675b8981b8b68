"""
Reference Blueprint — read-only lookups and the caller's own roles.

Routes:
  GET /award-types
  GET /academic-periods         ?active=true
  GET /campuses
  GET /me/roles                 – caller's role assignments and review stages
"""

from flask import Blueprint, jsonify, request

from nomination_portal.blueprints import current_principal, register_error_handlers
from nomination_portal.services import reference_service
from nomination_portal.services.authorization import reviewable_statuses_for
from nomination_portal.services.role_resolver import reviewer_roles_of

reference_bp = Blueprint("reference_bp", __name__, url_prefix="/api/v1")
register_error_handlers(reference_bp)


@reference_bp.route("/award-types", methods=["GET"])
def list_award_types():
    return jsonify(reference_service.list_award_types())


@reference_bp.route("/academic-periods", methods=["GET"])
def list_academic_periods():
    active_only = request.args.get("active") == "true"
    return jsonify(reference_service.list_academic_periods(active_only=active_only))


@reference_bp.route("/campuses", methods=["GET"])
def list_campuses():
    return jsonify(reference_service.list_campuses())


@reference_bp.route("/me/roles", methods=["GET"])
def my_roles():
    """Role assignments of the caller plus the stages they can review."""
    principal = current_principal()
    assignments = sorted(
        (
            {
                "role": str(a.role),
                "campus_id": a.campus_id,
                "faculty_id": a.faculty_id,
                "department_id": a.department_id,
            }
            for a in principal.assignments
        ),
        key=lambda d: (d["role"], d["campus_id"] or 0, d["faculty_id"] or 0, d["department_id"] or 0),
    )
    return jsonify({
        "user_id": principal.user_id,
        "assignments": assignments,
        "reviewer_roles": sorted(str(r) for r in reviewer_roles_of(principal)),
        "reviewable_statuses": [str(s) for s in reviewable_statuses_for(principal)],
    })
