"""
Outstanding-Student Nomination Portal
Blueprint helpers shared by every API blueprint.
"""

import logging

from flask import g, request

from nomination_portal.core.exceptions import (
    AuthenticationRequired,
    ConflictError,
    Forbidden,
    IllegalTransition,
    NotFoundError,
    StaleStateConflict,
    ValidationError,
    VotingAlreadyClosed,
)
from nomination_portal.models import db
from nomination_portal.models.auth import User
from nomination_portal.services.role_resolver import Principal, resolve_principal
from nomination_portal.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def current_principal(required=True):
    """Principal for the JWT subject of this request.

    Returns None for anonymous calls when ``required`` is False.  A token
    for a deleted or deactivated user counts as anonymous.
    """
    user_id = getattr(g, "jwt_user_id", None)
    if user_id is not None:
        user = db.session.get(User, user_id)
        if user is not None and user.is_active:
            return resolve_principal(user.id)
    if required:
        raise AuthenticationRequired()
    return None


def parse_pagination(default_limit=20, max_limit=100):
    """Read ``page`` / ``limit`` query params.

    Returns:
        (page, limit) with page >= 1 and 1 <= limit <= max_limit
    """
    try:
        page = max(int(request.args.get("page", 1)), 1)
    except (ValueError, TypeError):
        page = 1
    try:
        limit = min(max(int(request.args.get("limit", default_limit)), 1), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    return page, limit


def json_body():
    """Request JSON as a dict; a non-object body becomes ``{}``."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def register_error_handlers(bp):
    """Map core exceptions to the standard JSON error shape on ``bp``."""

    @bp.errorhandler(AuthenticationRequired)
    def _handle_auth(error):
        return api_error(E.AUTH_REQUIRED, str(error))

    @bp.errorhandler(Forbidden)
    def _handle_forbidden(error: Forbidden):
        return api_error(E.FORBIDDEN, Forbidden.public_message)

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, f"{error.resource} not found")

    @bp.errorhandler(IllegalTransition)
    def _handle_illegal(error: IllegalTransition):
        logger.warning("Illegal transition on %s: %s", request.endpoint, error)
        return api_error(
            E.ILLEGAL_TRANSITION,
            str(error),
            details={"current_status": error.current_status, "action": error.action},
        )

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION, str(error), details=error.details)

    @bp.errorhandler(VotingAlreadyClosed)
    def _handle_voting_closed(error: VotingAlreadyClosed):
        return api_error(E.VOTING_CLOSED, str(error))

    @bp.errorhandler(StaleStateConflict)
    def _handle_stale(error: StaleStateConflict):
        return api_error(
            E.STALE_STATE,
            "Application status changed, reload and try again",
            details={"expected_status": error.expected_status},
        )

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT, str(error))

    return bp


__all__ = [
    "Principal",
    "current_principal",
    "json_body",
    "parse_pagination",
    "register_error_handlers",
]
