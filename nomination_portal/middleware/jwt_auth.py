"""
JWT Auth Middleware — parses the Bearer token and sets ``g.jwt_user_id``.

A missing, expired or invalid token leaves the request anonymous
(``g.jwt_user_id = None``).  Endpoints that need a caller raise
AuthenticationRequired themselves via ``current_principal()``.
"""

import logging

import jwt as pyjwt
from flask import g, request

from nomination_portal.services.jwt_service import decode_access_token, user_id_from_payload

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
    "/static/",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]
        try:
            payload = decode_access_token(token)
            g.jwt_user_id = user_id_from_payload(payload)
        except pyjwt.ExpiredSignatureError:
            logger.debug("Expired access token on %s", path)
        except pyjwt.InvalidTokenError as exc:
            logger.info("Rejected access token on %s: %s", path, exc)
