"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in nomination_portal/__init__.py with no
default limits; this module applies granular limits per route category.

Usage:
    from nomination_portal.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"
ADMIN_LIMIT = "30/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Applications:    60/minute  (submissions, decisions, votes)
        - Reference data:  200/minute
        - Role admin:      30/minute
        - Health check:    exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    for bp_name, limit in (
        ("application_bp", WRITE_LIMIT),
        ("reference_bp", READ_LIMIT),
        ("admin_bp", ADMIN_LIMIT),
    ):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(limit)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: applications=%s reference=%s admin=%s",
        WRITE_LIMIT, READ_LIMIT, ADMIN_LIMIT,
    )
