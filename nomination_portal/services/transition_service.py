"""
Status transition writer shared by submit, approve/reject and close-voting.

``apply_transition`` performs the compare-and-set on
``applications.current_status`` and appends the matching audit entry in
the same session.  It never commits: the calling service owns the
transaction, so the status change, any side writes (e.g. the voting close
marker) and the log entry commit or roll back as one unit.

Two reviewers racing on the same stage both pass their authorization
checks, but only one UPDATE matches ``current_status = <expected>``.  The
other gets ``StaleStateConflict``.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import update

from nomination_portal.core.exceptions import StaleStateConflict
from nomination_portal.models import db
from nomination_portal.models.application import Application, Status
from nomination_portal.models.audit import ApprovalLog, write_approval_log

logger = logging.getLogger(__name__)


def apply_transition(
    application: Application,
    *,
    expected: Status,
    target: Status,
    action_type: str,
    actor_id: int | None,
    comment: str | None = None,
) -> ApprovalLog:
    """Move ``application`` from ``expected`` to ``target`` and log it.

    Raises:
        StaleStateConflict: the row is no longer at ``expected``.
    """
    result = db.session.execute(
        update(Application)
        .where(
            Application.id == application.id,
            Application.current_status == str(expected),
        )
        .values(current_status=str(target), updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.info(
            "Stale transition rejected: application=%s expected=%s",
            application.id, expected,
        )
        raise StaleStateConflict(application.id, expected)

    db.session.expire(application, ["current_status", "updated_at"])

    entry = write_approval_log(
        application_id=application.id,
        actor_id=actor_id,
        action_type=action_type,
        from_status=expected,
        to_status=target,
        comment=comment,
    )
    logger.info(
        "Application transition",
        extra={
            "application_id": application.id,
            "actor_id": actor_id,
            "action_type": action_type,
            "from_status": str(expected),
            "to_status": str(target),
        },
    )
    return entry
