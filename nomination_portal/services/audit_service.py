"""
Audit Log read side.

Writes go through ``models.audit.write_approval_log`` inside the caller's
transaction.  No code path updates or deletes an ApprovalLog row.  Workflow
decisions are taken from Application / CommitteeVote state, never from
these reads.
"""

from sqlalchemy import select

from nomination_portal.core.exceptions import IllegalTransition, NotFoundError
from nomination_portal.models import db
from nomination_portal.models.application import Application
from nomination_portal.models.audit import ApprovalLog
from nomination_portal.services.workflow import replay


def list_for(application_id: str) -> list[dict]:
    """Entries for one application, newest first."""
    rows = db.session.execute(
        select(ApprovalLog)
        .where(ApprovalLog.application_id == application_id)
        .order_by(ApprovalLog.id.desc())
    ).scalars().all()
    return [r.to_dict() for r in rows]


def history_for(application_id: str) -> dict:
    """History view: entries oldest first plus the status they replay to.

    ``consistent`` is False if the replayed status disagrees with the
    application's stored status, which would point at a write that bypassed
    the workflow services.
    """
    app = db.session.get(Application, application_id)
    if app is None:
        raise NotFoundError(resource="Application", resource_id=application_id)

    entries = list(reversed(list_for(application_id)))
    try:
        replayed = str(replay(entries))
    except (ValueError, IllegalTransition):
        replayed = None
    return {
        "application_id": application_id,
        "current_status": app.current_status,
        "replayed_status": replayed,
        "consistent": replayed == app.current_status,
        "entries": entries,
        "total": len(entries),
    }
