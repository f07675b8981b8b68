"""
Endorsement Service — signed chairman / president decisions.

``record_endorsement`` is called by ``application_service.decide`` inside
its transaction and only flushes, so the endorsement, the status change and
the log entry commit together.

The signature is an HMAC-SHA256 keyed by ``SECRET_KEY`` over
``application_id|endorser_id|endorsement_type|decision|endorsed_at``;
``verify_signature`` recomputes it from a stored row.
"""

import hashlib
import hmac
import logging
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import select

from nomination_portal.models import db
from nomination_portal.models.application import Status
from nomination_portal.models.endorsement import Endorsement, EndorsementType

logger = logging.getLogger(__name__)

ENDORSED_STAGES = {
    Status.CHAIRMAN_REVIEW: EndorsementType.CHAIRMAN_APPROVAL,
    Status.PRESIDENT_REVIEW: EndorsementType.PRESIDENT_APPROVAL,
}


def _signature(
    application_id: str,
    endorser_id: int,
    endorsement_type: str,
    is_approved: bool,
    endorsed_at: datetime,
) -> str:
    message = "|".join((
        application_id,
        str(endorser_id),
        str(endorsement_type),
        "approve" if is_approved else "reject",
        endorsed_at.astimezone(timezone.utc).isoformat(),
    ))
    key = current_app.config["SECRET_KEY"]
    return hmac.new(key.encode(), message.encode(), hashlib.sha256).hexdigest()


def record_endorsement(
    application_id: str,
    stage: Status,
    endorser_id: int,
    is_approved: bool,
    comment: str | None = None,
) -> Endorsement | None:
    """Append an endorsement when ``stage`` is an endorsed stage.

    Returns None for every other stage.
    """
    endorsement_type = ENDORSED_STAGES.get(stage)
    if endorsement_type is None:
        return None

    endorsed_at = datetime.now(timezone.utc)
    row = Endorsement(
        application_id=application_id,
        endorser_id=endorser_id,
        endorsement_type=endorsement_type.value,
        is_approved=is_approved,
        comment=(comment or "").strip() or None,
        signature_data=_signature(
            application_id, endorser_id, endorsement_type, is_approved, endorsed_at,
        ),
        endorsed_at=endorsed_at,
    )
    db.session.add(row)
    db.session.flush()
    logger.info(
        "Endorsement recorded: %s approved=%s",
        endorsement_type, is_approved,
        extra={"application_id": application_id, "actor_id": endorser_id},
    )
    return row


def verify_signature(row: Endorsement) -> bool:
    endorsed_at = row.endorsed_at
    if endorsed_at.tzinfo is None:
        # SQLite drops the offset on read.
        endorsed_at = endorsed_at.replace(tzinfo=timezone.utc)
    expected = _signature(
        row.application_id, row.endorser_id, row.endorsement_type, row.is_approved, endorsed_at,
    )
    return hmac.compare_digest(expected, row.signature_data)


def list_for(application_id: str) -> list[dict]:
    """Endorsements of one application, newest first."""
    rows = db.session.execute(
        select(Endorsement)
        .where(Endorsement.application_id == application_id)
        .order_by(Endorsement.id.desc())
    ).scalars().all()
    return [r.to_dict() for r in rows]
