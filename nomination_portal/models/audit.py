"""
Outstanding-Student Nomination Portal
Approval audit model.

Models:
    - ApprovalLog: immutable, append-only record of every workflow
      transition and committee vote.
"""

import enum
from datetime import UTC, datetime

from nomination_portal.models import db


class ActionType(enum.StrEnum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    VOTE = "vote"
    # Present in the audit vocabulary; no transition writes it yet.
    RETURN = "return"


VALID_ACTION_TYPES = frozenset(a.value for a in ActionType)


class ApprovalLog(db.Model):
    """
    One row per state-changing workflow operation.

    ``id`` is the ordering key: it is assigned by the database in commit
    order, so entries written within the same millisecond still sort in
    the order the transitions happened.  ``from_status``/``to_status`` are
    equal for vote entries, which never move the application.
    """

    __tablename__ = "approval_logs"
    __table_args__ = (
        db.Index("idx_approval_log_application", "application_id", "id"),
        db.Index("idx_approval_log_actor", "actor_id"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    application_id = db.Column(
        db.String(36),
        db.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    actor_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    action_type = db.Column(
        db.String(10), nullable=False,
        comment="submit | approve | reject | vote | return",
    )
    from_status = db.Column(db.String(30), nullable=True)
    to_status = db.Column(db.String(30), nullable=True)
    comment = db.Column(db.Text, nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(UTC),
    )

    actor = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "application_id": self.application_id,
            "actor_id": self.actor_id,
            "actor_email": self.actor.email if self.actor else None,
            "action_type": self.action_type,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "comment": self.comment,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<ApprovalLog {self.id}: {self.action_type} {self.from_status}->{self.to_status}>"


# ── Convenience writer ───────────────────────────────────────────────────────

def write_approval_log(
    *,
    application_id: str,
    actor_id: int | None,
    action_type: str,
    from_status: str | None = None,
    to_status: str | None = None,
    comment: str | None = None,
) -> ApprovalLog:
    """
    Append a single approval log row.  Uses ``flush`` so callers keep
    transaction control: the entry commits or rolls back together with
    the transition it records.

    Returns the (flushed) ApprovalLog instance.
    """
    if action_type not in VALID_ACTION_TYPES:
        raise ValueError(f"Unknown action_type: {action_type}")

    log = ApprovalLog(
        application_id=application_id,
        actor_id=actor_id,
        action_type=str(action_type),
        from_status=str(from_status) if from_status is not None else None,
        to_status=str(to_status) if to_status is not None else None,
        comment=(comment or "").strip() or None,
    )
    db.session.add(log)
    db.session.flush()
    return log
