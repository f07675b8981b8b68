"""
Committee voting models.

CommitteeVote
    One row per (application, committee member).  Re-voting updates the
    existing row; the UNIQUE constraint makes a duplicate insert impossible.

VotingSummary
    One row per application that has entered committee review.  Live
    tallies are always computed from CommitteeVote rows; this row stores
    the close decision (``voting_closed_at`` + final figures) and is the
    guard row that votes and the close operation both update, so the two
    are serialised by the database row lock.
"""

from datetime import datetime, timezone

from nomination_portal.models import db


def _now():
    return datetime.now(timezone.utc)


class CommitteeVote(db.Model):
    __tablename__ = "committee_votes"

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.String(36),
        db.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    committee_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    is_agree = db.Column(db.Boolean, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    committee = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint("application_id", "committee_id", name="uq_vote_application_member"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "application_id": self.application_id,
            "committee_id": self.committee_id,
            "committee_name": self.committee.full_name if self.committee else None,
            "is_agree": self.is_agree,
            "comment": self.comment,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<CommitteeVote app={self.application_id} member={self.committee_id} agree={self.is_agree}>"


class VotingSummary(db.Model):
    __tablename__ = "voting_summaries"

    application_id = db.Column(
        db.String(36),
        db.ForeignKey("applications.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # Bumped by every accepted vote; the conditional UPDATE is the lock.
    vote_revision = db.Column(db.Integer, nullable=False, default=0)

    voting_closed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    closed_by = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    is_passed = db.Column(db.Boolean, nullable=True)
    final_total_voters = db.Column(db.Integer, nullable=True)
    final_agree_count = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now)

    @property
    def is_closed(self) -> bool:
        return self.voting_closed_at is not None

    def __repr__(self):
        state = "closed" if self.is_closed else "open"
        return f"<VotingSummary {self.application_id} {state}>"
