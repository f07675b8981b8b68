"""
Endorsement model.

The committee chairman and the president sign their decision at their own
stage.  One row is appended per decision taken at ``chairman_review`` or
``president_review``; rows are never updated.
"""

import enum
from datetime import datetime, timezone

from nomination_portal.models import db


class EndorsementType(enum.StrEnum):
    CHAIRMAN_APPROVAL = "chairman_approval"
    PRESIDENT_APPROVAL = "president_approval"


class Endorsement(db.Model):
    __tablename__ = "endorsements"
    __table_args__ = (
        db.Index("idx_endorsement_application", "application_id", "id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.String(36),
        db.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    endorser_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    endorsement_type = db.Column(
        db.String(30), nullable=False,
        comment="chairman_approval | president_approval",
    )
    is_approved = db.Column(db.Boolean, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    signature_data = db.Column(db.String(128), nullable=False)
    endorsed_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    endorser = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "application_id": self.application_id,
            "endorser_id": self.endorser_id,
            "endorser_email": self.endorser.email if self.endorser else None,
            "endorsement_type": self.endorsement_type,
            "is_approved": self.is_approved,
            "comment": self.comment,
            "signature_data": self.signature_data,
            "endorsed_at": self.endorsed_at.isoformat() if self.endorsed_at else None,
        }

    def __repr__(self):
        verdict = "approved" if self.is_approved else "rejected"
        return f"<Endorsement {self.endorsement_type} {self.application_id} {verdict}>"
