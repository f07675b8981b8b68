"""
Committee roster model.

A ``CommitteeAssignment`` appoints a user to the committee of one academic
period, optionally for a single campus.  The roster is an administrative
record only: voting authority comes from ``UserRole``.
"""

from datetime import datetime, timezone

from nomination_portal.models import db
from nomination_portal.models.auth import Role

COMMITTEE_ROLES = frozenset({Role.COMMITTEE_MEMBER.value, Role.COMMITTEE_CHAIRMAN.value})


class CommitteeAssignment(db.Model):
    __tablename__ = "committee_assignments"
    __table_args__ = (
        db.UniqueConstraint(
            "period_id", "user_id", "role", "campus_id",
            name="uq_committee_assignment",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    period_id = db.Column(
        db.Integer,
        db.ForeignKey("academic_periods.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = db.Column(
        db.String(30), nullable=False,
        comment="committee_member | committee_chairman",
    )
    campus_id = db.Column(
        db.Integer, db.ForeignKey("campuses.id", ondelete="CASCADE"), nullable=True,
    )
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    assigned_by = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    user = db.relationship("User", foreign_keys=[user_id])
    period = db.relationship("AcademicPeriod")
    campus = db.relationship("Campus")

    def to_dict(self):
        return {
            "id": self.id,
            "period_id": self.period_id,
            "user_id": self.user_id,
            "user_email": self.user.email if self.user else None,
            "role": self.role,
            "campus_id": self.campus_id,
            "campus_name": self.campus.campus_name if self.campus else None,
            "period": (
                {
                    "academic_year": self.period.academic_year,
                    "semester": self.period.semester,
                    "is_active": self.period.is_active,
                }
                if self.period else None
            ),
            "is_active": self.is_active,
            "assigned_by": self.assigned_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<CommitteeAssignment period={self.period_id} user={self.user_id} {self.role}>"
