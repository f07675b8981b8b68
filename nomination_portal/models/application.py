"""
Application model — the unit of work flowing through the approval chain.

``current_status`` is only ever changed by the workflow services
(submit / approve / reject / close voting), always with a compare-and-set
on the previous value.  Content fields are editable by the owning student
while the application is still a draft.
"""

import enum
import uuid
from datetime import datetime, timezone

from nomination_portal.models import db


class Status(enum.StrEnum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    DEPT_REVIEW = "dept_review"
    FACULTY_REVIEW = "faculty_review"
    STUDENT_AFFAIRS_REVIEW = "student_affairs_review"
    COMMITTEE_REVIEW = "committee_review"
    CHAIRMAN_REVIEW = "chairman_review"
    PRESIDENT_REVIEW = "president_review"
    APPROVED = "approved"
    REJECTED = "rejected"


VALID_STATUSES = frozenset(s.value for s in Status)

# Fields the owning student may edit on a draft.
EDITABLE_FIELDS = (
    "award_type_id",
    "period_id",
    "campus_id",
    "project_name",
    "description",
    "achievements",
    "activity_hours",
)


def _now():
    return datetime.now(timezone.utc)


class Application(db.Model):
    __tablename__ = "applications"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    award_type_id = db.Column(
        db.Integer, db.ForeignKey("award_types.id", ondelete="RESTRICT"), nullable=False,
    )
    period_id = db.Column(
        db.Integer, db.ForeignKey("academic_periods.id", ondelete="RESTRICT"), nullable=False,
    )
    campus_id = db.Column(
        db.Integer, db.ForeignKey("campuses.id", ondelete="RESTRICT"), nullable=False,
    )

    project_name = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    achievements = db.Column(db.Text, nullable=True)
    activity_hours = db.Column(db.Integer, nullable=True)

    current_status = db.Column(
        db.String(30),
        nullable=False,
        default=Status.DRAFT.value,
        index=True,
        comment="draft | submitted | dept_review | ... | approved | rejected",
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    student = db.relationship("User")
    award_type = db.relationship("AwardType")
    period = db.relationship("AcademicPeriod")
    campus = db.relationship("Campus")

    __table_args__ = (
        db.Index("ix_applications_status_campus", "current_status", "campus_id"),
        db.Index("ix_applications_period_award", "period_id", "award_type_id"),
    )

    @property
    def status(self) -> Status:
        return Status(self.current_status)

    @property
    def department_id(self):
        profile = self.student.student_profile if self.student else None
        return profile.department_id if profile else None

    @property
    def faculty_id(self):
        profile = self.student.student_profile if self.student else None
        return profile.faculty_id if profile else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "award_type_id": self.award_type_id,
            "period_id": self.period_id,
            "campus_id": self.campus_id,
            "faculty_id": self.faculty_id,
            "department_id": self.department_id,
            "project_name": self.project_name,
            "description": self.description,
            "achievements": self.achievements,
            "activity_hours": self.activity_hours,
            "current_status": self.current_status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Application {self.id} {self.current_status}>"
