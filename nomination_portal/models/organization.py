"""
Organisational reference data — campuses, faculties, departments,
award types and academic periods.

These rows are maintained by administrators outside the approval workflow.
The workflow only reads them: campus/faculty/department ids are the scope
dimensions role assignments are matched against.
"""

from datetime import datetime, timezone

from nomination_portal.models import db


def _now():
    return datetime.now(timezone.utc)


class Campus(db.Model):
    __tablename__ = "campuses"

    id = db.Column(db.Integer, primary_key=True)
    campus_code = db.Column(db.String(20), unique=True, nullable=False)
    campus_name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=_now, onupdate=_now)

    def to_dict(self):
        return {
            "id": self.id,
            "campus_code": self.campus_code,
            "campus_name": self.campus_name,
        }

    def __repr__(self):
        return f"<Campus {self.campus_code}>"


class Faculty(db.Model):
    __tablename__ = "faculties"

    id = db.Column(db.Integer, primary_key=True)
    faculty_code = db.Column(db.String(20), unique=True, nullable=False)
    faculty_name = db.Column(db.String(200), nullable=False)
    campus_id = db.Column(
        db.Integer,
        db.ForeignKey("campuses.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    departments = db.relationship("Department", back_populates="faculty", lazy="select")

    def to_dict(self):
        return {
            "id": self.id,
            "faculty_code": self.faculty_code,
            "faculty_name": self.faculty_name,
            "campus_id": self.campus_id,
        }


class Department(db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    dept_code = db.Column(db.String(20), unique=True, nullable=False)
    dept_name = db.Column(db.String(200), nullable=False)
    faculty_id = db.Column(
        db.Integer,
        db.ForeignKey("faculties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    faculty = db.relationship("Faculty", back_populates="departments")

    def to_dict(self):
        return {
            "id": self.id,
            "dept_code": self.dept_code,
            "dept_name": self.dept_name,
            "faculty_id": self.faculty_id,
        }


class AwardType(db.Model):
    __tablename__ = "award_types"

    id = db.Column(db.Integer, primary_key=True)
    type_code = db.Column(db.String(30), unique=True, nullable=False)
    type_name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    required_docs = db.Column(db.JSON, default=list)

    def to_dict(self):
        return {
            "id": self.id,
            "type_code": self.type_code,
            "type_name": self.type_name,
            "description": self.description,
            "required_docs": self.required_docs or [],
        }


class AcademicPeriod(db.Model):
    __tablename__ = "academic_periods"

    id = db.Column(db.Integer, primary_key=True)
    academic_year = db.Column(db.Integer, nullable=False)
    semester = db.Column(db.Integer, nullable=False)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    campus_id = db.Column(
        db.Integer,
        db.ForeignKey("campuses.id", ondelete="SET NULL"),
        nullable=True,
    )

    campus = db.relationship("Campus")

    __table_args__ = (
        db.UniqueConstraint("academic_year", "semester", "campus_id", name="uq_period_year_sem_campus"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "academic_year": self.academic_year,
            "semester": self.semester,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "is_active": self.is_active,
            "campus_id": self.campus_id,
            "campus": self.campus.to_dict() if self.campus else None,
        }
