"""
Auth Models — users, student profiles and scoped role assignments.

A ``UserRole`` row binds a user to one organisational ``Role``, optionally
narrowed to a campus, faculty or department.  A NULL scope column means
"every instance of that dimension".  Rows are created and removed by system
administrators; the approval workflow only reads them.
"""

import enum
from datetime import datetime, timezone

from nomination_portal.models import db


class Role(enum.StrEnum):
    """Closed set of organisational roles."""

    STUDENT = "student"
    DEPARTMENT_HEAD = "department_head"
    ASSOCIATE_DEAN = "associate_dean"
    DEAN = "dean"
    STUDENT_AFFAIRS = "student_affairs"
    COMMITTEE_MEMBER = "committee_member"
    COMMITTEE_CHAIRMAN = "committee_chairman"
    PRESIDENT = "president"
    SYSTEM_ADMIN = "system_admin"


# Roles that act on applications somewhere in the approval chain.
REVIEWER_ROLES = frozenset({
    Role.DEPARTMENT_HEAD,
    Role.ASSOCIATE_DEAN,
    Role.DEAN,
    Role.STUDENT_AFFAIRS,
    Role.COMMITTEE_MEMBER,
    Role.COMMITTEE_CHAIRMAN,
    Role.PRESIDENT,
})

VALID_ROLES = frozenset(r.value for r in Role)


def _now():
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════
# 1. USERS
# ═══════════════════════════════════════════════════════════════
class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    full_name = db.Column(db.String(200))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=_now, onupdate=_now)

    student_profile = db.relationship(
        "StudentProfile", back_populates="user", uselist=False, cascade="all, delete-orphan",
    )
    role_assignments = db.relationship(
        "UserRole", back_populates="user", lazy="select", cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.email}>"


# ═══════════════════════════════════════════════════════════════
# 2. STUDENT PROFILES
# ═══════════════════════════════════════════════════════════════
class StudentProfile(db.Model):
    """Academic profile of a student.

    ``department_id`` is the student's organisational placement; the
    faculty is derived through ``Department.faculty_id``.
    """

    __tablename__ = "student_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    student_code = db.Column(db.String(30), unique=True, nullable=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    department_id = db.Column(
        db.Integer,
        db.ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    gpax = db.Column(db.Numeric(3, 2), nullable=True)

    user = db.relationship("User", back_populates="student_profile")
    department = db.relationship("Department")

    @property
    def faculty_id(self):
        return self.department.faculty_id if self.department else None

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "student_code": self.student_code,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "department_id": self.department_id,
            "faculty_id": self.faculty_id,
            "gpax": float(self.gpax) if self.gpax is not None else None,
        }


# ═══════════════════════════════════════════════════════════════
# 3. ROLE ASSIGNMENTS
# ═══════════════════════════════════════════════════════════════
class UserRole(db.Model):
    """A principal-to-role binding with optional organisational scope."""

    __tablename__ = "user_roles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = db.Column(
        db.String(30),
        nullable=False,
        comment="student | department_head | associate_dean | dean | student_affairs | "
                "committee_member | committee_chairman | president | system_admin",
    )
    campus_id = db.Column(
        db.Integer, db.ForeignKey("campuses.id", ondelete="CASCADE"), nullable=True,
    )
    faculty_id = db.Column(
        db.Integer, db.ForeignKey("faculties.id", ondelete="CASCADE"), nullable=True,
    )
    department_id = db.Column(
        db.Integer, db.ForeignKey("departments.id", ondelete="CASCADE"), nullable=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=_now)

    user = db.relationship("User", back_populates="role_assignments")

    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "role", "campus_id", "faculty_id", "department_id",
            name="uq_user_role_scope",
        ),
        db.Index("ix_user_roles_role", "role"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "role": self.role,
            "campus_id": self.campus_id,
            "faculty_id": self.faculty_id,
            "department_id": self.department_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<UserRole user={self.user_id} {self.role}>"
