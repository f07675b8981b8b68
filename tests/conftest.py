"""
Shared pytest fixtures for the Nomination Portal test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - auth_headers: mint a Bearer header for a user id
    - org: campus / faculty / department / award type / period set
    - cast: one user per role, scoped to ``org``
    - make_application: insert an application at any status
"""

from types import SimpleNamespace

import pytest

from nomination_portal import create_app
from nomination_portal.models import db as _db
from nomination_portal.models.application import Application, Status
from nomination_portal.models.auth import Role, StudentProfile, User, UserRole
from nomination_portal.models.organization import (
    AcademicPeriod,
    AwardType,
    Campus,
    Department,
    Faculty,
)
from nomination_portal.models.voting import VotingSummary
from nomination_portal.services.jwt_service import generate_access_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def auth_headers():
    """Return a function building ``Authorization`` headers for a user id."""

    def _headers(user_id):
        return {"Authorization": f"Bearer {generate_access_token(user_id)}"}

    return _headers


# ── ORM helpers ──────────────────────────────────────────────────────────


def make_user(email, full_name=None, is_active=True):
    user = User(email=email, full_name=full_name or email.split("@")[0], is_active=is_active)
    _db.session.add(user)
    _db.session.commit()
    return user.id


def make_student(email, department_id, student_code=None):
    user_id = make_user(email)
    _db.session.add(StudentProfile(
        user_id=user_id,
        student_code=student_code,
        first_name="Test",
        last_name="Student",
        department_id=department_id,
    ))
    _db.session.add(UserRole(user_id=user_id, role=Role.STUDENT.value))
    _db.session.commit()
    return user_id


def grant(user_id, role, campus_id=None, faculty_id=None, department_id=None):
    row = UserRole(
        user_id=user_id,
        role=str(role),
        campus_id=campus_id,
        faculty_id=faculty_id,
        department_id=department_id,
    )
    _db.session.add(row)
    _db.session.commit()
    return row.id


@pytest.fixture()
def org():
    """Two campuses; campus 1 holds faculty 1 (depts A, B); campus 2 holds faculty 2 (dept C)."""
    c1 = Campus(campus_code="C1", campus_name="Campus One")
    c2 = Campus(campus_code="C2", campus_name="Campus Two")
    _db.session.add_all([c1, c2])
    _db.session.flush()

    f1 = Faculty(faculty_code="F1", faculty_name="Faculty One", campus_id=c1.id)
    f2 = Faculty(faculty_code="F2", faculty_name="Faculty Two", campus_id=c2.id)
    _db.session.add_all([f1, f2])
    _db.session.flush()

    da = Department(dept_code="DA", dept_name="Dept A", faculty_id=f1.id)
    db_ = Department(dept_code="DB", dept_name="Dept B", faculty_id=f1.id)
    dc = Department(dept_code="DC", dept_name="Dept C", faculty_id=f2.id)
    award = AwardType(type_code="ACADEMIC", type_name="Academic Excellence", required_docs=["transcript"])
    _db.session.add_all([da, db_, dc, award])
    _db.session.flush()

    period = AcademicPeriod(academic_year=2026, semester=1, is_active=True, campus_id=c1.id)
    _db.session.add(period)
    _db.session.commit()

    return SimpleNamespace(
        campus_id=c1.id,
        campus2_id=c2.id,
        faculty_id=f1.id,
        faculty2_id=f2.id,
        dept_id=da.id,
        dept_b_id=db_.id,
        dept_c_id=dc.id,
        award_type_id=award.id,
        period_id=period.id,
    )


@pytest.fixture()
def cast(org):
    """A student in dept A and one correctly scoped reviewer per stage."""
    student = make_student("student@test.com", org.dept_id, student_code="S001")
    head = make_user("head@test.com")
    grant(head, Role.DEPARTMENT_HEAD, department_id=org.dept_id)
    dean = make_user("dean@test.com")
    grant(dean, Role.DEAN, faculty_id=org.faculty_id)
    affairs = make_user("affairs@test.com")
    grant(affairs, Role.STUDENT_AFFAIRS, campus_id=org.campus_id)
    members = []
    for i in range(3):
        m = make_user(f"member{i}@test.com")
        grant(m, Role.COMMITTEE_MEMBER, campus_id=org.campus_id)
        members.append(m)
    chair = make_user("chair@test.com")
    grant(chair, Role.COMMITTEE_CHAIRMAN, campus_id=org.campus_id)
    president = make_user("president@test.com")
    grant(president, Role.PRESIDENT)
    admin = make_user("admin@test.com")
    grant(admin, Role.SYSTEM_ADMIN)
    return SimpleNamespace(
        student=student,
        head=head,
        dean=dean,
        affairs=affairs,
        members=members,
        chair=chair,
        president=president,
        admin=admin,
    )


@pytest.fixture()
def make_application(org):
    """Insert an application directly at ``status`` (bypasses the workflow)."""

    def _make(student_id, status=Status.DRAFT, campus_id=None, project_name="Robotics Club"):
        app = Application(
            student_id=student_id,
            award_type_id=org.award_type_id,
            period_id=org.period_id,
            campus_id=campus_id or org.campus_id,
            project_name=project_name,
            current_status=str(status),
        )
        _db.session.add(app)
        _db.session.flush()
        if status == Status.COMMITTEE_REVIEW:
            _db.session.add(VotingSummary(application_id=app.id))
        _db.session.commit()
        return app.id

    return _make
