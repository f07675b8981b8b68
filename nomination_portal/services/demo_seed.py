"""
Demo data for local development (``flask seed-demo``).

Creates one campus with a faculty and two departments, three award types,
an active academic period, a student and one reviewer per approval stage
(plus three committee members and a system administrator).  Running it twice
is a no-op.
"""

import logging
from datetime import date

from sqlalchemy import select

from nomination_portal.models import db
from nomination_portal.models.auth import Role, StudentProfile, User, UserRole
from nomination_portal.models.organization import (
    AcademicPeriod,
    AwardType,
    Campus,
    Department,
    Faculty,
)

logger = logging.getLogger(__name__)

DEMO_CAMPUS_CODE = "MAIN"

_AWARD_TYPES = [
    ("ACADEMIC", "Outstanding Academic Achievement", ["transcript", "recommendation"]),
    ("ACTIVITY", "Outstanding Extracurricular Activity", ["activity_certificate"]),
    ("INNOVATION", "Outstanding Innovation", ["project_report"]),
]


def seed_demo_data() -> dict:
    """Insert the demo data set and return counts of what was created."""
    if db.session.execute(
        select(Campus).where(Campus.campus_code == DEMO_CAMPUS_CODE)
    ).scalar_one_or_none():
        logger.info("Demo data already present; nothing to do")
        return {"users": 0, "role_assignments": 0}

    campus = Campus(campus_code=DEMO_CAMPUS_CODE, campus_name="Main Campus")
    db.session.add(campus)
    db.session.flush()

    faculty = Faculty(faculty_code="ENG", faculty_name="Faculty of Engineering", campus_id=campus.id)
    db.session.add(faculty)
    db.session.flush()

    cpe = Department(dept_code="CPE", dept_name="Computer Engineering", faculty_id=faculty.id)
    ee = Department(dept_code="EE", dept_name="Electrical Engineering", faculty_id=faculty.id)
    db.session.add_all([cpe, ee])

    for code, name, docs in _AWARD_TYPES:
        db.session.add(AwardType(type_code=code, type_name=name, required_docs=docs))

    today = date.today()
    db.session.add(AcademicPeriod(
        academic_year=today.year,
        semester=1,
        start_date=date(today.year, 1, 1),
        end_date=date(today.year, 12, 31),
        is_active=True,
        campus_id=campus.id,
    ))
    db.session.flush()

    people = [
        ("student@demo.local", "Demo Student", Role.STUDENT, {}),
        ("head.cpe@demo.local", "CPE Department Head", Role.DEPARTMENT_HEAD, {"department_id": cpe.id}),
        ("dean.eng@demo.local", "Engineering Dean", Role.DEAN, {"faculty_id": faculty.id}),
        ("affairs@demo.local", "Student Affairs Officer", Role.STUDENT_AFFAIRS, {"campus_id": campus.id}),
        ("member1@demo.local", "Committee Member 1", Role.COMMITTEE_MEMBER, {"campus_id": campus.id}),
        ("member2@demo.local", "Committee Member 2", Role.COMMITTEE_MEMBER, {"campus_id": campus.id}),
        ("member3@demo.local", "Committee Member 3", Role.COMMITTEE_MEMBER, {"campus_id": campus.id}),
        ("chair@demo.local", "Committee Chairman", Role.COMMITTEE_CHAIRMAN, {"campus_id": campus.id}),
        ("president@demo.local", "President", Role.PRESIDENT, {}),
        ("admin@demo.local", "System Administrator", Role.SYSTEM_ADMIN, {}),
    ]
    for email, name, role, scope in people:
        user = User(email=email, full_name=name)
        db.session.add(user)
        db.session.flush()
        db.session.add(UserRole(user_id=user.id, role=role.value, **scope))
        if role == Role.STUDENT:
            db.session.add(StudentProfile(
                user_id=user.id,
                student_code="6400000001",
                first_name="Demo",
                last_name="Student",
                department_id=cpe.id,
            ))

    db.session.commit()
    logger.info("Seeded demo data: %d users", len(people))
    return {"users": len(people), "role_assignments": len(people)}
