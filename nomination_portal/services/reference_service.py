"""Read-only lookups over organisational reference data."""

from sqlalchemy import select

from nomination_portal.models import db
from nomination_portal.models.organization import AcademicPeriod, AwardType, Campus


def list_award_types() -> list[dict]:
    rows = db.session.execute(select(AwardType).order_by(AwardType.type_code)).scalars().all()
    return [r.to_dict() for r in rows]


def list_academic_periods(active_only: bool = False) -> list[dict]:
    stmt = select(AcademicPeriod).order_by(
        AcademicPeriod.academic_year.desc(), AcademicPeriod.semester.desc(),
    )
    if active_only:
        stmt = stmt.where(AcademicPeriod.is_active.is_(True))
    return [r.to_dict() for r in db.session.execute(stmt).scalars().all()]


def list_campuses() -> list[dict]:
    rows = db.session.execute(select(Campus).order_by(Campus.campus_name)).scalars().all()
    return [r.to_dict() for r in rows]
