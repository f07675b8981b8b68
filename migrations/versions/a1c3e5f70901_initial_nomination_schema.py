"""initial_nomination_schema

Organisation reference tables, users and scoped role assignments,
applications, committee votes, voting summaries and the approval log.

Revision ID: a1c3e5f70901
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "a1c3e5f70901"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade():
    # ── Organisation ─────────────────────────────────────────────────────
    op.create_table(
        "campuses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("campus_code", sa.String(20), nullable=False, unique=True),
        sa.Column("campus_name", sa.String(200), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "faculties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("faculty_code", sa.String(20), nullable=False, unique=True),
        sa.Column("faculty_name", sa.String(200), nullable=False),
        sa.Column("campus_id", sa.Integer(),
                  sa.ForeignKey("campuses.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_faculties_campus_id", "faculties", ["campus_id"])
    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("dept_code", sa.String(20), nullable=False, unique=True),
        sa.Column("dept_name", sa.String(200), nullable=False),
        sa.Column("faculty_id", sa.Integer(),
                  sa.ForeignKey("faculties.id", ondelete="CASCADE"), nullable=False),
    )
    op.create_index("ix_departments_faculty_id", "departments", ["faculty_id"])
    op.create_table(
        "award_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type_code", sa.String(30), nullable=False, unique=True),
        sa.Column("type_name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("required_docs", sa.JSON(), nullable=True),
    )
    op.create_table(
        "academic_periods",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("academic_year", sa.Integer(), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("campus_id", sa.Integer(),
                  sa.ForeignKey("campuses.id", ondelete="SET NULL"), nullable=True),
        sa.UniqueConstraint("academic_year", "semester", "campus_id",
                            name="uq_period_year_sem_campus"),
    )

    # ── Principals ───────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("full_name", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_table(
        "student_profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("student_code", sa.String(30), nullable=True, unique=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("department_id", sa.Integer(),
                  sa.ForeignKey("departments.id", ondelete="SET NULL"), nullable=True),
        sa.Column("gpax", sa.Numeric(3, 2), nullable=True),
    )
    op.create_index("ix_student_profiles_department_id", "student_profiles", ["department_id"])
    op.create_table(
        "user_roles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("campus_id", sa.Integer(),
                  sa.ForeignKey("campuses.id", ondelete="CASCADE"), nullable=True),
        sa.Column("faculty_id", sa.Integer(),
                  sa.ForeignKey("faculties.id", ondelete="CASCADE"), nullable=True),
        sa.Column("department_id", sa.Integer(),
                  sa.ForeignKey("departments.id", ondelete="CASCADE"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", "role", "campus_id", "faculty_id", "department_id",
                            name="uq_user_role_scope"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])
    op.create_index("ix_user_roles_role", "user_roles", ["role"])

    # ── Applications ─────────────────────────────────────────────────────
    op.create_table(
        "applications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("student_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("award_type_id", sa.Integer(),
                  sa.ForeignKey("award_types.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("period_id", sa.Integer(),
                  sa.ForeignKey("academic_periods.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("campus_id", sa.Integer(),
                  sa.ForeignKey("campuses.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("project_name", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("achievements", sa.Text(), nullable=True),
        sa.Column("activity_hours", sa.Integer(), nullable=True),
        sa.Column("current_status", sa.String(30), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_applications_student_id", "applications", ["student_id"])
    op.create_index("ix_applications_current_status", "applications", ["current_status"])
    op.create_index("ix_applications_status_campus", "applications", ["current_status", "campus_id"])
    op.create_index("ix_applications_period_award", "applications", ["period_id", "award_type_id"])

    # ── Committee voting ─────────────────────────────────────────────────
    op.create_table(
        "committee_votes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("application_id", sa.String(36),
                  sa.ForeignKey("applications.id", ondelete="CASCADE"), nullable=False),
        sa.Column("committee_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_agree", sa.Boolean(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("application_id", "committee_id", name="uq_vote_application_member"),
    )
    op.create_index("ix_committee_votes_application_id", "committee_votes", ["application_id"])
    op.create_table(
        "voting_summaries",
        sa.Column("application_id", sa.String(36),
                  sa.ForeignKey("applications.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("vote_revision", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("voting_closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_by", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_passed", sa.Boolean(), nullable=True),
        sa.Column("final_total_voters", sa.Integer(), nullable=True),
        sa.Column("final_agree_count", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    # ── Audit ────────────────────────────────────────────────────────────
    op.create_table(
        "approval_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("application_id", sa.String(36),
                  sa.ForeignKey("applications.id", ondelete="CASCADE"), nullable=False),
        sa.Column("actor_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action_type", sa.String(10), nullable=False),
        sa.Column("from_status", sa.String(30), nullable=True),
        sa.Column("to_status", sa.String(30), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_approval_log_application", "approval_logs", ["application_id", "id"])
    op.create_index("idx_approval_log_actor", "approval_logs", ["actor_id"])


def downgrade():
    for table in (
        "approval_logs",
        "voting_summaries",
        "committee_votes",
        "applications",
        "user_roles",
        "student_profiles",
        "users",
        "academic_periods",
        "award_types",
        "departments",
        "faculties",
        "campuses",
    ):
        op.drop_table(table)
