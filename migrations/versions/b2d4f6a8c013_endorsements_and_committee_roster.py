"""endorsements_and_committee_roster

Signed chairman / president endorsements and the per-period committee
roster.

Revision ID: b2d4f6a8c013
Revises: a1c3e5f70901
Create Date: 2026-10-19 15:30:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "b2d4f6a8c013"
down_revision = "a1c3e5f70901"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "endorsements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("application_id", sa.String(36),
                  sa.ForeignKey("applications.id", ondelete="CASCADE"), nullable=False),
        sa.Column("endorser_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("endorsement_type", sa.String(30), nullable=False),
        sa.Column("is_approved", sa.Boolean(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("signature_data", sa.String(128), nullable=False),
        sa.Column("endorsed_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_endorsement_application", "endorsements", ["application_id", "id"])

    op.create_table(
        "committee_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("period_id", sa.Integer(),
                  sa.ForeignKey("academic_periods.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("campus_id", sa.Integer(),
                  sa.ForeignKey("campuses.id", ondelete="CASCADE"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("assigned_by", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("period_id", "user_id", "role", "campus_id",
                            name="uq_committee_assignment"),
    )
    op.create_index("ix_committee_assignments_period_id", "committee_assignments", ["period_id"])
    op.create_index("ix_committee_assignments_user_id", "committee_assignments", ["user_id"])


def downgrade():
    op.drop_table("committee_assignments")
    op.drop_table("endorsements")
