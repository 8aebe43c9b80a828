"""scheduling tables"""

from alembic import op
import sqlalchemy as sa


revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "workout_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(length=40), nullable=False, unique=True),
        sa.Column("name", sa.String(length=120), nullable=False, server_default=""),
    )

    op.create_table(
        "workouts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("coach_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("color", sa.String(length=16), nullable=True),
        sa.Column("type_id", sa.Integer(), sa.ForeignKey("workout_types.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_workouts_coach_id", "workouts", ["coach_id"])

    op.create_table(
        "workout_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), nullable=False),
        sa.Column("workout_id", sa.Integer(), sa.ForeignKey("workouts.id"), nullable=False),
        sa.Column("workout_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("athlete_id", "workout_id", "workout_date", name="uq_workout_assignment_athlete_workout_date"),
    )
    op.create_index("ix_workout_assignments_athlete_id", "workout_assignments", ["athlete_id"])
    op.create_index("ix_workout_assignments_workout_id", "workout_assignments", ["workout_id"])
    op.create_index("ix_workout_assignments_workout_date", "workout_assignments", ["workout_date"])

    op.create_table(
        "programs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("coach_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("start_date <= end_date", name="ck_program_window"),
        sa.CheckConstraint("status in ('draft', 'published', 'archived')", name="ck_program_status"),
    )
    op.create_index("ix_programs_coach_id", "programs", ["coach_id"])

    op.create_table(
        "program_workouts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("program_id", sa.Integer(), sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("workout_id", sa.Integer(), sa.ForeignKey("workouts.id"), nullable=False),
        sa.Column("workout_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("program_id", "workout_id", "workout_date", name="uq_program_workout_program_workout_date"),
    )
    op.create_index("ix_program_workouts_program_id", "program_workouts", ["program_id"])
    op.create_index("ix_program_workouts_workout_id", "program_workouts", ["workout_id"])
    op.create_index("ix_program_workouts_workout_date", "program_workouts", ["workout_date"])

    op.create_table(
        "program_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("program_id", sa.Integer(), sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("athlete_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("program_id", "athlete_id", "start_date", name="uq_program_assignment_window"),
        sa.CheckConstraint("start_date <= end_date", name="ck_program_assignment_window"),
    )
    op.create_index("ix_program_assignments_program_id", "program_assignments", ["program_id"])
    op.create_index("ix_program_assignments_athlete_id", "program_assignments", ["athlete_id"])

    op.create_table(
        "athlete_activity",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), nullable=False),
        sa.Column("workout_id", sa.Integer(), nullable=False),
        sa.Column("scheduled_on", sa.Date(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_unscaled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("athlete_id", "workout_id", "scheduled_on", name="uq_athlete_activity_key"),
    )
    op.create_index("ix_athlete_activity_athlete_id", "athlete_activity", ["athlete_id"])
    op.create_index("ix_athlete_activity_workout_id", "athlete_activity", ["workout_id"])


def downgrade() -> None:
    op.drop_table("athlete_activity")
    op.drop_table("program_assignments")
    op.drop_table("program_workouts")
    op.drop_table("programs")
    op.drop_table("workout_assignments")
    op.drop_table("workouts")
    op.drop_table("workout_types")
