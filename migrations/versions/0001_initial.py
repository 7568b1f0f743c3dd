from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ROLES = ("supervisor", "instructor", "student")
GAS_TYPES = ("standard", "enriched")


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade() -> None:
    op.create_table(
        "outings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        _created_at(),
    )

    op.create_table(
        "dive_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("optimization_mode", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("outing_id", sa.Integer(), sa.ForeignKey("outings.id", ondelete="CASCADE"), nullable=True),
        sa.Column("dive_number", sa.Integer(), nullable=True),
        _created_at(),
    )

    op.create_table(
        "participants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "session_id", sa.Integer(), sa.ForeignKey("dive_sessions.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("person_id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("diving_level", sa.String(length=64), nullable=True),
        sa.Column("is_supervisor", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("wants_enriched_gas", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("in_enriched_gas_training", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("in_advanced_enriched_gas_training", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("target_certification_level", sa.String(length=16), nullable=True),
        _created_at(),
    )
    op.create_index("ix_participants_session_id", "participants", ["session_id"])
    op.create_index("ix_participants_person_id", "participants", ["person_id"])

    op.create_table(
        "dive_directors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "session_id", sa.Integer(), sa.ForeignKey("dive_sessions.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "participant_id", sa.Integer(), sa.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
        ),
        _created_at(),
        sa.UniqueConstraint("session_id", "participant_id", name="uq_dive_director_session_participant"),
    )
    op.create_index("ix_dive_directors_session_id", "dive_directors", ["session_id"])

    op.create_table(
        "rotations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "session_id", sa.Integer(), sa.ForeignKey("dive_sessions.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("number", sa.Integer(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("session_id", "number", name="uq_rotation_session_number"),
    )
    op.create_index("ix_rotations_session_id", "rotations", ["session_id"])

    op.create_table(
        "dive_teams",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("rotation_id", sa.Integer(), sa.ForeignKey("rotations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("call_sign", sa.String(length=64), nullable=True),
        sa.Column("planned_departure_time", sa.Time(), nullable=True),
        sa.Column("planned_duration", sa.Integer(), nullable=True),
        sa.Column("planned_depth", sa.Integer(), nullable=True),
        sa.Column("actual_departure_time", sa.Time(), nullable=True),
        sa.Column("actual_return_time", sa.Time(), nullable=True),
        sa.Column("actual_duration", sa.Integer(), nullable=True),
        sa.Column("actual_depth", sa.Integer(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("rotation_id", "number", name="uq_dive_team_rotation_number"),
    )
    op.create_index("ix_dive_teams_rotation_id", "dive_teams", ["rotation_id"])

    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "dive_team_id", sa.Integer(), sa.ForeignKey("dive_teams.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("rotation_id", sa.Integer(), sa.ForeignKey("rotations.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "participant_id", sa.Integer(), sa.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("role", sa.Enum(*ROLES, name="member_role", native_enum=False), nullable=False),
        sa.Column("gas_type", sa.Enum(*GAS_TYPES, name="gas_type", native_enum=False), nullable=False),
        _created_at(),
        sa.UniqueConstraint("rotation_id", "participant_id", name="uq_team_member_rotation_participant"),
    )
    op.create_index("ix_team_members_dive_team_id", "team_members", ["dive_team_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=255), nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_audit_logs_session_id", "audit_logs", ["session_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_session_id", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_team_members_dive_team_id", table_name="team_members")
    op.drop_table("team_members")
    op.drop_index("ix_dive_teams_rotation_id", table_name="dive_teams")
    op.drop_table("dive_teams")
    op.drop_index("ix_rotations_session_id", table_name="rotations")
    op.drop_table("rotations")
    op.drop_index("ix_dive_directors_session_id", table_name="dive_directors")
    op.drop_table("dive_directors")
    op.drop_index("ix_participants_person_id", table_name="participants")
    op.drop_index("ix_participants_session_id", table_name="participants")
    op.drop_table("participants")
    op.drop_table("dive_sessions")
    op.drop_table("outings")
