"""assignment engine schema

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f9a1c2b7d10"
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum("LAWYER", "ADMIN", name="user_role")
jurisdiccion = sa.Enum("NACIONAL", "FEDERAL", "CABA", "PROVINCIA_BS_AS", name="jurisdiccion")
assignment_mode = sa.Enum("AUTO", "DIRECT", name="assignment_mode")
invite_mode = sa.Enum("AUTO", "DIRECT", name="invite_mode")
causa_status = sa.Enum("DRAFT", "ASSIGNED", name="causa_status")
invite_status = sa.Enum("PENDING", "ACCEPTED", "REJECTED", name="invite_status")


def upgrade():
    op.create_table(
        "especialidad",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="LAWYER"),
        sa.Column("is_practicing", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_user_account_practicing_email", "user_account", ["is_practicing", "email"])
    op.create_table(
        "user_especialidad",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user_account.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(
            "especialidad_id",
            sa.Integer(),
            sa.ForeignKey("especialidad.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index("ix_user_especialidad_especialidad", "user_especialidad", ["especialidad_id"])
    op.create_table(
        "rotation_state",
        sa.Column("pool_key", sa.String(length=64), primary_key=True),
        sa.Column("cursor", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "causa",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("caratula_tentativa", sa.String(length=255), nullable=False),
        sa.Column("specialty_id", sa.Integer(), sa.ForeignKey("especialidad.id"), nullable=False),
        sa.Column("objeto", sa.Text(), nullable=False),
        sa.Column("resumen", sa.Text(), nullable=False),
        sa.Column("jurisdiccion", jurisdiccion, nullable=False),
        sa.Column("brought_by_user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.Column("brought_by_participates", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("assignment_mode", assignment_mode, nullable=False, server_default="AUTO"),
        sa.Column("direct_assignee_ids", sa.JSON(), nullable=False),
        sa.Column("direct_justification", sa.Text(), nullable=False, server_default=""),
        sa.Column("required_assignees_count", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("status", causa_status, nullable=False, server_default="DRAFT"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_causa_status_created", "causa", ["status", "created_at"])
    op.create_index("ix_causa_brought_by", "causa", ["brought_by_user_id", "created_at"])
    op.create_index("ix_causa_specialty_status", "causa", ["specialty_id", "status"])
    op.create_table(
        "causa_confirmacion",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("causa_id", sa.Integer(), sa.ForeignKey("causa.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("causa_id", "user_id", name="uq_causa_confirmacion_user"),
    )
    op.create_index("ix_causa_confirmacion_causa_id", "causa_confirmacion", ["causa_id"])
    op.create_table(
        "invitacion",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("causa_id", sa.Integer(), sa.ForeignKey("causa.id"), nullable=False),
        sa.Column("invited_user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.Column("invited_email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("status", invite_status, nullable=False, server_default="PENDING"),
        sa.Column("mode", invite_mode, nullable=False),
        sa.Column("direct_justification", sa.Text(), nullable=False, server_default=""),
        sa.Column("invited_at", sa.DateTime(), nullable=False),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.UniqueConstraint("causa_id", "invited_user_id", name="uq_invitacion_causa_user"),
    )
    op.create_index("ix_invitacion_causa_id", "invitacion", ["causa_id"])
    op.create_index("ix_invitacion_invited_status", "invitacion", ["invited_user_id", "status"])


def downgrade():
    op.drop_index("ix_invitacion_invited_status", table_name="invitacion")
    op.drop_index("ix_invitacion_causa_id", table_name="invitacion")
    op.drop_table("invitacion")
    op.drop_index("ix_causa_confirmacion_causa_id", table_name="causa_confirmacion")
    op.drop_table("causa_confirmacion")
    op.drop_index("ix_causa_specialty_status", table_name="causa")
    op.drop_index("ix_causa_brought_by", table_name="causa")
    op.drop_index("ix_causa_status_created", table_name="causa")
    op.drop_table("causa")
    op.drop_table("rotation_state")
    op.drop_index("ix_user_especialidad_especialidad", table_name="user_especialidad")
    op.drop_table("user_especialidad")
    op.drop_index("ix_user_account_practicing_email", table_name="user_account")
    op.drop_table("user_account")
    op.drop_table("especialidad")
    for enum_type in (invite_status, invite_mode, causa_status, assignment_mode, jurisdiccion, user_role):
        enum_type.drop(op.get_bind(), checkfirst=True)
