"""create internships and alerts

Revision ID: 3c1e7a9d5b20
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1e7a9d5b20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OPEN_EXPIRATION_WARNING = "alert_type = 'expiration_warning' AND status IN ('pending', 'sent')"


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "internships",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("advisor_id", sa.String(length=36), nullable=True),
        sa.Column("company_id", sa.String(length=36), nullable=True),
        sa.Column("supervisor", sa.String(length=255), nullable=True),
        sa.Column("crc", sa.String(length=50), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("start_date", sa.String(length=10), nullable=True),
        sa.Column("end_date", sa.String(length=10), nullable=True),
        sa.Column("partial_workload_hours", sa.Integer(), nullable=False),
        sa.Column("required_workload_hours", sa.Integer(), nullable=True),
        *[sa.Column(f"r{i}", sa.Integer(), nullable=False, server_default="0") for i in range(1, 11)],
        sa.Column("created_by", sa.String(length=36), nullable=True),
        sa.Column("updated_by", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.String(length=26), nullable=True),
        sa.Column("updated_at", sa.String(length=26), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("internships", schema=None) as batch_op:
        batch_op.create_index("ix_internships_status_end", ["status", "end_date"], unique=False)
        batch_op.create_index("ix_internships_student", ["student_id"], unique=False)
        batch_op.create_index("ix_internships_advisor", ["advisor_id"], unique=False)

    op.create_table(
        "internship_workload_entries",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("internship_id", sa.String(length=36), nullable=False),
        sa.Column("previous_hours", sa.Integer(), nullable=False),
        sa.Column("new_hours", sa.Integer(), nullable=False),
        sa.Column("mode", sa.String(length=10), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.String(length=26), nullable=True),
        sa.ForeignKeyConstraint(["internship_id"], ["internships.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("internship_workload_entries", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_internship_workload_entries_internship_id"), ["internship_id"], unique=False
        )

    op.create_table(
        "internship_alerts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("internship_id", sa.String(length=36), nullable=False),
        sa.Column("internship_kind", sa.String(length=20), nullable=False),
        sa.Column("alert_type", sa.String(length=30), nullable=False),
        sa.Column("severity", sa.String(length=10), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("days_until_expiration", sa.Integer(), nullable=True),
        sa.Column("target_users", sa.Text(), nullable=True),
        sa.Column("delivery_reference", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.String(length=26), nullable=True),
        sa.Column("sent_at", sa.String(length=26), nullable=True),
        sa.Column("read_at", sa.String(length=26), nullable=True),
        sa.Column("dismissed_at", sa.String(length=26), nullable=True),
        sa.ForeignKeyConstraint(["internship_id"], ["internships.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("internship_alerts", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_internship_alerts_internship_id"), ["internship_id"], unique=False)
        batch_op.create_index("ix_internship_alerts_status_created", ["status", "created_at"], unique=False)
        batch_op.create_index(
            "uq_internship_alerts_open_expiration",
            ["internship_id", "alert_type"],
            unique=True,
            sqlite_where=sa.text(OPEN_EXPIRATION_WARNING),
            postgresql_where=sa.text(OPEN_EXPIRATION_WARNING),
        )


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table("internship_alerts", schema=None) as batch_op:
        batch_op.drop_index("uq_internship_alerts_open_expiration")
        batch_op.drop_index("ix_internship_alerts_status_created")
        batch_op.drop_index(batch_op.f("ix_internship_alerts_internship_id"))
    op.drop_table("internship_alerts")

    with op.batch_alter_table("internship_workload_entries", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_internship_workload_entries_internship_id"))
    op.drop_table("internship_workload_entries")

    with op.batch_alter_table("internships", schema=None) as batch_op:
        batch_op.drop_index("ix_internships_advisor")
        batch_op.drop_index("ix_internships_student")
        batch_op.drop_index("ix_internships_status_end")
    op.drop_table("internships")
