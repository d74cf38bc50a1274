"""Initial schema — staff, assignment rules, rotation cursors, work items.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Staff
    op.create_table(
        "staff_members",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="active"),
        sa.Column("skills", sa.JSON, nullable=False, server_default="[]"),
        sa.Column(
            "manager_id",
            sa.Integer,
            sa.ForeignKey("staff_members.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "supervisor_id",
            sa.Integer,
            sa.ForeignKey("staff_members.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    op.create_index("idx_staff_role_status", "staff_members", ["role", "status"])

    # Assignment rules
    op.create_table(
        "assignment_rules",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("sheet_id", sa.String(100), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.Column("trigger_event", sa.String(30), nullable=False, server_default="on_create"),
        sa.Column("conditions", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("strategy", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("reassignment", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("notifications", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("total_assignments", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_reassignments", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_applied", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.Integer, nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_rules_sheet_status", "assignment_rules", ["sheet_id", "status"])
    op.create_index("idx_rules_sheet_priority", "assignment_rules", ["sheet_id", "priority"])

    # Round-robin rotation state
    op.create_table(
        "rotation_cursors",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "rule_id",
            sa.Integer,
            sa.ForeignKey("assignment_rules.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )

    # Work items
    op.create_table(
        "work_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("sheet_id", sa.String(100), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="draft"),
        sa.Column("priority", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("tags", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("data", sa.JSON, nullable=False, server_default="{}"),
        sa.Column(
            "primary_assignee", sa.Integer, sa.ForeignKey("staff_members.id"), nullable=True
        ),
        sa.Column("assigned_to", sa.JSON, nullable=False, server_default="[]"),
        sa.Column(
            "assigned_by_rule_id",
            sa.Integer,
            sa.ForeignKey("assignment_rules.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_by", sa.Integer, nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_items_sheet_status", "work_items", ["sheet_id", "status"])
    op.create_index("idx_items_assignee_status", "work_items", ["primary_assignee", "status"])
    op.create_index("idx_items_rule", "work_items", ["assigned_by_rule_id"])


def downgrade() -> None:
    op.drop_table("work_items")
    op.drop_table("rotation_cursors")
    op.drop_table("assignment_rules")
    op.drop_table("staff_members")
