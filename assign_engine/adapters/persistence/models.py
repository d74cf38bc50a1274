"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

from datetime import datetime

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assign_engine.adapters.persistence.database import Base


class StaffMemberModel(Base):
    __tablename__ = "staff_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="active")
    skills: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    manager_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True
    )
    supervisor_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (Index("idx_staff_role_status", "role", "status"),)


class AssignmentRuleModel(Base):
    __tablename__ = "assignment_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sheet_id: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    trigger_event: Mapped[str] = mapped_column(String(30), nullable=False, default="on_create")
    conditions: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    strategy: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    reassignment: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    notifications: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    total_assignments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_reassignments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_applied: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    cursor: Mapped["RotationCursorModel | None"] = relationship(
        back_populates="rule", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_rules_sheet_status", "sheet_id", "status"),
        Index("idx_rules_sheet_priority", "sheet_id", "priority"),
    )


class RotationCursorModel(Base):
    __tablename__ = "rotation_cursors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rule_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("assignment_rules.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    rule: Mapped["AssignmentRuleModel"] = relationship(back_populates="cursor")


class WorkItemModel(Base):
    __tablename__ = "work_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sheet_id: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="draft")
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    primary_assignee: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("staff_members.id"), nullable=True
    )
    assigned_to: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    assigned_by_rule_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("assignment_rules.id", ondelete="SET NULL"), nullable=True
    )
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_activity_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status_changed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_items_sheet_status", "sheet_id", "status"),
        Index("idx_items_assignee_status", "primary_assignee", "status"),
        Index("idx_items_rule", "assigned_by_rule_id"),
    )
