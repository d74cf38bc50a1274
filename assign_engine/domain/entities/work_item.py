"""WorkItem entity — a sheet row moving through the review workflow."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from assign_engine.domain.value_objects.enums import ItemPriority, ItemStatus


@dataclass
class WorkItem:
    id: int | None
    sheet_id: str
    status: ItemStatus
    priority: ItemPriority = ItemPriority.MEDIUM
    created_by: int | None = None
    tags: set[str] = field(default_factory=set)
    data: dict[str, Any] = field(default_factory=dict)
    primary_assignee: int | None = None
    assigned_to: list[int] = field(default_factory=list)
    assigned_by_rule_id: int | None = None
    last_activity_at: datetime | None = None
    # Time of the latest (re)assignment; restarts the pending clock
    assigned_at: datetime | None = None
    status_changed_at: datetime | None = None

    def assign(self, staff_id: int, rule_id: int | None = None) -> None:
        """Make *staff_id* the primary assignee and record it in the history."""
        self.primary_assignee = staff_id
        if staff_id not in self.assigned_to:
            self.assigned_to.append(staff_id)
        self.assigned_by_rule_id = rule_id
