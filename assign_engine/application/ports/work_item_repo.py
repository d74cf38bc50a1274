"""Port interface for the work items the engine assigns."""

from abc import ABC, abstractmethod
from collections.abc import Collection
from datetime import datetime

from assign_engine.domain.entities.work_item import WorkItem


class WorkItemRepository(ABC):
    @abstractmethod
    async def get_by_id(self, item_id: int) -> WorkItem | None:
        ...

    @abstractmethod
    async def commit_assignment(
        self,
        item_id: int,
        staff_id: int,
        rule_id: int | None,
        assigned_at: datetime,
    ) -> None:
        """Set the primary assignee, append it to the assignee history and
        record *assigned_at* as both the last activity and the assignment time."""
        ...

    @abstractmethod
    async def find_assigned_by_rule(
        self, sheet_id: str, rule_id: int, statuses: Collection[str]
    ) -> list[WorkItem]:
        """Items of the sheet owned through *rule_id* whose status is in *statuses*."""
        ...
