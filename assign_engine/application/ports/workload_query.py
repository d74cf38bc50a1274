"""Port interface for live workload counts."""

from abc import ABC, abstractmethod


class WorkloadQuery(ABC):
    @abstractmethod
    async def count_open_items(self, staff_id: int) -> int:
        """Number of open work items whose primary assignee is *staff_id*."""
        ...
