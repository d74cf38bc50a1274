"""Port interface for assignment rule persistence."""

from abc import ABC, abstractmethod

from assign_engine.domain.entities.assignment_rule import (
    AssignmentRule,
    StatisticsDelta,
)
from assign_engine.domain.value_objects.enums import RuleStatus, TriggerEvent


class RuleRepository(ABC):
    @abstractmethod
    async def save(self, rule: AssignmentRule) -> AssignmentRule:
        ...

    @abstractmethod
    async def get_by_id(self, rule_id: int) -> AssignmentRule | None:
        ...

    @abstractmethod
    async def get_by_sheet(self, sheet_id: str) -> list[AssignmentRule]:
        ...

    @abstractmethod
    async def get_applicable(self, sheet_id: str, event: TriggerEvent) -> list[AssignmentRule]:
        """Active rules of the sheet bound to *event*.

        Ordered by priority DESC, then creation time ASC.
        """
        ...

    @abstractmethod
    async def get_reassignable(self, sheet_id: str) -> list[AssignmentRule]:
        """Active rules of the sheet with reassignment enabled, in evaluation order."""
        ...

    @abstractmethod
    async def set_status(self, rule_id: int, status: RuleStatus) -> AssignmentRule | None:
        ...

    @abstractmethod
    async def commit_statistics(self, rule_id: int, delta: StatisticsDelta) -> None:
        """Atomically add *delta* to the rule's counters."""
        ...
