"""Port interface for assignment notifications."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from assign_engine.domain.entities.assignment_rule import NotificationConfig


@dataclass(frozen=True)
class AssignmentNotice:
    item_id: int
    rule_id: int
    assignee_id: int
    previous_assignee_id: int | None
    reassigned: bool
    config: NotificationConfig


class AssignmentNotifier(ABC):
    @abstractmethod
    async def assignment_made(self, notice: AssignmentNotice) -> None:
        ...
