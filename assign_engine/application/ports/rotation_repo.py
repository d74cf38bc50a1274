"""Port interface for round-robin rotation state persistence."""

from abc import ABC, abstractmethod

from assign_engine.domain.entities.rotation_cursor import RotationCursor


class RotationCursorRepository(ABC):
    @abstractmethod
    async def get_for_update(self, rule_id: int) -> RotationCursor:
        """Get the cursor of the rule, starting at position 0 if missing.

        Implementations backed by a database must lock the row
        (SELECT ... FOR UPDATE) until the surrounding transaction ends.
        """
        ...

    @abstractmethod
    async def save(self, cursor: RotationCursor) -> None:
        ...
