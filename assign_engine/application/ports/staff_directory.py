"""Port interface for the staff directory."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from assign_engine.domain.entities.staff_member import StaffMember


class StaffDirectory(ABC):
    @abstractmethod
    async def find_staff(
        self, role: str | None = None, active_only: bool = True
    ) -> list[StaffMember]:
        """Staff matching the filter, ordered by id ASC."""
        ...

    @abstractmethod
    async def list_staff(self, ids: Sequence[int]) -> list[StaffMember]:
        """Staff with the given ids, in the order of *ids*. Unknown ids are skipped."""
        ...

    @abstractmethod
    async def find_manager(self, staff_id: int) -> StaffMember | None:
        ...

    @abstractmethod
    async def find_supervisor(self, staff_id: int) -> StaffMember | None:
        ...
