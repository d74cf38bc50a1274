"""StaffMember entity — an administrator who can own work items."""

from dataclasses import dataclass, field

from assign_engine.domain.value_objects.enums import StaffStatus


@dataclass
class StaffMember:
    id: int
    name: str
    role: str
    status: StaffStatus = StaffStatus.ACTIVE
    skills: set[str] = field(default_factory=set)
    manager_id: int | None = None
    supervisor_id: int | None = None

    def is_active(self) -> bool:
        return self.status == StaffStatus.ACTIVE

    def has_skills(self, required: frozenset[str]) -> bool:
        return required.issubset(self.skills)
