"""RequiredSkillsPolicy — which staff can serve a ``by_skill`` rule."""

from __future__ import annotations

from collections.abc import Collection, Iterable

from assign_engine.domain.entities.staff_member import StaffMember


def staff_satisfies(member: StaffMember, required_skills: frozenset[str]) -> bool:
    """An active staff member holding *all* required skills.

    No ranking by overlap: an empty requirement is satisfied by anyone active.
    """
    if not member.is_active():
        return False
    return member.has_skills(required_skills)


def first_skilled(
    candidates: Iterable[StaffMember],
    required_skills: frozenset[str],
    exclude: Collection[int] = (),
) -> StaffMember | None:
    """First satisfying candidate in the given (pool or id) order."""
    for member in candidates:
        if member.id in exclude:
            continue
        if staff_satisfies(member, required_skills):
            return member
    return None
