"""LeastLoadedPolicy — pick the pool member with the fewest open items."""

from __future__ import annotations

from collections.abc import Sequence


def pick_least_loaded(loads: Sequence[tuple[int, int]]) -> int | None:
    """Return the staff id with the strictly smallest open-item count.

    *loads* is a list of (staff_id, open_count) in pool order; ties go to the
    earliest entry.
    """
    best: tuple[int, int] | None = None
    for staff_id, count in loads:
        if best is None or count < best[1]:
            best = (staff_id, count)
    return best[0] if best else None
