"""RoundRobinPolicy — deterministic rotation through a rule's staff pool."""

from __future__ import annotations

from collections.abc import Collection, Sequence


def pick_next(
    pool: Sequence[int],
    position: int,
    exclude: Collection[int] = (),
) -> tuple[int | None, int]:
    """Pick the pool member at *position*, skipping excluded ids.

    1. A stored position outside the current pool (it shrank) restarts at 0.
    2. Walk at most one full turn from there, skipping *exclude*.
    3. Return the chosen staff id and the position to hand out next.

    Args:
        pool: ordered staff ids.
        position: stored rotation position.
        exclude: staff ids that must not be picked (current owner on reassignment).

    Returns:
        (chosen_staff_id, new_position); chosen is None when nobody is eligible,
        in which case the position is returned unchanged.
    """
    if not pool:
        return None, position

    start = position if 0 <= position < len(pool) else 0

    for offset in range(len(pool)):
        index = (start + offset) % len(pool)
        if pool[index] not in exclude:
            return pool[index], (index + 1) % len(pool)

    return None, position
