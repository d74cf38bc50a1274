"""Tests for RoundRobinPolicy."""

from assign_engine.domain.policies.round_robin import pick_next


def test_pick_single_candidate():
    chosen, position = pick_next([7], 0)
    assert chosen == 7
    assert position == 0


def test_full_rotation_then_wrap():
    """Pool of N: N picks hand out every member once, in pool order."""
    pool = [1, 2, 3]
    picks = []
    position = 0
    for _ in range(4):
        chosen, position = pick_next(pool, position)
        picks.append(chosen)
    assert picks == [1, 2, 3, 1]


def test_pool_order_is_kept():
    """Unlike load-sorted selection, the configured order is the rotation order."""
    chosen, _ = pick_next([30, 10, 20], 0)
    assert chosen == 30


def test_position_out_of_range_resets_to_start():
    chosen, position = pick_next([1, 2], 5)
    assert chosen == 1
    assert position == 1


def test_negative_position_resets_to_start():
    chosen, _ = pick_next([1, 2], -1)
    assert chosen == 1


def test_empty_pool_returns_none():
    chosen, position = pick_next([], 3)
    assert chosen is None
    assert position == 3


def test_exclude_skips_to_next_member():
    chosen, position = pick_next([1, 2, 3], 1, exclude={2})
    assert chosen == 3
    assert position == 0


def test_exclude_wraps_around():
    chosen, position = pick_next([1, 2, 3], 2, exclude={3})
    assert chosen == 1
    assert position == 1


def test_everyone_excluded():
    chosen, position = pick_next([1, 2], 1, exclude={1, 2})
    assert chosen is None
    assert position == 1
